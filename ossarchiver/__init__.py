"""
ossarchiver

Archives build artifacts to an object-storage bucket and records the
public URL of every uploaded file with the build.

This package provides modular components for each stage of a publish run:
- normalizer: platform-independent path canonicalization for object keys
- matcher: resolution of configured folder/pattern entries into files
- uploader: key construction, object-store clients, upload orchestration,
  build records and the top-level publish step
- utils: logging, settings, job configuration, credentials and metrics
"""

__version__ = "0.1.0"

from ossarchiver.utils.logging import setup_logging

setup_logging()
