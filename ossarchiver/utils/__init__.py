"""
Utility modules for the artifact archiver.

Shared infrastructure used by the matcher and uploader:
- logging: process logging, build-console logger, entry/exit decorator
- config: archiver settings and upload-folder template expansion
- config_loader: job configuration files (artifact folder/pattern lists)
- secrets: credential lookup by id
- metrics: Prometheus instrumentation
"""

from ossarchiver.utils.logging import get_logger, get_build_logger, log_function_call

__all__ = ["get_logger", "get_build_logger", "log_function_call"]
