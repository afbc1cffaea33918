#!/usr/bin/env python3
"""
Archive build artifacts to an object-storage bucket.

CLI wrapper for the publish step. Settings come from a YAML settings file
or OSS_* environment variables; artifacts from --artifact options and/or a
job configuration file.

Usage:
    python scripts/publish.py --artifact "build/libs:*.jar"
    python scripts/publish.py --job-config archive.yaml --env BUILD_NUMBER=42
    python scripts/publish.py --settings archiver.yaml --check
"""

import argparse
import sys
from pathlib import Path
from typing import Dict, List

# Add project root to path for imports (before other imports)
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from ossarchiver.errors import ConfigurationError  # noqa: E402
from ossarchiver.matcher import ArtifactSpec  # noqa: E402
from ossarchiver.uploader import check_bucket_access, publish  # noqa: E402
from ossarchiver.uploader.uploader import summarize  # noqa: E402
from ossarchiver.utils.config import ArchiverSettings, build_environment  # noqa: E402
from ossarchiver.utils.config_loader import (  # noqa: E402
    load_config,
    parse_artifacts,
    validate_config,
)
from ossarchiver.utils.logging import get_build_logger, get_logger  # noqa: E402
from ossarchiver.utils.secrets import CredentialStore  # noqa: E402

logger = get_logger(__name__)


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Archive build artifacts to an object-storage bucket",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Upload all jars under build/libs
  %(prog)s --artifact "build/libs:*.jar"

  # Use a job configuration file and build variables
  %(prog)s --job-config archive.yaml --env JOB_NAME=app --env BUILD_NUMBER=42

  # Record the result for the build
  %(prog)s --job-config archive.yaml --record-dir builds/42

  # Only check that the bucket is reachable with the configured credentials
  %(prog)s --check
        """,
    )

    parser.add_argument(
        "-w",
        "--workspace",
        default=".",
        help="Workspace root (default: current directory)",
    )

    parser.add_argument(
        "-a",
        "--artifact",
        action="append",
        default=[],
        metavar="FOLDER[:PATTERN]",
        help="Artifact folder and optional pattern (can specify multiple times)",
    )

    parser.add_argument(
        "-j",
        "--job-config",
        help="Job configuration YAML listing artifacts",
    )

    parser.add_argument(
        "-s",
        "--settings",
        help="Settings YAML (default: OSS_* environment variables)",
    )

    parser.add_argument(
        "-r",
        "--record-dir",
        help="Directory to write the build record into",
    )

    parser.add_argument(
        "-e",
        "--env",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Build variable for upload folder expansion (can specify multiple times)",
    )

    parser.add_argument(
        "--check",
        action="store_true",
        help="Check bucket access and exit",
    )

    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when publishing fails fatally",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    return parser.parse_args(argv)


def parse_artifact_option(value: str) -> ArtifactSpec:
    """Split ``FOLDER[:PATTERN]`` into an ArtifactSpec."""
    folder, _, pattern = value.partition(":")
    return ArtifactSpec(folder=folder.strip(), filename=pattern.strip())


def parse_env(values: List[str]) -> Dict[str, str]:
    """Parse KEY=VALUE options into a dictionary."""
    env = {}
    for item in values:
        if "=" not in item:
            logger.warning(f"Invalid variable format (use KEY=VALUE): {item}")
            continue
        key, value = item.split("=", 1)
        env[key.strip()] = value.strip()
    return env


def load_settings(path) -> ArchiverSettings:
    if path:
        return ArchiverSettings.from_file(path)
    return ArchiverSettings.from_env()


def main(argv=None):
    """Main entry point for the publish CLI."""
    args = parse_args(argv)

    if args.verbose:
        import logging

        logging.getLogger("ossarchiver").setLevel(logging.DEBUG)

    try:
        settings = load_settings(args.settings)
    except ConfigurationError as e:
        print(f"❌ Configuration error: {e}")
        return 1

    credentials = CredentialStore()

    if args.check:
        check = check_bucket_access(settings, credentials)
        print(f"{'✅' if check.ok else '❌'} {check.message}")
        return 0 if check.ok else 1

    specs = [parse_artifact_option(value) for value in args.artifact]
    if args.job_config:
        try:
            config = load_config(args.job_config)
        except (OSError, ValueError) as e:
            print(f"❌ Cannot read job configuration: {e}")
            return 1
        for problem in validate_config(config):
            print(f"⚠️  {problem}")
        specs.extend(parse_artifacts(config))

    if not specs:
        print("❌ No artifacts configured (use --artifact or --job-config)")
        return 1

    outcome = publish(
        specs,
        Path(args.workspace).resolve(),
        settings,
        credentials,
        env=build_environment(parse_env(args.env)),
        log=get_build_logger(sys.stdout),
        record_dir=args.record_dir,
    )

    counts = summarize(outcome.result)
    print(f"\n📊 Publish: {outcome.status.value}")
    print(f"  ✅ Uploaded: {counts['uploaded']}")
    print(f"  ❌ Failed: {counts['failed']}")
    print(f"  ⏭  Skipped: {counts['skipped']}")
    for folder, items in outcome.result.items():
        for name, url in items:
            print(f"  • {folder or '.'}/{name}: {url}")

    if args.strict and not outcome.ok:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
