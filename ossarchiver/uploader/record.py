"""
Build record persistence for upload results.

The result of a publish run is stored next to the build as
``<build dir>/ossArchiver.json`` so it can be shown later:

    {
      "id": "ossArchiver",
      "groups": [
        {"folder": "build/libs", "items": [{"name": "app.jar", "url": "https://..."}]}
      ]
    }

Groups are kept as a list so their order survives any JSON tooling.
"""

import json
from pathlib import Path
from typing import Union

from ossarchiver.uploader.uploader import UploadResult
from ossarchiver.utils.logging import get_logger

logger = get_logger(__name__)

RECORD_ID = "ossArchiver"
RECORD_FILENAME = f"{RECORD_ID}.json"


def record_path(build_dir: Union[str, Path]) -> Path:
    """Location of the record file for a build directory."""
    return Path(build_dir) / RECORD_FILENAME


def save_result(result: UploadResult, build_dir: Union[str, Path]) -> Path:
    """
    Attach ``result`` to the build by writing its record file.

    Args:
        result: Finished upload result
        build_dir: Directory holding the build's records

    Returns:
        Path of the written record
    """
    path = record_path(build_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = {
        "id": RECORD_ID,
        "groups": [
            {"folder": folder, "items": items}
            for folder, items in result.to_dict().items()
        ],
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    logger.info(f"Saved upload record: {path}")
    return path


def load_result(build_dir: Union[str, Path]) -> UploadResult:
    """
    Read the upload result recorded for a build.

    Returns an empty result when the build has no record.
    """
    path = record_path(build_dir)
    if not path.exists():
        return UploadResult()

    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)

    return UploadResult.from_dict({
        group["folder"]: group.get("items", [])
        for group in payload.get("groups", [])
    })
