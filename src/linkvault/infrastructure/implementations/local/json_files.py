"""
Atomic JSON file helpers shared by the local repositories.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from loguru import logger


def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    """
    Write JSON so readers see either the old or the new file, never half.

    Args:
        path: Destination file
        data: JSON-serializable payload
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    try:
        path.chmod(0o600)
    except OSError as e:
        logger.warning(f"Could not set file permissions: {e}")


def read_json(path: Path) -> dict[str, Any] | None:
    """
    Read a JSON file.

    Args:
        path: File to read

    Returns:
        Parsed payload, or None if the file does not exist
    """
    if not path.exists():
        return None
    return json.loads(path.read_text(encoding="utf-8"))
