"""JSON file helpers (fcntl.flock + atomic write)."""

import fcntl
import json
import os
import tempfile
from pathlib import Path
from typing import Any
from urllib.parse import quote


def key_to_filename(key: str) -> str:
    """Map an identity (e-mail) to a case-insensitive file name.

    Unsafe characters are percent-encoded, so distinct keys never share a file.
    """
    return quote(key.strip().lower(), safe="@+") + ".json"


def read_json(path: Path) -> Any | None:
    if not path.exists():
        return None
    with open(path, encoding="utf-8") as f:
        fcntl.flock(f, fcntl.LOCK_SH)
        try:
            return json.load(f)
        finally:
            fcntl.flock(f, fcntl.LOCK_UN)


def write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w", dir=path.parent, delete=False, suffix=".json", encoding="utf-8"
    ) as tmp:
        try:
            json.dump(data, tmp, indent=2, default=str)
        except BaseException:
            tmp.close()
            os.unlink(tmp.name)
            raise
    os.replace(tmp.name, path)
