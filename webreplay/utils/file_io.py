import json
import os
import time
import traceback
from pathlib import Path
from typing import Any
from webreplay.core.logging import log


def safe_read_json(path: Path, default: Any = None) -> Any:
    """
    Safely read a JSON file with robust error handling.
    """
    if default is None:
        default = {}

    try:
        if path.exists():
            content = path.read_text(encoding="utf-8")
            if not content.strip():
                return default
            return json.loads(content)
    except json.JSONDecodeError as e:
        log(f"Corrupted JSON in {path.name}: {e}", level="error")
    except PermissionError as e:
        log(f"Permission denied reading {path.name}: {e}", level="error")
    except OSError as e:
        log(f"IO error reading {path.name}: {e}", level="warning")

    return default


def safe_write_json(path: Path, data: Any) -> bool:
    """
    Atomically write data to a JSON file, ensuring parent directories exist.

    The payload goes to a sibling ``.tmp`` file first and is moved over the
    target with ``os.replace``, so readers never observe a half-written file.
    """
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, path)
        return True
    except PermissionError as e:
        log(f"Permission denied writing to {path.name}: {e}", level="error")
    except OSError as e:
        log(f"IO error writing to {path.name}: {e}", level="error")
    except Exception:
        log(f"Unexpected error writing to {path.name}: {traceback.format_exc()}", level="error")
        _discard(tmp)
        raise

    _discard(tmp)
    return False


def _discard(tmp: Path) -> None:
    try:
        tmp.unlink(missing_ok=True)
    except OSError:
        pass


def prune_files(directory: Path, pattern: str, max_age_seconds: float) -> int:
    """Delete files matching ``pattern`` older than ``max_age_seconds``."""
    if not directory.exists():
        return 0
    cutoff = time.time() - max_age_seconds
    removed = 0
    for path in directory.glob(pattern):
        try:
            if path.is_file() and path.stat().st_mtime < cutoff:
                path.unlink()
                removed += 1
        except OSError as e:
            log(f"Could not remove {path.name}: {e}", level="warning")
    return removed
