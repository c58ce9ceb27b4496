"""
Backing file management.

Provides location, reading and writing of the receipts JSON document.
"""

import json
import os
import stat
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

DEFAULT_RECEIPTS_FILE = Path(__file__).resolve().parents[1] / "data" / "receipts.json"


def resolve_path(path: Optional[Union[str, Path]] = None) -> Path:
    """Return the receipts file path, falling back to the packaged default."""
    if path is None:
        return DEFAULT_RECEIPTS_FILE
    return Path(path)


def read_document(path: Path) -> Dict[str, Any]:
    """Read and parse the JSON document at ``path``.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the content is not valid JSON
    """
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _target_mode(path: Path) -> int:
    """Permission bits the written file should carry.

    An existing file keeps its mode; a new one gets the umask default a
    plain ``open`` would give it.
    """
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_document(path: Path, document: Dict[str, Any], atomic: bool = True) -> None:
    """Write ``document`` as indented JSON, creating parent directories.

    With ``atomic`` the document goes to a temporary file in the same
    directory which then replaces the target, so readers never observe a
    partially written file.

    Args:
        path: Destination file
        document: JSON-serializable object
        atomic: Replace the file atomically instead of overwriting in place

    Raises:
        OSError: If the directory or file cannot be written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(document, indent=2)

    if not atomic:
        path.write_text(payload, encoding="utf-8")
        return

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        # mkstemp creates 0600 files
        os.chmod(tmp_name, _target_mode(path))
        os.replace(tmp_name, path)
    except Exception:
        Path(tmp_name).unlink(missing_ok=True)
        raise
