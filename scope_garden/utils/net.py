from __future__ import annotations
import logging, os, shutil
from pathlib import Path

log = logging.getLogger(__name__)

def prepare_socket(path: str | os.PathLike) -> Path:
    """Recreate the socket's parent directory from scratch (mode 0700)."""
    sock = Path(path)
    shutil.rmtree(sock.parent, ignore_errors=True)
    try:
        sock.parent.mkdir(mode=0o700, parents=True)
    except OSError as e:
        raise OSError(f"error creating directory {str(sock.parent)!r}: {e}") from e
    return sock

def cleanup_socket(path: str | os.PathLike):
    d = Path(path).parent
    if d.exists():
        shutil.rmtree(d)
        log.debug("removed %s", d)

def unix_url(path: str | os.PathLike) -> str:
    return f"unix://{Path(path)}"
