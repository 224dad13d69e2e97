"""
File-system helpers: atomic writes, one-time backups, JSON output and the
depth-limited file search shared by every hook.
"""
import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Iterable, Optional

import logger as log

# Directories never descended into while searching platform trees
SKIP_DIRS = {"node_modules", "build", ".git", "gradle", "Pods", "DerivedData"}


def read_text(path: Path) -> Optional[str]:
    """Return the UTF-8 text of *path*, or ``None`` if it does not exist."""
    if not path.exists():
        return None
    return path.read_text(encoding="utf-8")


def write_text(path: Path, content: str) -> None:
    """
    Write *content* to *path* atomically.

    The text goes to a sibling temporary file first and is then renamed into
    place with ``os.replace``, so the host build never sees a half-written
    resource file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}~")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(content)
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def write_if_changed(path: Path, original: Optional[str], updated: str) -> bool:
    """Write *updated* only when it differs from *original*. Returns True on write."""
    if original == updated:
        return False
    write_text(path, updated)
    return True


def write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}~")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def backup_once(path: Path, suffix: str = ".bak") -> Optional[Path]:
    """
    Copy *path* to ``<path><suffix>`` unless that backup already exists, so
    the backup always holds the pristine pre-hook file.
    """
    backup = path.with_name(path.name + suffix)
    if backup.exists() or not path.exists():
        return None
    shutil.copy2(path, backup)
    log.info(f"   backup created: {backup.name}")
    return backup


def write_json(path: Path, data: Any) -> int:
    """Write *data* as indented JSON; returns the number of bytes written."""
    text = json.dumps(data, indent=2, ensure_ascii=False)
    write_text(path, text)
    return path.stat().st_size


def read_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as fh:
        return json.load(fh)


def find_file(base: Path, names: Iterable[str], max_depth: int = 5) -> Optional[Path]:
    """
    Depth-first search under *base* for the first file whose name equals, or
    ends with, one of *names*.  Exact-name matches anywhere in the tree win
    over suffix matches.
    """
    names = list(names)
    found = find_all_files(base, names, max_depth, match="exact")
    if found:
        return found[0]
    found = find_all_files(base, names, max_depth, match="suffix")
    return found[0] if found else None


def find_all_files(
    base: Path,
    suffixes: Iterable[str],
    max_depth: int = 10,
    *,
    match: str = "suffix",
) -> list[Path]:
    """
    Return every file under *base* (sorted, depth-limited) matching *suffixes*.

    match="suffix" – file name ends with one of *suffixes* (e.g. ``.xml``)
    match="exact"  – file name equals one of *suffixes*
    """
    suffixes = tuple(suffixes)
    result: list[Path] = []
    if not base.is_dir():
        return result

    def _walk(directory: Path, depth: int) -> None:
        if depth > max_depth:
            return
        try:
            entries = sorted(directory.iterdir())
        except OSError as exc:
            log.warn(f"   cannot list {directory}: {exc}")
            return
        for entry in entries:
            if entry.is_dir():
                if entry.name in SKIP_DIRS:
                    continue
                _walk(entry, depth + 1)
            elif entry.is_file():
                name = entry.name
                if match == "exact" and name in suffixes:
                    result.append(entry)
                elif match == "suffix" and name.endswith(suffixes):
                    result.append(entry)

    _walk(base, 0)
    return result


def remove_path(path: Path) -> bool:
    """Delete a file or directory tree. Returns True if something was removed."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
        return True
    if path.exists() or path.is_symlink():
        path.unlink()
        return True
    return False
