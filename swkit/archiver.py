"""Extraction of zip archives held in memory."""

from __future__ import annotations

import io
import os
import shutil
import zipfile


class IllegalPathError(ValueError):
    """Raised when an archive entry would be written outside the destination."""


_DEFAULT_FILE_MODE = 0o666
_DEFAULT_DIR_MODE = 0o777


def _entry_mode(info: zipfile.ZipInfo) -> int:
    mode = (info.external_attr >> 16) & 0o777
    if mode:
        return mode
    return _DEFAULT_DIR_MODE if info.is_dir() else _DEFAULT_FILE_MODE


def unarchive(buf: bytes, dest: str | os.PathLike[str]) -> None:
    """Extract the zip archive in ``buf`` into ``dest``.

    Raises zipfile.BadZipFile for invalid data and IllegalPathError for
    entries that escape ``dest``.
    """
    dest = os.fspath(dest)
    root = os.path.normpath(dest) + os.sep
    with zipfile.ZipFile(io.BytesIO(buf)) as archive:
        for info in archive.infolist():
            path = os.path.normpath(os.path.join(dest, *info.filename.split("/")))
            if not path.startswith(root):
                raise IllegalPathError(f"illegal file path: {path}")
            mode = _entry_mode(info)
            if info.is_dir():
                os.makedirs(path, mode, exist_ok=True)
                continue
            os.makedirs(os.path.dirname(path), _DEFAULT_DIR_MODE, exist_ok=True)
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
            with os.fdopen(fd, "wb") as out, archive.open(info) as src:
                shutil.copyfileobj(src, out)