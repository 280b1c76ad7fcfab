"""Config file persistence utilities."""

from __future__ import annotations

import os
import stat
import tempfile
from importlib import resources
from pathlib import Path
from typing import Union

from ..errors import StructureError
from ..utils.logger import log_file_operation

PathLike = Union[str, Path]


def read_resource(resource_path: PathLike) -> bytes:
    """Read the bundled default config.

    ``resource_path`` is either a filesystem path or a package resource
    reference of the form ``"package.name:relative/path.yml"``.

    Raises:
        StructureError: The resource does not exist.
    """
    text = str(resource_path)
    package, sep, relative = text.partition(":")
    if sep and package and "/" not in package and "\\" not in package and len(package) > 1:
        try:
            ref = resources.files(package).joinpath(relative)
            return ref.read_bytes()
        except (ModuleNotFoundError, FileNotFoundError, IsADirectoryError) as e:
            raise StructureError(f"Resource {text} not found") from e

    path = Path(text)
    if not path.is_file():
        raise StructureError(f"Resource {text} not found")
    return path.read_bytes()


def read_config_file(path: PathLike) -> bytes:
    target = Path(path)
    if not target.is_file():
        raise StructureError(f"Config file not found: {target}")
    return target.read_bytes()


def _target_mode(target: Path) -> int:
    if target.exists():
        return stat.S_IMODE(target.stat().st_mode)
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_atomic(target_path: PathLike, data: bytes) -> None:
    """Replace ``target_path`` with ``data`` in one step.

    The bytes go to a temporary file in the same directory which is then
    renamed over the target, so an interrupted write never leaves a
    truncated config behind. The target keeps its permission bits; a new
    file gets the usual umask-derived mode.
    """
    target = Path(target_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(
        prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent)
    )
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(temp_name, _target_mode(target))
        os.replace(temp_name, target)
    except BaseException:
        if os.path.exists(temp_name):
            os.unlink(temp_name)
        raise


def bootstrap_copy(resource_path: PathLike, target_path: PathLike, logger=None) -> bool:
    """Copy the bundled default to ``target_path`` if it does not exist yet.

    Returns True when a copy was made. The resource bytes are written
    verbatim.
    """
    target = Path(target_path)
    if target.exists():
        return False
    data = read_resource(resource_path)
    write_atomic(target, data)
    log_file_operation("copy", f"{resource_path} -> {target}", True, logger=logger)
    return True
