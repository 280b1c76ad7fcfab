"""Version-gated reconciliation of an on-disk config with its bundled default."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..utils.logger import log_info
from .formats import ConfigFormat, FormatRegistry
from .merge import merge_documents
from .persistence import PathLike, read_config_file, read_resource, write_atomic
from .version import find_version, is_older_version

MODULE = "update"


@dataclass(frozen=True)
class UpdatePlan:
    """Outcome of comparing a config file against its default."""

    current_version: str
    default_version: str
    document: object = None

    @property
    def needed(self) -> bool:
        return self.document is not None


class UpdateCoordinator:
    """
    Decide whether a config file is outdated and rewrite it when it is.

    The file is outdated when its ``version`` is older than the bundled
    default's. Rewriting merges the user's document into the default
    (see `merge_documents`), so the user's values survive, new default
    keys appear and the version is bumped to the default's.
    """

    def __init__(
        self,
        formats: Optional[FormatRegistry] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.formats = formats or FormatRegistry.standard()
        self.logger = logger

    def plan(
        self,
        resource_path: PathLike,
        target_file: PathLike,
        fmt: Optional[ConfigFormat] = None,
    ) -> UpdatePlan:
        """Compare versions and build the merged document without writing it."""
        target = Path(target_file)
        fmt = fmt or self.formats.for_path(target)

        default_doc = fmt.parse_tree(read_resource(resource_path), str(resource_path))
        current_doc = fmt.parse_tree(read_config_file(target), str(target))

        default_version = find_version(default_doc)
        current_version = find_version(current_doc)

        if not is_older_version(current_version, default_version):
            log_info(
                MODULE,
                f"Config is up-to-date (version {current_version} >= {default_version})",
                context=str(target),
                logger=self.logger,
            )
            return UpdatePlan(current_version, default_version)

        result = merge_documents(
            default_doc, current_doc, preserve_comments=fmt.preserves_comments
        )
        return UpdatePlan(current_version, default_version, result.document)

    def reconcile(
        self,
        resource_path: PathLike,
        target_file: PathLike,
        fmt: Optional[ConfigFormat] = None,
    ) -> bool:
        """Bring ``target_file`` up to the default's version.

        Returns False, leaving the file untouched, when the file is already
        at or beyond the default's version. Otherwise writes the merged
        document atomically and returns True.

        Raises:
            StructureError: Either document is missing or not a mapping.
        """
        target = Path(target_file)
        fmt = fmt or self.formats.for_path(target)
        log_info(MODULE, "Checking if config update is needed", context=str(target), logger=self.logger)

        update = self.plan(resource_path, target, fmt)
        if not update.needed:
            return False

        log_info(
            MODULE,
            f"Updating config from version {update.current_version} to {update.default_version}",
            context=str(target),
            logger=self.logger,
        )
        write_atomic(target, fmt.emit(update.document))
        log_info(MODULE, "Config updated successfully", context=str(target), logger=self.logger)
        return True


def reconcile(
    resource_path: PathLike,
    target_file: PathLike,
    fmt: Optional[ConfigFormat] = None,
    logger: Optional[logging.Logger] = None,
) -> bool:
    """Shortcut for ``UpdateCoordinator(logger=logger).reconcile(...)``."""
    return UpdateCoordinator(logger=logger).reconcile(resource_path, target_file, fmt)
