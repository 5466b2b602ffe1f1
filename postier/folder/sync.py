"""Folder synchronization strategy.

A sync run covers either every folder, an explicit set of folders, or
every folder except an explicit set. The CLI exposes four inputs for
this (a single source folder, --include, --exclude and --all) that are
meant to be mutually exclusive; resolve_folder_sync_strategy turns
whatever combination it gets into exactly one strategy.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


class SyncScope(str, Enum):
    """Which folders a sync strategy selects."""

    all = "all"
    include = "include"
    exclude = "exclude"


@dataclass(frozen=True)
class FolderSyncStrategy:
    """One of All, Include(folders) or Exclude(folders)."""

    scope: SyncScope
    folders: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def all(cls) -> "FolderSyncStrategy":
        return cls(SyncScope.all)

    @classmethod
    def include(cls, folders: Iterable[str]) -> "FolderSyncStrategy":
        return cls(SyncScope.include, frozenset(folders))

    @classmethod
    def exclude(cls, folders: Iterable[str]) -> "FolderSyncStrategy":
        return cls(SyncScope.exclude, frozenset(folders))

    def matches(self, folder: str) -> bool:
        """Whether `folder` takes part in a sync using this strategy."""
        if self.scope is SyncScope.include:
            return folder in self.folders
        if self.scope is SyncScope.exclude:
            return folder not in self.folders
        return True

    def __str__(self) -> str:
        if self.scope is SyncScope.all:
            return "all folders"
        names = ", ".join(sorted(self.folders))
        return f"{self.scope.value} {names}"


def resolve_folder_sync_strategy(
    source: str | None = None,
    include: Iterable[str] | None = None,
    exclude: Iterable[str] | None = None,
    all_folders: bool = False,
) -> FolderSyncStrategy | None:
    """Pick the folder sync strategy from raw CLI inputs.

    The first matching rule wins:

    1. a single source folder -> Include({source})
    2. a non-empty include set -> Include(include)
    3. a non-empty exclude set -> Exclude(exclude)
    4. the all flag -> All
    5. nothing -> None, the caller uses the account default

    Combinations are never rejected: the most specific input wins.
    """
    include = frozenset(include or ())
    exclude = frozenset(exclude or ())

    given = sum([source is not None, bool(include), bool(exclude), all_folders])
    if given > 1:
        logger.debug("several folder selections given, using the most specific one")

    if source is not None:
        return FolderSyncStrategy.include([source])
    if include:
        return FolderSyncStrategy.include(include)
    if exclude:
        return FolderSyncStrategy.exclude(exclude)
    if all_folders:
        return FolderSyncStrategy.all()
    return None
