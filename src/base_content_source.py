from abc import ABC, abstractmethod
from typing import List

from data_classes import FileListing, ReadResult, Revision


class BaseContentSource(ABC):
    """
    abstract base class for the version-control boundary.

    The scanner only ever needs these four primitives, so it can run against a real
    repository or an in-memory fixture.
    """

    @abstractmethod
    def list_commits(self) -> List[str]:
        """Hashes of every commit reachable from any reference. Raises RepositoryAccessError."""

    @abstractmethod
    def list_stashes(self) -> List[str]:
        """Hashes of every stash entry. An empty list means no stashes. Raises RepositoryAccessError."""

    @abstractmethod
    def files_touched(self, revision: Revision) -> FileListing:
        pass

    @abstractmethod
    def read(self, revision: Revision, path: str) -> ReadResult:
        pass
