import logging
import os
from typing import List, Optional

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from base_content_source import BaseContentSource
from data_classes import (
    FileListing,
    ReadResult,
    RepositoryAccessError,
    Revision,
    RevisionKind,
)

logger = logging.getLogger(__name__)


class GitContentSource(BaseContentSource):
    """Reads history and file content from a local repository through GitPython"""

    def __init__(self, repo_path: str, timeout: Optional[float] = 30.0):
        """
        Opens the repository.

        Args:
            repo_path (str): Path to a local Git repository.
            timeout (float, optional): Seconds after which a single per-file git call is
                killed and treated as a skipped unit. None disables the timeout.

        Raises:
            RepositoryAccessError: the path does not exist, is not a repository, or
                cannot be read.
        """

        self.repo_path = repo_path
        self.timeout = timeout

        try:
            self.repo = Repo(repo_path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise RepositoryAccessError(f"Invalid Git repository: {repo_path}: {e}")
        except OSError as e:
            raise RepositoryAccessError(f"Cannot access repository {repo_path}: {e}")

    def _call_kwargs(self) -> dict:
        if self.timeout is None:
            return {}
        return {"kill_after_timeout": self.timeout}

    def _split_lines(self, output: str) -> List[str]:
        return [line.strip() for line in output.splitlines() if line.strip()]

    def _split_paths(self, output: bytes) -> List[str]:
        # -z output: NUL separated and never quoted. show puts a newline before the list
        paths = [os.fsdecode(entry).lstrip("\n") for entry in output.split(b"\0")]
        return [path for path in paths if path]

    def list_commits(self) -> List[str]:
        # the stash ref is excluded so stash commits are only reported as stashes
        try:
            output = self.repo.git.rev_list("--exclude=refs/stash", "--all")
        except GitCommandError as e:
            raise RepositoryAccessError(f"Failed to list commits: {e}")

        return self._split_lines(output)

    def list_stashes(self) -> List[str]:
        try:
            output = self.repo.git.stash("list", "--format=%H")
        except GitCommandError as e:
            raise RepositoryAccessError(f"Failed to list stashes: {e}")

        return self._split_lines(output)

    def files_touched(self, revision: Revision) -> FileListing:
        try:
            if revision.kind == RevisionKind.STASH:
                output = self.repo.git.diff(
                    "--name-only",
                    "-z",
                    f"{revision.id}^1",
                    revision.id,
                    stdout_as_string=False,
                    **self._call_kwargs(),
                )
            else:
                output = self.repo.git.show(
                    "--name-only",
                    "-z",
                    "--pretty=format:",
                    revision.id,
                    stdout_as_string=False,
                    **self._call_kwargs(),
                )
        except GitCommandError as e:
            return FileListing(error=f"Could not list files: {e}")

        return FileListing(paths=tuple(self._split_paths(output)))

    def read(self, revision: Revision, path: str) -> ReadResult:
        """
        Returns the content of a path at a revision.

        For commits this is the file blob. For stashes it is the stash's diff of that
        path against its base commit. Deleted, binary, timed out or otherwise
        unreadable paths come back as a failed ReadResult.
        """

        try:
            if revision.kind == RevisionKind.STASH:
                raw = self.repo.git.diff(
                    f"{revision.id}^1",
                    revision.id,
                    "--",
                    f":(literal){path}",
                    stdout_as_string=False,
                    **self._call_kwargs(),
                )
            else:
                raw = self.repo.git.show(
                    f"{revision.id}:{path}",
                    stdout_as_string=False,
                    **self._call_kwargs(),
                )
        except GitCommandError as e:
            return ReadResult(path=path, error=f"git read failed: {e}")

        # null bytes mark binary content
        if b"\x00" in raw[:8000]:
            return ReadResult(path=path, error="binary content")

        return ReadResult(path=path, content=raw.decode("utf-8", errors="ignore"))
