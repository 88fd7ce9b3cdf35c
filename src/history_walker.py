import logging
from typing import List

from base_content_source import BaseContentSource
from data_classes import Revision, RevisionKind

logger = logging.getLogger(__name__)


class HistoryWalker:
    """Enumerates every commit and stash entry of a repository exactly once"""

    def __init__(self, source: BaseContentSource):
        self.source = source

    def list_revisions(self) -> List[Revision]:
        """
        Lists all commits followed by all stash entries.

        Commits reachable from several references are listed once, at their first
        position. A hash already seen is not listed again. Any failure from the source
        propagates: not being able to list history is fatal for the scan.
        """

        revisions: List[Revision] = []
        seen = set()

        for commit_hash in self.source.list_commits():
            if commit_hash in seen:
                continue
            seen.add(commit_hash)
            revisions.append(Revision(id=commit_hash, kind=RevisionKind.COMMIT))

        commits = len(revisions)

        for stash_hash in self.source.list_stashes():
            if stash_hash in seen:
                continue
            seen.add(stash_hash)
            revisions.append(Revision(id=stash_hash, kind=RevisionKind.STASH))

        logger.info(
            f"Found {commits} commits and {len(revisions) - commits} stash entries"
        )
        return revisions


def list_revisions(source: BaseContentSource) -> List[Revision]:
    return HistoryWalker(source).list_revisions()
