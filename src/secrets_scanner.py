import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from base_content_source import BaseContentSource
from data_classes import Finding, LineContext, Revision, ScanResult, SkippedUnit
from entropy_detector import EntropyDetector
from finding_aggregator import aggregate
from git_content_source import GitContentSource
from history_walker import HistoryWalker
from pattern_detector import PatternDetector
from patterns_registry import PatternRegistry
from scan_config import ScanConfig
from vocabulary_filter import VocabularyFilter

logger = logging.getLogger(__name__)


@dataclass
class RevisionScan:
    """Findings and skipped units of a single revision"""

    revision: Revision
    findings: List[Finding] = field(default_factory=list)
    skipped: List[SkippedUnit] = field(default_factory=list)
    complete: bool = True


class SecretsScanner:
    """This class walks the repository history and runs the secret detectors over it"""

    def __init__(
        self,
        source: BaseContentSource,
        registry: Optional[PatternRegistry] = None,
        vocabulary: Optional[VocabularyFilter] = None,
        config: Optional[ScanConfig] = None,
    ):
        """
        Initializes SecretsScanner

        Args:
            source (BaseContentSource): The version-control boundary to read history from.
            registry (PatternRegistry, optional): Signature rules, the default set if omitted.
            vocabulary (VocabularyFilter, optional): Entropy noise filter, the default list if omitted.
            config (ScanConfig, optional): Entropy knobs and worker pool size.

        The registry and vocabulary are shared read-only by all workers.
        """

        self.source = source
        self.config = config or ScanConfig()
        self.registry = registry if registry is not None else PatternRegistry()
        self.vocabulary = vocabulary if vocabulary is not None else VocabularyFilter()

        self.walker = HistoryWalker(source)
        self.pattern_detector = PatternDetector(self.registry)
        self.entropy_detector = EntropyDetector(
            self.vocabulary,
            threshold=self.config.entropy_threshold,
            min_length=self.config.min_token_length,
        )

    def scan_line(self, line: str, context: LineContext) -> List[Finding]:
        """pattern findings come before entropy findings for the same line"""
        return self.pattern_detector.detect(line, context) + self.entropy_detector.detect(
            line, context
        )

    def scan_content(self, content: str, revision: Revision, file_path: str) -> List[Finding]:
        findings = []
        for i, line in enumerate(content.split("\n"), 1):
            context = LineContext(file_path=file_path, revision=revision, line_number=i)
            findings.extend(self.scan_line(line, context))
        return findings

    def scan_revision(
        self, revision: Revision, cancel_event: Optional[threading.Event] = None
    ) -> RevisionScan:
        """
        Scans every file touched by a revision.

        Files that cannot be read are recorded as skipped and the remaining files are
        still scanned. If cancellation is requested between two files the scan stops
        and is marked incomplete.
        """

        result = RevisionScan(revision=revision)

        listing = self.source.files_touched(revision)
        if not listing.ok:
            logger.debug(f"Skipping {revision.kind.value} {revision.short_id}: {listing.error}")
            result.skipped.append(SkippedUnit(revision.id, None, listing.error))
            return result

        for path in listing.paths:
            if cancel_event is not None and cancel_event.is_set():
                result.complete = False
                break

            read = self.source.read(revision, path)
            if not read.ok:
                logger.debug(f"Skipping {path} at {revision.short_id}: {read.error}")
                result.skipped.append(SkippedUnit(revision.id, path, read.error))
                continue

            result.findings.extend(self.scan_content(read.content, revision, path))

        return result

    def scan(self, cancel_event: Optional[threading.Event] = None) -> ScanResult:
        """
        Performs a full secret scan over all commits and stashes and builds the result.

        Revisions are scanned on a bounded thread pool and merged back in walker order,
        so the result does not depend on scheduling. When cancel_event is set mid-scan
        the findings gathered so far are returned with partial=True.

        Raises:
            RepositoryAccessError: if the history cannot be listed.
        """

        cancel_event = cancel_event or threading.Event()

        logger.info("Starting history scan...")
        revisions = self.walker.list_revisions()

        outcomes: Dict[int, RevisionScan] = {}

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            future_to_index = {
                executor.submit(self.scan_revision, revision, cancel_event): i
                for i, revision in enumerate(revisions)
            }

            for future in as_completed(future_to_index):
                if future.cancelled():
                    continue

                index = future_to_index[future]
                outcomes[index] = future.result()
                logger.debug(
                    f"Processed revision {len(outcomes)}/{len(revisions)}: "
                    f"{revisions[index].short_id}"
                )

                if cancel_event.is_set():
                    for pending in future_to_index:
                        pending.cancel()

        ordered = [outcomes[i] for i in sorted(outcomes)]
        partial = len(ordered) < len(revisions) or not all(o.complete for o in ordered)

        if partial:
            logger.warning(
                f"Scan cancelled after {len(ordered)}/{len(revisions)} revisions, "
                "returning partial results"
            )

        findings = [f for outcome in ordered for f in outcome.findings]
        skipped = [s for outcome in ordered for s in outcome.skipped]

        result = aggregate(
            findings,
            revisions_scanned=len([o for o in ordered if o.complete]),
            skipped_units=skipped,
            partial=partial,
        )
        logger.info(
            f"Scan completed: {result.total_count} findings "
            f"({result.high_severity_count} high severity), {len(skipped)} skipped units"
        )
        return result


def build_registry(config: ScanConfig) -> PatternRegistry:
    if config.patterns_file:
        return PatternRegistry.from_json_file(config.patterns_file)
    return PatternRegistry()


def scan_repository(
    repo_path: str,
    config: Optional[ScanConfig] = None,
    cancel_event: Optional[threading.Event] = None,
) -> ScanResult:
    """Scans the full history of the repository at repo_path"""

    config = config or ScanConfig()
    # the registry is built before the repository is touched so bad patterns fail first
    registry = build_registry(config)
    source = GitContentSource(repo_path, timeout=config.read_timeout)
    return SecretsScanner(source, registry=registry, config=config).scan(cancel_event)
