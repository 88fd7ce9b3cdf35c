import math
import re
from enum import Enum
from typing import List, Optional, Tuple
from dataclasses import dataclass, field
from datetime import datetime, timezone


class SecretScanError(Exception):
    """Base class for errors raised by the secrets scanner"""


class RepositoryAccessError(SecretScanError):
    """The repository cannot be opened or its history cannot be listed. Fatal for the scan."""


class PatternConfigError(SecretScanError):
    """A pattern registry entry is malformed. Raised while building the registry."""


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def parse(cls, value) -> "Severity":
        if isinstance(value, Severity):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown severity: {value!r}")


class Confidence(float):
    """A probability estimate, validated to lie within [0, 1] on construction"""

    def __new__(cls, value):
        number = float(value)
        if math.isnan(number) or not 0.0 <= number <= 1.0:
            raise ValueError(f"Confidence must be within [0, 1], got {value!r}")
        return super().__new__(cls, number)


class RevisionKind(str, Enum):
    COMMIT = "commit"
    STASH = "stash"


@dataclass(frozen=True)
class Revision:
    """A single historical snapshot: a commit or a stash entry"""

    id: str
    kind: RevisionKind

    @property
    def short_id(self) -> str:
        return self.id[:8]


@dataclass(frozen=True)
class SecretPattern:
    """Defines a signature rule used for detecting secrets in a line of text"""

    name: str
    compiled_pattern: re.Pattern
    severity: Severity
    confidence: Confidence
    description: str
    remediation_text: str

    def __post_init__(self):
        object.__setattr__(self, "severity", Severity.parse(self.severity))
        object.__setattr__(self, "confidence", Confidence(self.confidence))

    @classmethod
    def compile(
        cls,
        name: str,
        regex: str,
        severity,
        confidence: float,
        description: str,
        remediation_text: str,
    ) -> "SecretPattern":
        """
        Builds a SecretPattern from its raw parts.

        Raises:
            PatternConfigError: if the expression does not compile, or the severity or
                confidence are invalid.
        """
        try:
            compiled = re.compile(regex, re.ASCII)
        except (re.error, TypeError, ValueError) as e:
            raise PatternConfigError(f"Invalid expression for pattern {name!r}: {e}")

        try:
            return cls(
                name=name,
                compiled_pattern=compiled,
                severity=severity,
                confidence=confidence,
                description=description,
                remediation_text=remediation_text,
            )
        except (TypeError, ValueError) as e:
            raise PatternConfigError(f"Invalid pattern {name!r}: {e}")


@dataclass(frozen=True)
class LineContext:
    """Location of a line handed to the detectors"""

    file_path: str
    revision: Revision
    line_number: int


@dataclass(frozen=True)
class Finding:
    """Represents a single candidate secret detected during a scan"""

    finding_type: str
    matched_text: str
    file_path: str
    revision_ref: str
    revision_kind: RevisionKind
    line_number: int
    severity: Severity
    confidence: Confidence
    remediation_text: str
    description: str = ""
    discovered_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc), compare=False
    )

    def __post_init__(self):
        if self.line_number < 1:
            raise ValueError(f"line_number must be >= 1, got {self.line_number}")
        object.__setattr__(self, "severity", Severity.parse(self.severity))
        object.__setattr__(self, "confidence", Confidence(self.confidence))

    @classmethod
    def at(cls, context: LineContext, **kwargs) -> "Finding":
        return cls(
            file_path=context.file_path,
            revision_ref=context.revision.id,
            revision_kind=context.revision.kind,
            line_number=context.line_number,
            **kwargs,
        )


@dataclass(frozen=True)
class FileListing:
    """Outcome of listing the paths touched by a revision"""

    paths: Tuple[str, ...] = ()
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ReadResult:
    """Outcome of reading one path at one revision"""

    path: str
    content: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class SkippedUnit:
    """A revision or file that could not be read and was skipped"""

    revision_ref: str
    path: Optional[str]
    reason: str


PASS_MESSAGE = "No secrets found in Git history"


@dataclass(frozen=True)
class ScanResult:
    """Ordered findings of one scan plus the aggregates derived from them"""

    findings: Tuple[Finding, ...] = ()
    remediation: str = ""
    revisions_scanned: int = 0
    skipped_units: Tuple[SkippedUnit, ...] = ()
    partial: bool = False

    @property
    def total_count(self) -> int:
        return len(self.findings)

    @property
    def high_severity_count(self) -> int:
        return len([f for f in self.findings if f.severity == Severity.HIGH])

    @property
    def passed(self) -> bool:
        return not self.findings

    @property
    def status(self) -> str:
        return "pass" if self.passed else "fail"

    @property
    def score(self) -> int:
        return 100 if self.passed else 0

    @property
    def message(self) -> str:
        if self.passed:
            return PASS_MESSAGE
        return f"Found {self.total_count} secrets in Git history"

    @property
    def details(self) -> List[str]:
        if self.passed:
            return [PASS_MESSAGE]

        details = [
            f"Total secrets found: {self.total_count}",
            f"High severity secrets: {self.high_severity_count}",
        ]
        for i, f in enumerate(self.findings, 1):
            details.append(
                f"{i}. {f.finding_type} ({f.severity.value}) in {f.file_path}:{f.line_number}"
                f" @ {f.revision_ref[:8]}"
            )
        return details
