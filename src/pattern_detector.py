from typing import List

from data_classes import Finding, LineContext
from patterns_registry import PatternRegistry


class PatternDetector:
    """Applies the signature rules of a PatternRegistry to single lines"""

    def __init__(self, registry: PatternRegistry):
        self.registry = registry

    def detect(self, line: str, context: LineContext) -> List[Finding]:
        """
        Returns one finding per non-overlapping match of every rule.

        Findings come in registry order, then left to right within a rule. Empty
        matches are ignored.
        """

        findings = []

        for pattern in self.registry:
            for match in pattern.compiled_pattern.finditer(line):
                matched_text = match.group(0)
                if not matched_text:
                    continue

                findings.append(
                    Finding.at(
                        context,
                        finding_type=pattern.name,
                        matched_text=matched_text,
                        severity=pattern.severity,
                        confidence=pattern.confidence,
                        remediation_text=pattern.remediation_text,
                        description=pattern.description,
                    )
                )

        return findings
