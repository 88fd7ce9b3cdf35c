import math
from collections import Counter
from typing import List

from data_classes import Finding, LineContext, Severity
from vocabulary_filter import VocabularyFilter

ENTROPY_FINDING_TYPE = "high-entropy-string"
DEFAULT_ENTROPY_THRESHOLD = 5.5
DEFAULT_MIN_TOKEN_LENGTH = 24

# entropy is a heuristic, so its confidence never reaches certainty
MAX_ENTROPY_CONFIDENCE = 0.9
ENTROPY_NORMALIZER = 6.0

ENTROPY_REMEDIATION = (
    "Review this high-entropy string. If it's a secret, consider rewriting Git history."
)


def shannon_entropy(s: str) -> float:
    """Shannon entropy in bits per character of the character distribution of s"""
    if not s:
        return 0.0

    length = len(s)
    entropy = 0.0
    for count in Counter(s).values():
        p = count / length
        entropy -= p * math.log2(p)
    return entropy


class EntropyDetector:
    """
    Flags random-looking whitespace-separated tokens.

    Catches credential formats no signature knows about, at the cost of false
    positives. threshold and min_length bound that false-positive rate.
    """

    def __init__(
        self,
        vocabulary: VocabularyFilter = None,
        threshold: float = DEFAULT_ENTROPY_THRESHOLD,
        min_length: int = DEFAULT_MIN_TOKEN_LENGTH,
    ):
        self.vocabulary = vocabulary if vocabulary is not None else VocabularyFilter()
        self.threshold = threshold
        self.min_length = min_length

    def _candidate_tokens(self, line: str) -> List[str]:
        return [
            token
            for token in line.split()
            if len(token) >= self.min_length and not self.vocabulary.is_common(token)
        ]

    def detect(self, line: str, context: LineContext) -> List[Finding]:
        findings = []

        for token in self._candidate_tokens(line):
            entropy = shannon_entropy(token)
            if entropy <= self.threshold:
                continue

            findings.append(
                Finding.at(
                    context,
                    finding_type=ENTROPY_FINDING_TYPE,
                    matched_text=token,
                    severity=Severity.MEDIUM,
                    confidence=min(entropy / ENTROPY_NORMALIZER, MAX_ENTROPY_CONFIDENCE),
                    remediation_text=ENTROPY_REMEDIATION,
                    description=f"High entropy string ({entropy:.2f} bits per character)",
                )
            )

        return findings
