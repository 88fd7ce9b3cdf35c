import json
import logging
from typing import Any, Dict, Iterable, Iterator, List, Tuple

from data_classes import PatternConfigError, SecretPattern

logger = logging.getLogger(__name__)


REQUIRED_FIELDS = ("name", "regex", "severity", "confidence", "description", "remediation")


DEFAULT_PATTERNS: List[Dict[str, Any]] = [
    {
        "name": "AWS Access Key",
        "regex": r"AKIA[0-9A-Z]{16}",
        "severity": "high",
        "confidence": 0.95,
        "description": "AWS Access Key ID",
        "remediation": "Rotate AWS access key immediately and rewrite Git history using git filter-repo or BFG.",
    },
    {
        "name": "AWS Secret Key",
        "regex": r"[A-Za-z0-9/+=]{40}",
        "severity": "high",
        "confidence": 0.9,
        "description": "AWS Secret Access Key",
        "remediation": "Rotate AWS secret key immediately and rewrite Git history.",
    },
    {
        "name": "GitHub Token",
        "regex": r"ghp_[A-Za-z0-9]{36}",
        "severity": "high",
        "confidence": 0.95,
        "description": "GitHub Personal Access Token",
        "remediation": "Revoke GitHub token immediately and rewrite Git history.",
    },
    {
        "name": "GitHub App Token",
        "regex": r"ghs_[A-Za-z0-9]{36}",
        "severity": "high",
        "confidence": 0.95,
        "description": "GitHub App Token",
        "remediation": "Revoke GitHub app token immediately and rewrite Git history.",
    },
    {
        "name": "GitLab Token",
        "regex": r"glpat-[A-Za-z0-9_-]{20}",
        "severity": "high",
        "confidence": 0.95,
        "description": "GitLab Personal Access Token",
        "remediation": "Revoke GitLab token immediately and rewrite Git history.",
    },
    {
        "name": "Slack Token",
        "regex": r"xox[baprs]-[A-Za-z0-9-]+",
        "severity": "high",
        "confidence": 0.9,
        "description": "Slack Bot Token",
        "remediation": "Revoke Slack token immediately and rewrite Git history.",
    },
    {
        "name": "Discord Token",
        "regex": r"[MN][A-Za-z\d]{23}\.[\w-]{6}\.[\w-]{27}",
        "severity": "high",
        "confidence": 0.9,
        "description": "Discord Bot Token",
        "remediation": "Regenerate Discord token immediately and rewrite Git history.",
    },
    {
        "name": "JWT Token",
        "regex": r"eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]*\.[A-Za-z0-9_-]*",
        "severity": "medium",
        "confidence": 0.8,
        "description": "JSON Web Token",
        "remediation": "Review JWT token. If it contains sensitive data, regenerate and rewrite Git history.",
    },
    {
        "name": "Base64 Encoded Secret",
        "regex": r"[A-Za-z0-9+/]{40,}={0,2}",
        "severity": "medium",
        "confidence": 0.7,
        "description": "Base64 encoded string (potential secret)",
        "remediation": "Review base64 string. If it's a secret, rewrite Git history.",
    },
    {
        "name": "Private Key",
        "regex": r"-----BEGIN [A-Z ]+ PRIVATE KEY-----",
        "severity": "high",
        "confidence": 0.95,
        "description": "Private Key",
        "remediation": "Generate new private key immediately and rewrite Git history.",
    },
    {
        "name": "API Key",
        "regex": r"""(?i)(api[_-]?key|apikey)[\s]*[:=][\s]*['"]?([A-Za-z0-9_-]{20,})['"]?""",
        "severity": "high",
        "confidence": 0.85,
        "description": "Generic API Key",
        "remediation": "Rotate API key immediately and rewrite Git history.",
    },
    {
        "name": "Password",
        "regex": r"""(?i)(password|passwd|pwd)[\s]*[:=][\s]*['"]?([A-Za-z0-9@#$%^&+=]{8,})['"]?""",
        "severity": "high",
        "confidence": 0.8,
        "description": "Password field",
        "remediation": "Change password immediately and rewrite Git history.",
    },
]


def compile_definition(definition: Dict[str, Any]) -> SecretPattern:
    """Compiles one raw pattern definition, raising PatternConfigError when it is malformed"""

    if not isinstance(definition, dict):
        raise PatternConfigError(f"Pattern definition must be an object, got {definition!r}")

    missing = [key for key in REQUIRED_FIELDS if key not in definition]
    if missing:
        raise PatternConfigError(
            f"Pattern {definition.get('name', '<unnamed>')!r} is missing: {', '.join(missing)}"
        )

    return SecretPattern.compile(
        name=definition["name"],
        regex=definition["regex"],
        severity=definition["severity"],
        confidence=definition["confidence"],
        description=definition["description"],
        remediation_text=definition["remediation"],
    )


class PatternRegistry:
    """
    An ordered, read-only registry of secret signature rules.

    Every entry is compiled and validated when the registry is built, so a malformed
    rule surfaces as PatternConfigError before any scan starts. Order is significant:
    the pattern detector reports findings in registry order.
    """

    def __init__(self, patterns: Iterable[SecretPattern] = None):
        if patterns is None:
            patterns = self._load_default_patterns()

        patterns = tuple(patterns)
        for pattern in patterns:
            if not isinstance(pattern, SecretPattern):
                raise TypeError("Pattern must be a SecretPattern instance.")
        self._patterns: Tuple[SecretPattern, ...] = patterns

    def _load_default_patterns(self) -> List[SecretPattern]:
        return [compile_definition(definition) for definition in DEFAULT_PATTERNS]

    @classmethod
    def from_definitions(
        cls, definitions: Iterable[Dict[str, Any]], include_defaults: bool = True
    ) -> "PatternRegistry":
        patterns = [compile_definition(d) for d in definitions]
        if include_defaults:
            patterns = list(cls().get_patterns()) + patterns
        return cls(patterns)

    @classmethod
    def from_json_file(cls, path: str, include_defaults: bool = True) -> "PatternRegistry":
        """
        Loads extra patterns from a JSON file holding a list of pattern objects.

        NOTE: the file is read once, at construction. Reading or parsing problems are
              reported as PatternConfigError just like a bad expression.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                definitions = json.load(f)
        except (OSError, ValueError) as e:
            raise PatternConfigError(f"Could not load patterns from {path}: {e}")

        if not isinstance(definitions, list):
            raise PatternConfigError(f"Patterns file {path} must contain a JSON list")

        registry = cls.from_definitions(definitions, include_defaults=include_defaults)
        logger.info(f"Loaded {len(definitions)} patterns from {path}")
        return registry

    def with_pattern(self, pattern: SecretPattern) -> "PatternRegistry":
        """Returns a new registry with the pattern appended, leaving this one untouched"""
        if not isinstance(pattern, SecretPattern):
            raise TypeError("Pattern must be a SecretPattern instance.")
        return PatternRegistry(self._patterns + (pattern,))

    def get_patterns(self) -> Tuple[SecretPattern, ...]:
        return self._patterns

    def __iter__(self) -> Iterator[SecretPattern]:
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)
