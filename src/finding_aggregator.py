from collections import Counter
from typing import Iterable, List

from data_classes import Finding, ScanResult, Severity, SkippedUnit

HISTORY_REWRITE_TOOLS = [
    "- git filter-repo: https://github.com/newren/git-filter-repo",
    "- BFG Repo-Cleaner: https://rtyley.github.io/bfg-repo-cleaner/",
]


def render_remediation(findings: List[Finding]) -> str:
    """
    Builds the remediation guidance for a list of findings.

    The text only depends on the counts and finding types, so the same findings always
    produce the same guidance.
    """

    if not findings:
        return "No secrets found in Git history. No action required."

    high = len([f for f in findings if f.severity == Severity.HIGH])
    by_type = Counter(f.finding_type for f in findings)
    revisions = len({f.revision_ref for f in findings})

    lines = [
        "CRITICAL: Secrets found in Git history!",
        "",
        f"{len(findings)} findings ({high} high severity) across {revisions} revisions.",
    ]
    for finding_type in sorted(by_type):
        lines.append(f"- {finding_type}: {by_type[finding_type]}")

    lines += [
        "",
        "Immediate Actions Required:",
        "1. Rotate/revoke all exposed credentials immediately",
        "2. Rewrite Git history to remove secrets",
        "3. Notify team members about the exposure",
        "",
        "Tools for History Rewriting:",
        *HISTORY_REWRITE_TOOLS,
        "",
        "Commands:",
        "# Using git filter-repo",
        "git filter-repo --replace-text <(echo 'SECRET_VALUE==>REDACTED')",
        "",
        "# Using BFG",
        "java -jar bfg.jar --replace-text replacements.txt",
        "",
        "After rewriting history:",
        "git push --force-with-lease origin main",
    ]
    return "\n".join(lines)


def aggregate(
    findings: Iterable[Finding],
    revisions_scanned: int = 0,
    skipped_units: Iterable[SkippedUnit] = (),
    partial: bool = False,
) -> ScanResult:
    """
    Builds the ScanResult from findings in pipeline order.

    No deduplication happens: a secret inherited by many commits is reported once per
    commit, because each is a point where it may already have been fetched elsewhere.
    """

    findings = tuple(findings)
    return ScanResult(
        findings=findings,
        remediation=render_remediation(list(findings)),
        revisions_scanned=revisions_scanned,
        skipped_units=tuple(skipped_units),
        partial=partial,
    )
