import json
from collections import Counter
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Dict, Any, List

from data_classes import Finding, ScanResult, Severity

TOOL_NAME = "Git-History-Secrets-Scanner"
TOOL_VERSION = "1.0.0"


def redact_secret(secret: str) -> str:
    """only the first and last 4 chars of a secret are kept"""
    if len(secret) <= 12:
        return "*" * len(secret)
    return secret[:4] + "*" * (len(secret) - 8) + secret[-4:]


def _finding_dict(finding: Finding, redaction: bool) -> Dict[str, Any]:
    data = asdict(finding)
    if redaction:
        data["matched_text"] = redact_secret(finding.matched_text)
    return data


def build_report(
    result: ScanResult, repository: str, redaction: bool = True
) -> Dict[str, Any]:
    """Compiles a ScanResult into a structured, JSON-ready report dictionary"""

    findings_by_revision: Dict[str, List[Dict]] = {}
    for finding in result.findings:
        findings_by_revision.setdefault(finding.revision_ref, []).append(
            _finding_dict(finding, redaction)
        )

    return {
        "scan_info": {
            "repository": repository,
            "scan_date": datetime.now(timezone.utc).isoformat(),
            "status": result.status,
            "score": result.score,
            "message": result.message,
            "partial": result.partial,
            "revisions_scanned": result.revisions_scanned,
            "skipped_units": len(result.skipped_units),
            "total_findings": result.total_count,
            "high_severity": result.high_severity_count,
        },
        "findings_by_revision": findings_by_revision,
        "summary": {
            "finding_types": dict(Counter(f.finding_type for f in result.findings)),
            "details": result.details,
        },
        "remediation": result.remediation,
    }


def export_to_sarif(
    result: ScanResult, output_file: str = "results.sarif", redaction: bool = True
) -> str:
    """Exports the results of the Scan to a SARIF format"""

    sarif = {
        "$schema": "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/Schemata/sarif-schema-2.1.0.json",
        "version": "2.1.0",
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": TOOL_NAME,
                        "version": TOOL_VERSION,
                        "rules": _generate_rules(result),
                    }
                },
                "results": _generate_results(result, redaction),
            }
        ],
    }

    with open(output_file, "w", encoding="utf-8") as f:
        json.dump(sarif, f, indent=2)

    return output_file


def _generate_rules(result: ScanResult) -> List[Dict]:
    """Function to generate SARIF rule definitions from finding types

    The function collects unique finding types and creates a rule entry for each, using
    the first finding of that type for its description, remediation and level.
    """

    first_by_type: Dict[str, Finding] = {}
    for finding in result.findings:
        first_by_type.setdefault(finding.finding_type, finding)

    rules = []
    for finding_type in sorted(first_by_type):
        finding = first_by_type[finding_type]
        rules.append(
            {
                "id": finding_type,
                "name": finding_type.replace("-", " ").title(),
                "shortDescription": {"text": f"Detects {finding_type}"},
                "fullDescription": {
                    "text": finding.description
                    or f"This rule identifies potential {finding_type} in Git history."
                },
                "help": {"text": finding.remediation_text},
                "defaultConfiguration": {"level": _map_level(finding.severity)},
                "properties": {"tags": ["security", "secrets"]},
            }
        )

    return rules


def _generate_results(result: ScanResult, redaction: bool = True) -> List[Dict]:
    """Generate a list of SARIF result objects from the scan findings

    Each result includes:
     - rule reference
     - severity level
     - message
     - location details
     - fingerprints for deduplication
    """
    results = []

    for finding in result.findings:
        snippet = (
            redact_secret(finding.matched_text) if redaction else finding.matched_text
        )
        results.append(
            {
                "ruleId": finding.finding_type,
                "level": _map_level(finding.severity),
                "message": {
                    "text": f"{finding.finding_type} found in {finding.revision_kind.value} "
                    f"{finding.revision_ref[:8]}"
                },
                "locations": [
                    {
                        "physicalLocation": {
                            "artifactLocation": {
                                "uri": finding.file_path,
                                "uriBaseId": "SRCROOT",
                            },
                            "region": {
                                "startLine": finding.line_number,
                                "snippet": {"text": snippet},
                            },
                        }
                    }
                ],
                "partialFingerprints": {"commitHash": finding.revision_ref[:8]},
                "properties": {
                    "confidence": float(finding.confidence),
                    "revision": finding.revision_ref,
                    "revisionKind": finding.revision_kind.value,
                },
            }
        )

    return results


def _map_level(severity) -> str:
    mapping = {Severity.HIGH: "error", Severity.MEDIUM: "warning", Severity.LOW: "note"}
    try:
        return mapping[Severity.parse(severity)]
    except ValueError:
        return "note"
