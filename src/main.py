import json
import sys
import argparse
import logging
import signal
import threading

from data_classes import PatternConfigError, RepositoryAccessError
from sarif_export import build_report, export_to_sarif
from scan_config import ScanConfig
from secrets_scanner import scan_repository

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logging.getLogger("git.cmd").setLevel(logging.WARNING)
logging.getLogger("git.util").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

EXIT_PASS = 0
EXIT_FINDINGS = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Git history secrets scanner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
        Examples:
            #Scan every commit and stash of a local repository
            %(prog)s --repo /path/to/repo --out report.json
            #Lower the entropy threshold and export SARIF
            %(prog)s --repo . --entropy-threshold 5.0 --sarif
            #Scan with verbose output
            %(prog)s --repo . --verbose
        """,
    )
    parser.add_argument("--repo", required=True, help="Path to local repository")
    parser.add_argument(
        "--out",
        default="report.json",
        help="Output file for JSON report (default: report.json)",
    )
    parser.add_argument(
        "--workers", type=int, default=None, help="Number of revisions scanned in parallel"
    )
    parser.add_argument(
        "--entropy-threshold",
        type=float,
        default=None,
        help="Minimum Shannon entropy for a token to be reported (default: 5.5)",
    )
    parser.add_argument(
        "--min-token-length",
        type=int,
        default=None,
        help="Tokens shorter than this are not entropy-scored (default: 24)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds before a single file read is abandoned (default: 30)",
    )
    parser.add_argument(
        "--patterns", default=None, help="JSON file with additional secret patterns"
    )
    parser.add_argument(
        "--redaction",
        choices=["0", "1"],
        default="1",
        help="Redaction for secrets in report (default=True(1))",
    )
    parser.add_argument(
        "--sarif",
        action="store_true",
        help="Export findings in SARIF format (compatible with GitHub, JetBrains IDEs, VS Code)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    redaction = args.redaction == "1"

    try:
        config = ScanConfig.from_env(
            entropy_threshold=args.entropy_threshold,
            min_token_length=args.min_token_length,
            max_workers=args.workers,
            read_timeout=args.timeout,
            patterns_file=args.patterns,
        )

        logger.info(f"Scanning repository history: {args.repo}")
        # Ctrl-C stops the scan and keeps the findings gathered so far
        cancel_event = threading.Event()
        previous_handler = signal.signal(
            signal.SIGINT, lambda signum, frame: cancel_event.set()
        )
        try:
            result = scan_repository(args.repo, config=config, cancel_event=cancel_event)
        finally:
            signal.signal(signal.SIGINT, previous_handler)

    except (RepositoryAccessError, PatternConfigError, ValueError) as e:
        logger.error(f"Scan failed: {e}")
        return EXIT_ERROR

    report = build_report(result, args.repo, redaction=redaction)
    with open(args.out, "w") as f:
        json.dump(report, f, indent=2, default=str)

    print("Scan completed")
    print(f"Repository: {args.repo}")
    print(f"Status: {result.status.upper()} - {result.message}")
    print(f"Revisions scanned: {result.revisions_scanned}")
    print(f"Total findings: {result.total_count}")
    print(f"High severity: {result.high_severity_count}")
    if result.partial:
        print("WARNING: scan was interrupted, results are partial")
    print("Finding types:")
    for finding_type, count in report["summary"]["finding_types"].items():
        print(f"  - {finding_type}: {count}")
    print(f"Detailed report saved to: {args.out}")

    if args.sarif:
        sarif_file = export_to_sarif(result, "results.sarif", redaction=redaction)
        print(f"SARIF exported: {sarif_file}")

    if not result.passed:
        print()
        print(result.remediation)
        return EXIT_FINDINGS
    return EXIT_PASS


if __name__ == "__main__":
    sys.exit(main())
