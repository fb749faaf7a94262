# Keyloader - Command Line Entry Point
#
#   keyloader octocat                       # merge into ~/.ssh/authorized_keys
#   keyloader octocat -o ./authorized_keys  # another target file
#   keyloader octocat --provider gitlab -j  # GitLab, JSON report
#
# Exit code 0 on success (including "nothing to add"), 1 on any fatal
# error, 130 when interrupted.

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import load_settings
from .core.audit_log import configure_logging
from .exceptions import KeyloaderError
from .loader import LoadReport, load_keys
from .remote.forge import PROVIDERS, ForgeKeySource

logger = logging.getLogger(__name__)

OUTPUT_HUMAN = "human"
OUTPUT_JSON = "json"
OUTPUT_STDOUT = "stdout"


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not a number")
    if number <= 0:
        raise argparse.ArgumentTypeError("must be greater than zero")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="keyloader",
        description="Copy a Git forge user's public SSH keys into authorized_keys",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s octocat                      # GitHub keys -> ~/.ssh/authorized_keys
  %(prog)s octocat --dry-run -m         # Show what would be added
  %(prog)s someone --provider gitlab    # GitLab instead of GitHub
  %(prog)s octocat -o /tmp/authorized_keys --json
        """,
    )
    parser.add_argument("username", help="Account whose public keys are fetched")
    parser.add_argument(
        "-o", "--output",
        default=None,
        help="authorized_keys file to update (default: ~/.ssh/authorized_keys)",
    )
    parser.add_argument(
        "--provider",
        choices=sorted(PROVIDERS),
        default=None,
        help="Forge to fetch keys from (default: github)",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="Override the provider URL (self-hosted forges)",
    )
    parser.add_argument(
        "--timeout",
        type=_positive_float,
        default=None,
        help="Request timeout in seconds (default: 10)",
    )
    parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Rewrite the file even when no key was added",
    )
    parser.add_argument(
        "-n", "--dry-run",
        action="store_true",
        help="Show what would be done without writing the file",
    )

    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "-m", "--human",
        dest="output_mode", action="store_const", const=OUTPUT_HUMAN,
        help="Human readable summary (default on a terminal)",
    )
    output.add_argument(
        "-j", "--json",
        dest="output_mode", action="store_const", const=OUTPUT_JSON,
        help="JSON report (default when stdout is not a terminal)",
    )
    output.add_argument(
        "-p", "--stdout",
        dest="output_mode", action="store_const", const=OUTPUT_STDOUT,
        help="Print the added key lines, one per line",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count", default=0,
        help="More log output on stderr (-v info, -vv debug)",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only log errors and print no report",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def resolve_output_mode(requested: Optional[str], is_tty: bool) -> str:
    """Flags win; otherwise human on a terminal, JSON when piped."""
    if requested:
        return requested
    return OUTPUT_HUMAN if is_tty else OUTPUT_JSON


def format_report(report: LoadReport, mode: str) -> str:
    if mode == OUTPUT_JSON:
        return json.dumps(report.to_dict())
    if mode == OUTPUT_STDOUT:
        return "\n".join(record.canonical() for record in report.merge.added)
    return _format_human(report)


def _format_human(report: LoadReport) -> str:
    result = report.merge
    source = f"'{report.username}' on {report.provider}"

    if not report.user_found:
        head = f"No public SSH keys published for {source}."
    elif result.added:
        verb = "Would add" if report.dry_run else "Added"
        head = f"{verb} {len(result.added)} SSH key(s) for {source} to {report.path}."
    else:
        head = f"No new SSH keys for {source}; {report.path} already up to date."

    details = [f"{result.already_present_count} already present"]
    if result.skipped_invalid_count:
        details.append(f"{result.skipped_invalid_count} invalid line(s) skipped")
    lines = [f"{head} ({', '.join(details)})"]

    for record in result.added:
        label = f" {record.comment}" if record.comment else ""
        lines.append(f"  + {record.key_type} {record.fingerprint}{label}")

    if report.written and not result.added:
        lines.append(f"  {report.path} rewritten (--force)")
    return "\n".join(lines)


def format_error(exc: BaseException) -> str:
    """``error: ...`` followed by one ``caused by:`` line per cause."""
    lines = [f"error: {exc}"]
    cause = exc.__cause__
    while cause is not None:
        lines.append(f"  caused by: {cause}")
        cause = cause.__cause__
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    verbosity = -1 if args.quiet else args.verbose
    configure_logging(verbosity)

    try:
        settings = load_settings()
        provider = args.provider or settings.provider
        source = ForgeKeySource.for_provider(
            provider,
            base_url=args.base_url or settings.base_url,
            timeout=args.timeout or settings.timeout,
        )
        path = Path(args.output or settings.output).expanduser()
        logger.info("Downloading keys for '%s' from %s", args.username, provider)

        report = load_keys(
            args.username,
            path,
            source,
            force=args.force,
            dry_run=args.dry_run,
        )
    except KeyloaderError as exc:
        print(format_error(exc), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130

    if not args.quiet:
        mode = resolve_output_mode(args.output_mode, sys.stdout.isatty())
        text = format_report(report, mode)
        if text:
            print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
