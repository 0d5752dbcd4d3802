"""
Main entry point for the TestPilot analysis dashboard.

Usage:
    python -m app.main analyze --input test_output.txt
    python -m app.main analyze --text "FAIL tests/auth ..." --output output/report.md
    python -m app.main history --search auth --verdict deploy_blocked
    python -m app.main export <entry-id>
    python -m app.main delete <entry-id>
    python -m app.main clear
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from app import config
from app.agent_client import AgentClient
from app.analyzer import AnalyzerError, Dashboard
from app.history import ALL_VERDICTS, trend, Trend
from app.models import BugReport, CIVerdict, TestReport, TestSummary
from app.report import generate_report_markdown
from app.storage import HistoryRepository, KeyValueStorage

TREND_ICONS = {
    Trend.DECREASING: "↓",
    Trend.INCREASING: "↑",
    Trend.FLAT: "=",
    Trend.UNDEFINED: " ",
}


def build_dashboard(data_dir: Optional[str] = None) -> Dashboard:
    """Wire up a dashboard from configuration."""
    client = AgentClient(config.AGENT_ENDPOINT, timeout=config.AGENT_TIMEOUT)
    repository = HistoryRepository(KeyValueStorage(data_dir or config.DATA_DIR))
    return Dashboard(client, repository, config.AGENT_ID)


def agent_name(agent_id: str) -> str:
    """Display name of a configured agent, the id itself if unknown."""
    for agent in config.AGENTS:
        if agent["id"] == agent_id:
            return agent["name"]
    return agent_id


def save_output(markdown: str, filepath: str):
    """Save the markdown report to a file."""
    output_dir = Path(filepath).parent
    output_dir.mkdir(parents=True, exist_ok=True)

    with open(filepath, 'w', encoding='utf-8') as f:
        f.write(markdown)

    print(f"\n✓ Report saved to: {filepath}")


def print_summary(result):
    """Print human-readable summary to console."""
    print("\n" + "="*60)
    print("TEST ANALYSIS SUMMARY")
    print("="*60)

    br = result.bug_report
    if isinstance(br, BugReport):
        print(f"\nTotal Bugs: {br.total_bugs if br.total_bugs is not None else 0}")
        print(f"  Critical: {br.critical_count or 0}")
        print(f"  High: {br.high_count or 0}")
        print(f"  Medium: {br.medium_count or 0}")
        print(f"  Low: {br.low_count or 0}")
        for i, bug in enumerate(br.bug_list, 1):
            print(f"\n{i}. [{bug.severity.upper()}] {bug.title or 'Untitled'}")
            if bug.suggested_fix:
                print(f"   Fix: {bug.suggested_fix}")
    elif br:
        print(f"\nBug report (unparsed):\n{br}")

    tr = result.test_report
    if isinstance(tr, TestReport):
        ts = tr.test_summary
        if isinstance(ts, TestSummary):
            print(f"\nTests: {ts.passed or 0} passed, {ts.failed or 0} failed, "
                  f"{ts.total_tests or 0} total ({ts.pass_rate or 'N/A'})")
        if isinstance(tr.ci_verdict, CIVerdict):
            print(f"CI Verdict: {str(tr.ci_verdict.status or 'unknown').replace('_', ' ').upper()}")
    elif tr:
        print(f"\nTest report (unparsed):\n{tr}")

    print("\n" + "="*60)


def print_history(entries):
    if not entries:
        print("No history entries.")
        return
    for i, entry in enumerate(entries):
        bugs = entry.result.total_bugs
        verdict = entry.result.verdict or "-"
        icon = TREND_ICONS[trend(entries, i)]
        summary = entry.input_summary.splitlines()[0] if entry.input_summary else ""
        print(f"{entry.id}  {entry.date[:19]}  {icon} {str(bugs) if bugs is not None else '?':>3} bugs  "
              f"{verdict:<16} {summary}")


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="TestPilot - AI analysis of test runs with bounded history"
    )
    parser.add_argument(
        "--data-dir",
        default=None,
        help=f"History directory (default: {config.DATA_DIR})"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Analyze test output")
    source = analyze.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", help="Path to a file containing test output")
    source.add_argument("--text", help="Test output as a string")
    analyze.add_argument("--output", help="Also save the markdown report here")

    history = sub.add_parser("history", help="List past analyses")
    history.add_argument("--search", default="", help="Filter by input text")
    history.add_argument("--verdict", default=ALL_VERDICTS, help="Filter by CI verdict (default: all)")

    export = sub.add_parser("export", help="Print the markdown report of a past analysis")
    export.add_argument("entry_id")

    delete = sub.add_parser("delete", help="Delete a history entry")
    delete.add_argument("entry_id")

    sub.add_parser("clear", help="Delete all history")

    args = parser.parse_args(argv)
    dashboard = build_dashboard(args.data_dir)

    try:
        if args.command == "analyze":
            if args.input:
                print(f"Loading test output from: {args.input}")
                input_text = Path(args.input).read_text(encoding="utf-8")
            else:
                input_text = args.text

            print(f"\nRunning analysis (agent: {agent_name(dashboard.agent_id)})...")
            outcome = dashboard.analyze(input_text)
            if not outcome.ok:
                print(f"Error: {outcome.error}", file=sys.stderr)
                return 1

            print_summary(outcome.result)
            print(f"\n✓ Saved to history as {outcome.entry.id}")
            if args.output:
                save_output(generate_report_markdown(outcome.result), args.output)

        elif args.command == "history":
            print_history(dashboard.search(args.search, args.verdict))

        elif args.command == "export":
            entry = dashboard.history.get(args.entry_id)
            if entry is None:
                print(f"Error: no history entry {args.entry_id}", file=sys.stderr)
                return 1
            print(generate_report_markdown(entry.result))

        elif args.command == "delete":
            dashboard.delete_entry(args.entry_id)
            print(f"✓ Deleted {args.entry_id}")

        elif args.command == "clear":
            dashboard.clear_history()
            print("✓ History cleared")

        return 0

    except FileNotFoundError:
        print(f"Error: input file not found: {args.input}", file=sys.stderr)
        return 1

    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: could not read input file {args.input}: {e}", file=sys.stderr)
        return 1

    except AnalyzerError as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
