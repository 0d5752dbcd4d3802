"""
Standalone demo of the TestPilot analysis dashboard.
Normalizes a sample agent reply and walks through history without
calling the agent.

Usage: python demo.py
"""

import json
import os

from app.analyzer import build_entry
from app.history import HistoryStore, trend
from app.normalizer import normalize
from app.report import generate_report_markdown
from app.samples import SAMPLE_INPUT, SAMPLE_RESULT


def sample_envelope(result: dict) -> dict:
    """Wrap a result the way the coordinator agent does: double-encoded, one level deep."""
    return {
        "success": True,
        "response": {"result": json.dumps({"result": result})},
    }


def print_history(store: HistoryStore):
    """Print history with bug-count trends."""
    entries = store.query()
    print("\n" + "="*70)
    print(f"HISTORY - {len(entries)} entries")
    print("="*70)
    for i, entry in enumerate(entries):
        print(f"{i}. {entry.result.total_bugs} bugs  trend={trend(entries, i).value:<10} "
              f"verdict={entry.result.verdict}  {entry.input_summary.splitlines()[0]}")
    print("="*70 + "\n")


if __name__ == "__main__":
    print("Normalizing sample agent reply...")
    result = normalize(sample_envelope(SAMPLE_RESULT))
    if result is None:
        raise SystemExit("Sample reply was rejected")
    print(f"✓ {result.total_bugs} bugs, verdict {result.verdict}\n")

    # A follow-up run after the JWT fix landed
    fixed = json.loads(json.dumps(SAMPLE_RESULT))
    fixed["bug_report"]["bugs"] = fixed["bug_report"]["bugs"][1:]
    fixed["bug_report"].update(total_bugs=2, critical_count=0)
    fixed["test_report"]["ci_verdict"]["status"] = "needs attention"
    rerun = normalize(sample_envelope(fixed))

    store = HistoryStore()
    store = store.append(build_entry(SAMPLE_INPUT, result))
    store = store.append(build_entry("PASS tests/auth/login.test.ts\n" + SAMPLE_INPUT, rerun))
    print_history(store)

    print(generate_report_markdown(result))

    os.makedirs("output", exist_ok=True)
    with open("output/demo_history.json", "w") as f:
        f.write(store.to_json())
    print("\n✓ History saved to: output/demo_history.json")
