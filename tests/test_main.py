"""
Tests for the command line interface.

Run with: pytest tests/
"""

import pytest
from app import config
from app import main as cli
from app.analyzer import Dashboard
from app.models import AgentResponse
from app.samples import SAMPLE_RESULT
from app.storage import HistoryRepository, KeyValueStorage


class FakeClient:
    def __init__(self, reply):
        self.reply = reply

    def call(self, message, agent_id):
        return self.reply


@pytest.fixture
def use_reply(monkeypatch):
    def install(reply):
        def build(data_dir=None):
            return Dashboard(FakeClient(reply), HistoryRepository(KeyValueStorage(data_dir)), "coordinator")
        monkeypatch.setattr(cli, "build_dashboard", build)
    return install


def test_analyze_then_history_and_export(tmp_path, use_reply, capsys):
    use_reply(AgentResponse(success=True, response={"result": SAMPLE_RESULT}))
    input_file = tmp_path / "run.txt"
    input_file.write_text("FAIL tests/auth/login.test.ts")
    report_file = tmp_path / "out" / "report.md"

    code = cli.main(["--data-dir", str(tmp_path), "analyze", "--input", str(input_file),
                     "--output", str(report_file)])
    out = capsys.readouterr().out
    assert code == 0
    assert "CI Verdict: DEPLOY BLOCKED" in out
    assert "**Status:** DEPLOY BLOCKED" in report_file.read_text()

    assert cli.main(["--data-dir", str(tmp_path), "history", "--verdict", "deploy_blocked"]) == 0
    listing = capsys.readouterr().out
    assert "FAIL tests/auth/login.test.ts" in listing

    entry_id = listing.split()[0]
    assert cli.main(["--data-dir", str(tmp_path), "export", entry_id]) == 0
    assert capsys.readouterr().out.startswith("# TestPilot AI Analysis Report")


def test_analyze_rejected_reply(tmp_path, use_reply, capsys):
    use_reply(AgentResponse(success=True, response={"result": "{broken"}))

    assert cli.main(["--data-dir", str(tmp_path), "analyze", "--text", "FAIL x"]) == 1
    assert "Could not parse" in capsys.readouterr().err


def test_analyze_missing_file(tmp_path, use_reply, capsys):
    use_reply(AgentResponse(success=False))

    assert cli.main(["--data-dir", str(tmp_path), "analyze", "--input", str(tmp_path / "nope.txt")]) == 1
    assert "not found" in capsys.readouterr().err


def test_empty_text(tmp_path, use_reply, capsys):
    use_reply(AgentResponse(success=False))

    assert cli.main(["--data-dir", str(tmp_path), "analyze", "--text", " "]) == 1
    assert "empty" in capsys.readouterr().err


def test_export_unknown_entry(tmp_path, use_reply):
    use_reply(AgentResponse(success=False))
    assert cli.main(["--data-dir", str(tmp_path), "export", "missing"]) == 1


def test_delete_and_clear(tmp_path, use_reply, capsys):
    use_reply(AgentResponse(success=True, response={"result": SAMPLE_RESULT}))
    cli.main(["--data-dir", str(tmp_path), "analyze", "--text", "FAIL x"])
    cli.main(["--data-dir", str(tmp_path), "clear"])
    capsys.readouterr()

    cli.main(["--data-dir", str(tmp_path), "history"])
    assert "No history entries." in capsys.readouterr().out


def test_analyze_directory_as_input(tmp_path, use_reply, capsys):
    use_reply(AgentResponse(success=False))

    assert cli.main(["--data-dir", str(tmp_path), "analyze", "--input", str(tmp_path)]) == 1
    assert "could not read input file" in capsys.readouterr().err


def test_analyze_non_utf8_input(tmp_path, use_reply, capsys):
    use_reply(AgentResponse(success=False))
    input_file = tmp_path / "run.log"
    input_file.write_bytes(b"FAIL \xff\xfe tests/auth")

    assert cli.main(["--data-dir", str(tmp_path), "analyze", "--input", str(input_file)]) == 1
    assert "could not read input file" in capsys.readouterr().err


def test_banner_names_the_agent(tmp_path, monkeypatch, capsys):
    reply = AgentResponse(success=True, response={"result": SAMPLE_RESULT})
    monkeypatch.setattr(cli, "build_dashboard", lambda data_dir=None: Dashboard(
        FakeClient(reply), HistoryRepository(KeyValueStorage(data_dir)), config.AGENTS[0]["id"]))

    assert cli.main(["--data-dir", str(tmp_path), "analyze", "--text", "FAIL x"]) == 0
    assert f"(agent: {config.AGENTS[0]['name']})" in capsys.readouterr().out
    assert cli.agent_name("unregistered") == "unregistered"


def test_loosely_typed_reply_is_printed(tmp_path, use_reply, capsys):
    use_reply(AgentResponse(success=True, response={"result": {
        "bug_report": {"bugs": None, "total_bugs": ["a", "b"]},
        "test_report": {"test_summary": "19 run", "ci_verdict": "blocked"},
    }}))

    assert cli.main(["--data-dir", str(tmp_path), "analyze", "--text", "FAIL x"]) == 0
    assert "Total Bugs: ['a', 'b']" in capsys.readouterr().out

    assert cli.main(["--data-dir", str(tmp_path), "history"]) == 0
    assert "['a', 'b'] bugs" in capsys.readouterr().out
