"""
Tests for the command line interface.

Every command runs against a JSON state directory under tmp_path, the
way separate shell invocations would.
"""

import io
import json

import pytest

from storydigest.cli import main
from tests.conftest import DASHBOARD_ANSWERS


@pytest.fixture
def cli(tmp_path, monkeypatch, capsys):
    """Run the CLI and return (exit code, stdout, stderr)."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("STORYDIGEST_TOKENIZER_PROVIDER", "approximate")
    state_dir = str(tmp_path / "state")

    def run(*args):
        code = main(["--state-dir", state_dir, *args])
        captured = capsys.readouterr()
        return code, captured.out, captured.err

    return run


@pytest.fixture
def digested_cli(cli, transcript_file):
    for command in (["new", str(transcript_file)], ["pass2"], ["pass3"], ["pass4"]):
        code, _, err = cli(*command)
        assert code == 0, err
    return cli


class TestCommands:
    """Tests for individual commands."""

    def test_new(self, cli, transcript_file):
        code, out, _ = cli("new", str(transcript_file))

        assert code == 0
        assert out.startswith("Session sess_")
        assert "4 statements (4 meaningful), 2 topics" in out

    def test_new_json(self, cli, transcript_file):
        code, out, _ = cli("--json", "new", str(transcript_file))

        assert code == 0
        payload = json.loads(out)
        assert payload["statements"] == 4
        assert payload["session"]["input"]["source_format"] == "plain_text"

    def test_new_from_stdin(self, cli, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("The search bar should filter by date.\n"))

        code, out, _ = cli("new", "-")

        assert code == 0
        assert "1 statements" in out

    def test_missing_input_file(self, cli, tmp_path):
        code, _, err = cli("new", str(tmp_path / "absent.txt"))

        assert code == 1
        assert "error:" in err

    def test_no_active_session(self, cli):
        code, _, err = cli("pass2")

        assert code == 1
        assert "No active digest session" in err

    def test_prerequisite_named(self, cli, transcript_file):
        cli("new", str(transcript_file))

        code, _, err = cli("pass3")

        assert code == 1
        assert "run `pass2` first" in err

    def test_pass2_reports_coverage(self, cli, transcript_file):
        cli("new", str(transcript_file))

        code, out, _ = cli("pass2")

        assert code == 0
        assert "Mapped 4/4 statements (100.0%), 0 orphans" in out

    def test_questions_listed_by_priority(self, digested_cli):
        code, out, _ = digested_cli("questions")

        assert code == 0
        assert out.splitlines()[0] == "1. [P1] Which columns should the table in Dashboard show?"

    def test_interruption_reported_on_stderr(self, digested_cli):
        digested_cli("questions")

        code, _, err = digested_cli("status")

        assert code == 0
        assert "was interrupted while awaiting answers" in err

    def test_delete_needs_force(self, digested_cli):
        _, out, _ = digested_cli("--json", "sessions")
        session_id = json.loads(out)[0]["session_id"]

        code, _, err = digested_cli("delete", session_id)
        assert code == 1
        assert "--force" in err

        code, _, _ = digested_cli("delete", session_id, "--force")
        assert code == 0


class TestReviewFlow:
    """Tests for the clarification-to-finalize flow."""

    def test_full_flow(self, digested_cli):
        digested_cli("questions")

        code, out, _ = digested_cli("answer", DASHBOARD_ANSWERS)
        assert code == 0
        assert "Recorded 5 answer(s) via numbered_list. All questions answered." in out

        code, out, _ = digested_cli("generate-stories")
        assert code == 0
        assert out.startswith("story_001: Dashboard (high, coverage 100.0%)")

        code, out, _ = digested_cli("present")
        assert code == 0
        assert "[story_001_ac_1]" in out

        code, out, _ = digested_cli("approve")
        assert out.strip() == "Approved story_001"

        code, out, _ = digested_cli("finalize")
        assert code == 0
        assert out.strip() == "Added 1 task(s) to the ready queue"

    def test_rejected_edit_lists_fields(self, digested_cli):
        digested_cli("generate-stories")

        code, _, err = digested_cli("edit-story", "story_001", "--role", " ")

        assert code == 1
        assert "role: role cannot be empty" in err

    def test_unknown_clause(self, digested_cli):
        digested_cli("generate-stories")

        code, _, err = digested_cli(
            "edit-story", "story_001", "--update-criterion", "story_001_ac_1", "because", "x"
        )

        assert code == 1
        assert "unknown clause: because" in err

    def test_edit_story(self, digested_cli):
        digested_cli("generate-stories")

        code, out, _ = digested_cli(
            "edit-story",
            "story_001",
            "--add-criterion",
            "I am on a phone",
            "I open the dashboard",
            "the table scrolls",
        )

        assert code == 0
        assert "[story_001_ac_" in out
        assert "has no traceable source and is an assumption" in out
