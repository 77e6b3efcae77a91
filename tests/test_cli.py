"""Tests for the projectflow command line."""

import re
import sys
from unittest import mock

import pytest

from projectflow.cli import build_parser, main


@pytest.fixture
def run(clean_env, tmp_path, monkeypatch, capsys):
    """Invoke main() against a temporary home; returns (exit_code, stdout, stderr)."""
    monkeypatch.chdir(tmp_path)

    def _run(*argv):
        code = 0
        try:
            main(["--home", str(tmp_path), *argv])
        except SystemExit as exc:
            code = exc.code
        out, err = capsys.readouterr()
        return code, out, err

    return _run


@pytest.fixture
def project_id(run):
    code, out, _ = run(
        "new", "--owner", "learner-1", "--title", "Line follower robot",
        "--step", "Sketch design", "--step", "Build chassis",
    )
    assert code == 0
    return re.search(r"Created (p-\w+)", out).group(1)


class TestCLIModuleImports:
    def test_main_module_exits_without_command(self):
        sys.modules.pop("projectflow.__main__", None)
        with mock.patch("sys.argv", ["projectflow"]):
            with pytest.raises(SystemExit):
                import projectflow.__main__  # noqa: F401

    def test_review_step_needs_a_verdict(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["review-step", "p-1", "step-1"])


class TestCommands:
    def test_new_and_show(self, run, project_id, tmp_path):
        assert (tmp_path / ".projectflow" / "projects" / f"{project_id}.json").exists()
        code, out, _ = run("show", project_id)
        assert code == 0
        assert "stage: planning" in out
        assert "template: wf-engineering-design" in out
        assert "[ ] step-1 Sketch design" in out

    def test_templates(self, run):
        _, out, _ = run("templates")
        assert "wf-engineering-design  Engineering Design Process (default)" in out
        assert "Ask > Imagine > Plan > Create > Improve" in out

    def test_full_cycle(self, run, project_id):
        assert run("start", project_id)[0] == 0
        for step in ("step-1", "step-2"):
            run("move", project_id, step, "doing")
            assert run("move", project_id, step, "done", "--proof", "img.png")[0] == 0

        code, out, _ = run("commit", project_id, "-m", "All done")
        assert code == 0
        assert "(2 steps)" in out

        code, out, _ = run("submit", project_id)
        assert code == 0
        assert f"{project_id}: submitted" in out

        code, out, _ = run("approve", project_id, "--feedback", "Great work")
        assert f"{project_id}: published" in out

        code, _, err = run("add-step", project_id, "Late idea")
        assert code == 1
        assert "cannot be edited" in err

    def test_submit_incomplete_suggests_force(self, run, project_id):
        run("start", project_id)
        code, _, err = run("submit", project_id)
        assert code == 1
        assert "--force" in err

        code, out, _ = run("submit", project_id, "--force")
        assert code == 0
        assert "submitted" in out

    def test_restore_needs_yes(self, run, project_id):
        _, out, _ = run("commit", project_id, "-m", "checkpoint")
        commit_id = re.search(r"Committed (\d+)", out).group(1)
        run("rm-step", project_id, "step-2")

        code, _, err = run("restore", project_id, commit_id)
        assert code == 1
        assert "--yes" in err

        assert run("restore", project_id, commit_id, "--yes")[0] == 0
        _, out, _ = run("show", project_id)
        assert "step-2 Build chassis" in out

    def test_log_and_feed(self, run, project_id):
        run("commit", project_id, "-m", "wheels on")
        _, out, _ = run("log", project_id)
        assert "wheels on" in out
        _, out, _ = run("feed", "--search", "wheels")
        assert "Line follower robot: wheels on" in out

    def test_invalid_move(self, run, project_id):
        code, _, err = run("move", project_id, "step-1", "done", "--proof", "img.png")
        assert code == 1
        assert "Invalid transition" in err

    def test_unknown_project(self, run):
        code, _, err = run("show", "p-missing")
        assert code == 1
        assert "Project not found" in err

    def test_bad_config(self, run, monkeypatch):
        monkeypatch.setenv("PROJECTFLOW_LOG_LEVEL", "LOUD")
        code, _, err = run("list")
        assert code == 1
        assert "PROJECTFLOW_LOG_LEVEL" in err
