"""Tests for workflow commands."""
from bicep_deploy.actions import core


def test_set_output_uses_github_output_file(tmp_path, monkeypatch):
    output_file = tmp_path / "github_output"
    monkeypatch.setenv("GITHUB_OUTPUT", str(output_file))

    core.set_output("multi", "line one\nline two")
    core.set_output("obj", {"a": 1})

    lines = output_file.read_text().splitlines()
    delimiter = lines[0].split("<<", 1)[1]
    assert lines[0] == f"multi<<{delimiter}"
    assert lines[1:4] == ["line one", "line two", delimiter]
    assert lines[4].startswith("obj<<ghadelimiter_")
    assert lines[5] == '{"a": 1}'


def test_set_output_falls_back_to_command(capsys):
    core.set_output("value", "50%\ndone")

    assert capsys.readouterr().out == "::set-output name=value::50%25%0Adone\n"


def test_set_secret(capsys):
    core.set_secret("hunter2")
    core.set_secret("")
    core.set_secret(None)

    assert capsys.readouterr().out == "::add-mask::hunter2\n"


def test_set_failed(capsys):
    assert not core.has_failed()

    core.set_failed("Validation failed")

    assert core.has_failed()
    assert capsys.readouterr().out == "::error::Validation failed\n"


def test_log_error_keeps_brackets(capsys):
    core.log_error("Resource [name] is invalid")

    assert "Resource [name] is invalid" in capsys.readouterr().out


def test_log_debug_only_when_runner_debug(monkeypatch, capsys):
    core.log_debug("hidden")
    assert capsys.readouterr().out == ""

    monkeypatch.setenv("RUNNER_DEBUG", "1")
    core.log_debug("shown")
    assert "Debug: shown" in capsys.readouterr().out
