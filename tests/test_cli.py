from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

import cli.main as cli_main
from core.domain.errors import NoAnswer
from core.domain.models import ProjectVersion

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in ("KEEN_PROJECT", "KEEN_WRITE_KEY"):
        monkeypatch.delenv(name, raising=False)


def test_serve_refuses_to_start_without_credentials(monkeypatch: pytest.MonkeyPatch):
    started = []
    monkeypatch.setattr(cli_main, "run_server", lambda settings: started.append(settings))

    result = runner.invoke(cli_main.app, ["serve", "--port", "5354"])

    assert result.exit_code == 1
    assert started == []


def test_latest_prints_json(monkeypatch: pytest.MonkeyPatch):
    calls = []

    def fake_request_latest(pv, **kwargs):
        calls.append((pv, kwargs))
        return ProjectVersion(project=pv.project, version="3.1.4")

    monkeypatch.setattr(cli_main, "request_latest", fake_request_latest)

    result = runner.invoke(cli_main.app, ["latest", "widget", "--json", "--host", "127.0.0.1", "--port", "5354"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == {"project": "widget", "version": "3.1.4"}
    [(pv, kwargs)] = calls
    assert pv == ProjectVersion(project="widget", version="latest")
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 5354


def test_latest_reports_missing_answer(monkeypatch: pytest.MonkeyPatch):
    def no_answer(pv, **kwargs):
        raise NoAnswer("no PTR record")

    monkeypatch.setattr(cli_main, "request_latest", no_answer)

    result = runner.invoke(cli_main.app, ["latest", "widget", "2.0.0"])

    assert result.exit_code == 1


def test_report_sends_usage(monkeypatch: pytest.MonkeyPatch):
    sent = []
    monkeypatch.setattr(cli_main, "send", lambda pv, **kwargs: sent.append(pv))

    result = runner.invoke(cli_main.app, ["report", "registrator", "v7"])

    assert result.exit_code == 0, result.output
    assert sent == [ProjectVersion(project="registrator", version="v7")]
