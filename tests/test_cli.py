"""Tests for the command line interface."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from alien import __version__
from alien import cli
from alien.cli import app

from conftest import mock_client, refuse, respond

runner = CliRunner()


@pytest.fixture
def serve(monkeypatch):
    """Point ``alien check`` at a mock transport."""
    def install(handler):
        monkeypatch.setattr(cli, "build_client", lambda timeout: mock_client(handler))
    return install


def test_version():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


class TestRun:
    """Tests for ``alien run``."""

    def test_no_endpoints(self, tmp_path: Path, monkeypatch):
        """Without endpoints or configured probes run exits with an error."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))

        result = runner.invoke(app, ["run", "--config", str(tmp_path / "missing.yaml")])

        assert result.exit_code == 1
        assert "No endpoints to probe" in result.output

    def test_unknown_log_level(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))

        result = runner.invoke(app, ["run", "https://example.com", "--log-level", "LOUD"])

        assert result.exit_code == 1
        assert "Unknown log level" in result.output


class TestCheck:
    """Tests for ``alien check``."""

    def test_success(self, serve):
        serve(respond(200, "ok"))

        result = runner.invoke(app, ["check", "https://example.com/health"])

        assert result.exit_code == 0
        assert "Success" in result.output

    def test_status_failure(self, serve):
        serve(respond(500))

        result = runner.invoke(app, ["check", "https://example.com/health"])

        assert result.exit_code == 1
        assert "Failure" in result.output

    def test_contains(self, serve):
        serve(respond(200, "status: healthy"))

        ok = runner.invoke(app, ["check", "https://a", "--contains", "healthy"])
        bad = runner.invoke(app, ["check", "https://a", "--contains", "degraded"])

        assert ok.exit_code == 0
        assert bad.exit_code == 1

    def test_transport_failure(self, serve):
        serve(refuse)

        result = runner.invoke(app, ["check", "https://example.com/health"])

        assert result.exit_code == 1
        assert "Failure" in result.output
