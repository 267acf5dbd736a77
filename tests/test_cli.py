"""Tests for the command-line entry point."""

import pytest

from foodhub_server import cli, http_server, server
from foodhub_server.config import DEFAULT_GRAPHQL_URL


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "FOODHUB_GRAPHQL_URL",
        "FOODHUB_EMAIL",
        "FOODHUB_PASSWORD",
        "FOODHUB_TOKEN",
        "FOODHUB_SESSION_FILE",
        "FOODHUB_TIMEOUT",
        "FOODHUB_REFETCH_AFTER_MUTATION",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def started(monkeypatch) -> dict:
    """Record how each server mode would have been started."""
    calls: dict = {}

    async def fake_server_main(settings=None):
        calls["stdio"] = settings

    def fake_run_http_server(host, port, settings=None, log_level="info"):
        calls["http"] = {"host": host, "port": port, "settings": settings, "log_level": log_level}

    monkeypatch.setattr(server, "main", fake_server_main)
    monkeypatch.setattr(http_server, "run_http_server", fake_run_http_server)
    return calls


class TestLoadSettings:
    def test_environment_used_when_no_options(self):
        args = cli.build_parser().parse_args([])

        settings = cli.load_settings(args, {"FOODHUB_GRAPHQL_URL": "http://api.test/graphql"})

        assert settings.graphql_url == "http://api.test/graphql"
        assert settings.refetch_after_mutation is True

    def test_options_override_environment(self):
        args = cli.build_parser().parse_args(
            ["--graphql-url", "http://cli.test/graphql", "--timeout", "5", "--no-refetch"]
        )

        settings = cli.load_settings(
            args, {"FOODHUB_GRAPHQL_URL": "http://env.test/graphql", "FOODHUB_TOKEN": "tok"}
        )

        assert settings.graphql_url == "http://cli.test/graphql"
        assert settings.timeout == 5.0
        assert settings.refetch_after_mutation is False
        assert settings.token == "tok"


class TestMain:
    def test_stdio_is_default(self, started):
        cli.main([])

        assert started["stdio"].graphql_url == DEFAULT_GRAPHQL_URL
        assert "http" not in started

    def test_http_mode_passes_settings_and_log_level(self, started, tmp_path):
        session_file = str(tmp_path / "session.json")

        cli.main(
            [
                "--mode",
                "http",
                "--port",
                "9000",
                "--session-file",
                session_file,
                "--log-level",
                "debug",
            ]
        )

        assert started["http"]["port"] == 9000
        assert started["http"]["host"] == "0.0.0.0"
        assert started["http"]["log_level"] == "debug"
        assert started["http"]["settings"].session_file == session_file

    def test_invalid_timeout_exits_with_usage_error(self, started, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--timeout", "0"])

        assert exc_info.value.code == 2
        assert "timeout" in capsys.readouterr().err
        assert started == {}

    def test_unknown_mode_rejected(self):
        with pytest.raises(SystemExit):
            cli.main(["--mode", "sse"])
