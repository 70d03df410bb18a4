"""Tests for the hlsgate CLI entrypoint."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from hlsgate.interfaces.cli import cli


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("HOST", "PORT", "BLOB_READ_WRITE_TOKEN"):
        monkeypatch.delenv(name, raising=False)


class TestBuildCliOverrides:
    def test_empty_when_no_flags(self) -> None:
        args = cli._parse_args([])
        assert cli.build_cli_overrides(args) == {}

    def test_collects_set_flags(self) -> None:
        args = cli._parse_args(
            ["--storage-backend", "local", "--log-level", "DEBUG", "--log-format", "json"]
        )
        assert cli.build_cli_overrides(args) == {
            "storage_backend": "local",
            "log_level": "DEBUG",
            "log_format": "json",
        }

    def test_rejects_unknown_backend(self) -> None:
        with pytest.raises(SystemExit):
            cli._parse_args(["--storage-backend", "s3"])


class TestStart:
    def test_defaults_to_port_3000(self) -> None:
        with (
            patch.object(cli, "uvicorn") as uvicorn_mock,
            patch.object(cli, "configure_logging", return_value={"version": 1}),
            patch.object(cli, "create_app", return_value=MagicMock()) as create_app,
        ):
            cli.start([])

        kwargs = uvicorn_mock.run.call_args.kwargs
        assert kwargs["host"] == "0.0.0.0"
        assert kwargs["port"] == 3000
        assert kwargs["log_config"] == {"version": 1}
        create_app.assert_called_once()

    def test_port_env_and_flag(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PORT", "8080")
        with (
            patch.object(cli, "uvicorn") as uvicorn_mock,
            patch.object(cli, "configure_logging", return_value={}),
            patch.object(cli, "create_app", return_value=MagicMock()),
        ):
            cli.start([])
            assert uvicorn_mock.run.call_args.kwargs["port"] == 8080

            cli.start(["--port", "9000", "--host", "127.0.0.1"])
            kwargs = uvicorn_mock.run.call_args.kwargs
            assert kwargs["port"] == 9000
            assert kwargs["host"] == "127.0.0.1"
