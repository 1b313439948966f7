"""End-to-end tests for the ``manualcache`` CLI using Typer's CliRunner."""

from __future__ import annotations

import json
import sys

import httpx
import pytest

from manualcache import app as app_module
from manualcache.app import app, main
from manualcache.exceptions import ConnectionError_, InvalidUsageError

URL = "https://api.example.com/widgets"


@pytest.fixture()
def cache_dir(isolated_config, tmp_path):
    return str(tmp_path / "store")


@pytest.fixture()
def fake_origin(monkeypatch, origin):
    """Route every ``fetch`` through the fake origin instead of the network."""
    monkeypatch.setattr(
        "manualcache.commands.fetch._build_transport",
        lambda retries: httpx.MockTransport(origin),
    )
    return origin


def _fetch(cli_runner, cache_dir, *args):
    return cli_runner.invoke(
        app, ["--plain", "--no-color", "--cache-dir", cache_dir, "fetch", *args]
    )


# ---------------------------------------------------------------------------
# fetch
# ---------------------------------------------------------------------------


class TestFetch:
    def test_miss_then_hit_across_invocations(self, cli_runner, cache_dir, fake_origin) -> None:
        """The disk store keeps entries between separate CLI runs."""
        first = _fetch(cli_runner, cache_dir, URL)
        second = _fetch(cli_runner, cache_dir, URL)

        assert first.exit_code == 0, first.output
        assert "HTTP 200 OK (MISS)" in first.output
        assert second.exit_code == 0, second.output
        assert "HTTP 200 OK (HIT)" in second.output

        quiet = cli_runner.invoke(app, ["-q", "--plain", "--cache-dir", cache_dir, "fetch", URL])
        assert json.loads(quiet.output) == {"id": 1}
        assert fake_origin.calls == 1

    def test_bypass(self, cli_runner, cache_dir, fake_origin) -> None:
        _fetch(cli_runner, cache_dir, URL)
        result = _fetch(cli_runner, cache_dir, URL, "--bypass")
        assert "(MISS)" in result.output
        assert fake_origin.calls == 2

    def test_memory_store_does_not_persist(self, cli_runner, cache_dir, fake_origin) -> None:
        for _ in range(2):
            result = cli_runner.invoke(app, ["--plain", "--store", "memory", "fetch", URL])
            assert "(MISS)" in result.output
        assert fake_origin.calls == 2

    def test_verbose_shows_cache_decisions(self, cli_runner, cache_dir, fake_origin) -> None:
        result = cli_runner.invoke(
            app, ["--plain", "--no-color", "-v", "--cache-dir", cache_dir, "fetch", URL]
        )
        assert f"Cache MISS: {URL}" in result.output
        assert f"Cache WRITE: {URL}" in result.output

    def test_headers_and_method(self, cli_runner, cache_dir, fake_origin) -> None:
        fake_origin.route("POST", "/widgets", status=201, json={"id": 2})
        result = _fetch(
            cli_runner, cache_dir, URL, "-X", "post", "-H", "X-Team: core", "-d", "name=gear"
        )
        assert result.exit_code == 0, result.output
        assert "HTTP 201 Created (MISS)" in result.output
        request = fake_origin.requests[-1]
        assert request.headers["x-team"] == "core"
        assert request.content == b"name=gear"

    def test_expires_in_flag(self, cli_runner, cache_dir, fake_origin) -> None:
        result = _fetch(cli_runner, cache_dir, URL, "--expires-in", "0")
        assert result.exit_code != 0

    def test_bad_header(self, cli_runner, cache_dir, fake_origin) -> None:
        result = _fetch(cli_runner, cache_dir, URL, "-H", "no-colon")
        assert isinstance(result.exception, InvalidUsageError)
        assert fake_origin.calls == 0

    def test_connection_error(self, cli_runner, cache_dir, monkeypatch) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        monkeypatch.setattr(
            "manualcache.commands.fetch._build_transport",
            lambda retries: httpx.MockTransport(refuse),
        )
        result = _fetch(cli_runner, cache_dir, URL)
        assert isinstance(result.exception, ConnectionError_)
        assert result.exception.exit_code == 6


# ---------------------------------------------------------------------------
# store
# ---------------------------------------------------------------------------


class TestStoreCommands:
    def test_stats_json(self, cli_runner, cache_dir, fake_origin) -> None:
        _fetch(cli_runner, cache_dir, URL)
        result = cli_runner.invoke(app, ["--json", "--cache-dir", cache_dir, "store", "stats"])
        assert result.exit_code == 0, result.output
        stats = json.loads(result.output)
        assert stats["backend"] == "disk"
        assert stats["size"] == 1

    def test_clear_force(self, cli_runner, cache_dir, fake_origin) -> None:
        _fetch(cli_runner, cache_dir, URL)
        result = cli_runner.invoke(
            app, ["--plain", "--force", "--cache-dir", cache_dir, "store", "clear"]
        )
        assert result.exit_code == 0
        assert "Cache store cleared." in result.output
        assert "(MISS)" in _fetch(cli_runner, cache_dir, URL).output

    def test_clear_declined(self, cli_runner, cache_dir, fake_origin) -> None:
        _fetch(cli_runner, cache_dir, URL)
        result = cli_runner.invoke(
            app, ["--plain", "--cache-dir", cache_dir, "store", "clear"], input="n\n"
        )
        assert result.exit_code == 0
        assert "Cancelled." in result.output
        assert "(HIT)" in _fetch(cli_runner, cache_dir, URL).output


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


class TestConfigCommands:
    def test_set_then_show(self, cli_runner, isolated_config) -> None:
        result = cli_runner.invoke(app, ["--plain", "config", "set", "expires_in", "300"])
        assert result.exit_code == 0, result.output

        shown = cli_runner.invoke(app, ["-q", "--json", "config", "show"])
        assert json.loads(shown.output)["expires_in"] == 300.0

    def test_set_nested_key(self, cli_runner, isolated_config) -> None:
        cli_runner.invoke(app, ["--plain", "config", "set", "store.backend", "disk"])
        shown = cli_runner.invoke(app, ["-q", "--json", "config", "show"])
        assert json.loads(shown.output)["store"]["backend"] == "disk"

    @pytest.mark.parametrize(
        "key,value",
        [("store.backend", "redis"), ("nope", "1"), ("expires_in.x", "1"), ("expires_in", "-3")],
    )
    def test_set_invalid(self, cli_runner, isolated_config, key: str, value: str) -> None:
        result = cli_runner.invoke(app, ["--plain", "config", "set", key, value])
        assert result.exit_code == 2

    def test_reset(self, cli_runner, isolated_config) -> None:
        cli_runner.invoke(app, ["--plain", "config", "set", "expires_in", "300"])
        result = cli_runner.invoke(app, ["--plain", "--force", "config", "reset"])
        assert result.exit_code == 0

        shown = cli_runner.invoke(app, ["-q", "--json", "config", "show"])
        assert json.loads(shown.output)["expires_in"] == 30.0

    def test_config_backend_used_by_fetch(self, cli_runner, isolated_config, fake_origin) -> None:
        cli_runner.invoke(app, ["--plain", "config", "set", "store.backend", "memory"])
        for _ in range(2):
            assert "(MISS)" in cli_runner.invoke(app, ["--plain", "fetch", URL]).output
        assert fake_origin.calls == 2


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


class TestMain:
    @pytest.fixture(autouse=True)
    def _no_signal_handlers(self, monkeypatch) -> None:
        monkeypatch.setattr(app_module, "_setup_signal_handlers", lambda: None)

    def test_version(self, monkeypatch, capsys) -> None:
        monkeypatch.setattr(sys, "argv", ["manualcache", "--version"])
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 0
        assert "manualcache 0.1.0" in capsys.readouterr().out

    def test_invalid_usage_exit_code(self, monkeypatch, cache_dir, fake_origin) -> None:
        monkeypatch.setattr(
            sys, "argv", ["manualcache", "--plain", "--cache-dir", cache_dir, "fetch", URL, "-H", "bad"]
        )
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 2

    def test_connection_error_exit_code(self, monkeypatch, cache_dir, capsys) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        monkeypatch.setattr(
            "manualcache.commands.fetch._build_transport",
            lambda retries: httpx.MockTransport(refuse),
        )
        monkeypatch.setattr(
            sys, "argv", ["manualcache", "--plain", "--no-color", "--cache-dir", cache_dir, "fetch", URL]
        )
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 6
        assert "Error: Request to" in capsys.readouterr().err
