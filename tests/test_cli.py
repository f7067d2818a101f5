"""
CLI Tests
"""

import json
import tempfile
from pathlib import Path

import httpx
import pytest

from raidsync.cli import build_parser, main, run
from raidsync.core.config import Settings, get_settings


@pytest.fixture
def settings():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Settings(
            api_base_url="http://backend.test/api",
            cache_db_path=str(Path(tmpdir) / "cli.db"),
        )


def _transport(routes):
    def handler(request):
        key = f"{request.method} {request.url.path.removeprefix('/api')}"
        answer = routes.get(key, httpx.Response(500))
        if isinstance(answer, Exception):
            raise answer
        return answer
    return httpx.MockTransport(handler)


async def _run(argv, settings, routes=None):
    args = build_parser().parse_args(argv)
    return await run(args, settings, transport=_transport(routes or {}))


class TestParser:
    """Tests for argument parsing."""

    def test_list_with_raid_id(self):
        args = build_parser().parse_args(["list", "race", "--raid-id", "3"])
        assert args.entity == "race"
        assert args.raid_id == 3

    def test_unknown_entity(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["list", "lap"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestCommands:
    """Tests for command execution."""

    @pytest.mark.asyncio
    async def test_list_prints_json_lines(self, settings, raid_payload, capsys):
        routes = {"GET /raids": httpx.Response(200, json=[raid_payload(1), raid_payload(2)])}

        assert await _run(["list", "raid"], settings, routes) == 0

        lines = capsys.readouterr().out.strip().splitlines()
        assert [json.loads(line)["RAI_ID"] for line in lines] == [1, 2]

    @pytest.mark.asyncio
    async def test_list_races_of_raid(self, settings, race_payload, capsys):
        routes = {"GET /raids/4/races": httpx.Response(200, json=[race_payload(9, raid_id=4)])}

        assert await _run(["list", "race", "--raid-id", "4"], settings, routes) == 0
        assert json.loads(capsys.readouterr().out)["RAC_ID"] == 9

    @pytest.mark.asyncio
    async def test_raid_id_only_for_races(self, settings):
        assert await _run(["list", "club", "--raid-id", "4"], settings) == 2

    @pytest.mark.asyncio
    async def test_list_offline_is_empty(self, settings, capsys):
        routes = {"GET /clubs": httpx.ConnectError("refused")}

        assert await _run(["list", "club"], settings, routes) == 0
        assert capsys.readouterr().out == ""

    @pytest.mark.asyncio
    async def test_cached_answer_is_flagged(self, settings, raid_payload, capsys):
        online = {"GET /raids/5": httpx.Response(200, json=raid_payload(5))}
        assert await _run(["get", "raid", "5"], settings, online) == 0
        assert capsys.readouterr().err == ""

        offline = {"GET /raids/5": httpx.ConnectError("refused")}
        assert await _run(["get", "raid", "5"], settings, offline) == 0

        captured = capsys.readouterr()
        assert json.loads(captured.out)["RAI_ID"] == 5
        assert "served from local cache" in captured.err

    @pytest.mark.asyncio
    async def test_get_not_found(self, settings, capsys):
        routes = {"GET /teams/5": httpx.Response(404)}

        assert await _run(["get", "team", "5"], settings, routes) == 1
        assert "not found" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_get_failure_exits_1(self, settings, capsys):
        routes = {"GET /raids/5": httpx.ConnectError("refused")}

        assert await _run(["get", "raid", "5"], settings, routes) == 1
        assert capsys.readouterr().err.startswith("Error:")

    @pytest.mark.asyncio
    async def test_status(self, settings, capsys):
        routes = {"GET /health": httpx.Response(200)}

        assert await _run(["status"], settings, routes) == 0

        status = json.loads(capsys.readouterr().out)
        assert status["available"] is True
        assert status["authenticated"] is False

    @pytest.mark.asyncio
    async def test_probe(self, settings, capsys):
        routes = {"GET /health": httpx.Response(503)}

        assert await _run(["probe"], settings, routes) == 0
        assert json.loads(capsys.readouterr().out) == {"available": False}

    @pytest.mark.asyncio
    async def test_token_set_and_clear(self, settings, capsys):
        assert await _run(["token", "set", "abc"], settings) == 0
        assert await _run(["status"], settings, {"GET /health": httpx.Response(200)}) == 0
        assert '"authenticated": true' in capsys.readouterr().out

        assert await _run(["token", "clear"], settings) == 0
        assert "Token cleared" in capsys.readouterr().out


def test_main_token_command(monkeypatch, capsys):
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.setenv("RAIDSYNC_CACHE_DB_PATH", str(Path(tmpdir) / "main.db"))
        get_settings.cache_clear()
        try:
            assert main(["token", "set", "abc"]) == 0
        finally:
            get_settings.cache_clear()

    assert "Token saved" in capsys.readouterr().out
