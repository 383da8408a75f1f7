"""End-to-end tests for the airkit command-line interface.

Commands run through the real Typer app; the HTTP transport underneath
:class:`~airkit.client.AsyncClient` is replaced by the in-memory
``fake_api`` so no network is touched.  Output assertions use ``--json
--quiet`` so that stdout carries nothing but the data.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest
from typer.testing import CliRunner

from airkit import __version__
from airkit.app import app
from airkit.client import AsyncClient
from airkit.config import load_settings


BASE = ["--base-id", "appTEST0000000000"]
QUIET_JSON = ["--json", "--quiet"]


@pytest.fixture(autouse=True)
def _wired(isolated_config, fake_api, monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate config, provide a credential, and route the client to ``fake_api``."""
    monkeypatch.setenv("AIRTABLE_API_KEY", "keyTEST")

    def _client(config, cache=None):
        return AsyncClient(config, cache=cache, transport=fake_api.transport)

    monkeypatch.setattr("airkit.commands.records.AsyncClient", _client)


def _invoke(cli_runner: CliRunner, *args: str) -> Any:
    return cli_runner.invoke(app, [*QUIET_JSON, *BASE, *args])


# ------------------------------------------------------------------ #
# Global options
# ------------------------------------------------------------------ #


class TestGlobalOptions:
    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"airkit {__version__}" in result.stdout

    def test_missing_base_id_is_a_config_error(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, ["records", "list", "Tasks"])
        assert result.exit_code == 1
        assert "No base id" in result.output

    def test_base_id_from_environment(self, cli_runner, fake_api, payload_factory, monkeypatch) -> None:
        monkeypatch.setenv("AIRKIT_BASE_ID", "appTEST0000000000")
        fake_api.add("GET", "Tasks", {"records": [payload_factory("rec1")]})
        result = cli_runner.invoke(app, [*QUIET_JSON, "records", "list", "Tasks"])
        assert result.exit_code == 0, result.output
        assert [r["id"] for r in json.loads(result.stdout)] == ["rec1"]

    def test_missing_credential(self, cli_runner: CliRunner, monkeypatch) -> None:
        monkeypatch.delenv("AIRTABLE_API_KEY")
        result = _invoke(cli_runner, "records", "list", "Tasks")
        assert result.exit_code == 1
        assert "AIRTABLE_API_KEY" in result.output


# ------------------------------------------------------------------ #
# records
# ------------------------------------------------------------------ #


class TestRecordsList:
    def test_list_prints_records(self, cli_runner, fake_api, payload_factory) -> None:
        fake_api.add(
            "GET", "Tasks",
            {"records": [payload_factory("rec2", {"Name": "b"}), payload_factory("rec1", {"Name": "a"})]},
        )
        result = _invoke(cli_runner, "records", "list", "Tasks")
        assert result.exit_code == 0, result.output
        assert [r["fields"]["Name"] for r in json.loads(result.stdout)] == ["b", "a"]

    def test_second_list_uses_cache(self, cli_runner, fake_api, payload_factory) -> None:
        fake_api.add("GET", "Tasks", {"records": [payload_factory("rec1")]})
        _invoke(cli_runner, "records", "list", "Tasks")
        result = _invoke(cli_runner, "records", "list", "Tasks")
        assert result.exit_code == 0
        assert [r["id"] for r in json.loads(result.stdout)] == ["rec1"]
        assert len(fake_api.requests) == 1

    def test_no_cache_always_fetches(self, cli_runner, fake_api, payload_factory) -> None:
        fake_api.add("GET", "Tasks", {"records": [payload_factory("rec1")]})
        cli_runner.invoke(app, [*QUIET_JSON, *BASE, "--no-cache", "records", "list", "Tasks"])
        cli_runner.invoke(app, [*QUIET_JSON, *BASE, "--no-cache", "records", "list", "Tasks"])
        assert len(fake_api.requests) == 2

    def test_cache_disabled_in_settings(self, cli_runner, fake_api, payload_factory) -> None:
        cli_runner.invoke(app, ["config", "set", "cache.enabled", "false"])
        fake_api.add("GET", "Tasks", {"records": [payload_factory("rec1")]})
        _invoke(cli_runner, "records", "list", "Tasks")
        _invoke(cli_runner, "records", "list", "Tasks")
        assert len(fake_api.requests) == 2

    def test_list_options_are_sent(self, cli_runner, fake_api) -> None:
        fake_api.add("GET", "Tasks", {"records": []})
        result = cli_runner.invoke(
            app,
            [*QUIET_JSON, *BASE, "--no-cache", "records", "list", "Tasks", "--view", "Grid view", "--limit", "5"],
        )
        assert result.exit_code == 0, result.output
        params = fake_api.requests[0].url.params
        assert (params["view"], params["limit"]) == ("Grid view", "5")

    def test_list_all_follows_offsets(self, cli_runner, fake_api, payload_factory) -> None:
        pages = {
            None: {"records": [payload_factory("rec1")], "offset": "itr1"},
            "itr1": {"records": [payload_factory("rec2")]},
        }

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=pages[request.url.params.get("offset")])

        fake_api.add("GET", "Tasks", handler)
        result = _invoke(cli_runner, "records", "list", "Tasks", "--all")
        assert result.exit_code == 0, result.output
        assert [r["id"] for r in json.loads(result.stdout)] == ["rec1", "rec2"]

    def test_plain_output(self, cli_runner, fake_api, payload_factory) -> None:
        fake_api.add("GET", "Tasks", {"records": [payload_factory("rec1", {"Name": "a"})]})
        result = cli_runner.invoke(app, ["--plain", "--quiet", *BASE, "records", "list", "Tasks"])
        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("rec1\t2024-03-01T12:30:45.000Z\t")


class TestRecordsGet:
    def test_get(self, cli_runner, fake_api, payload_factory) -> None:
        fake_api.add_record("Tasks", payload_factory("rec1", {"Name": "a"}))
        result = _invoke(cli_runner, "records", "get", "Tasks", "rec1")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)[0]["id"] == "rec1"

    def test_get_not_found_exit_code(self, cli_runner) -> None:
        result = _invoke(cli_runner, "records", "get", "Tasks", "recMissing")
        assert result.exit_code == 4
        assert "Could not find" in result.output

    def test_get_empty_body(self, cli_runner, fake_api) -> None:
        fake_api.add("GET", "Tasks/rec1", None)
        result = _invoke(cli_runner, "records", "get", "Tasks", "rec1")
        assert result.exit_code == 4
        assert "No record returned" in result.output

    def test_server_error_exit_code(self, cli_runner, fake_api) -> None:
        fake_api.add("GET", "Tasks/rec1", {"error": "server_error", "message": "boom", "status": 500}, status=500)
        result = _invoke(cli_runner, "records", "get", "Tasks", "rec1")
        assert result.exit_code == 5


class TestRecordsWrite:
    def test_create_sends_parsed_fields(self, cli_runner, fake_api, payload_factory) -> None:
        fake_api.add("POST", "Tasks", payload_factory("recNew", {"Name": "Write docs", "Estimate": 3}))
        result = _invoke(
            cli_runner, "records", "create", "Tasks", "-f", "Name=Write docs", "-f", "Estimate=3",
            "-f", 'Tags=["recA"]',
        )
        assert result.exit_code == 0, result.output
        body = json.loads(fake_api.requests[0].content)
        assert body == {"fields": {"Name": "Write docs", "Estimate": 3, "Tags": ["recA"]}}
        assert json.loads(result.stdout)[0]["id"] == "recNew"

    def test_create_invalid_field_syntax(self, cli_runner, fake_api) -> None:
        result = _invoke(cli_runner, "records", "create", "Tasks", "-f", "NoEquals")
        assert result.exit_code == 2
        assert "Expected key=value" in result.output
        assert fake_api.requests == []

    def test_create_validation_error(self, cli_runner, fake_api) -> None:
        fake_api.add(
            "POST", "Tasks",
            {"error": "validation_error", "message": "Unknown field name: Nope", "status": 400}, status=400,
        )
        result = _invoke(cli_runner, "records", "create", "Tasks", "-f", "Nope=1")
        assert result.exit_code == 2
        assert "Unknown field name" in result.output

    def test_update_puts_fields(self, cli_runner, fake_api, payload_factory) -> None:
        fake_api.add("PUT", "Tasks/rec1", payload_factory("rec1", {"Name": "Done"}))
        result = _invoke(cli_runner, "records", "update", "Tasks", "rec1", "-f", "Name=Done")
        assert result.exit_code == 0, result.output
        assert json.loads(fake_api.requests[0].content) == {"fields": {"Name": "Done"}}

    def test_delete(self, cli_runner, fake_api) -> None:
        fake_api.add("DELETE", "Tasks/rec1", {"id": "rec1", "deleted": True})
        result = _invoke(cli_runner, "records", "delete", "Tasks", "rec1")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"id": "rec1", "deleted": True}


class TestRecordsResolve:
    def test_resolve_in_field_order(self, cli_runner, fake_api, payload_factory) -> None:
        fake_api.add_record("Tasks", payload_factory("rec1", {"Tags": ["tagB", "tagA"]}))
        fake_api.add_record("Tags", payload_factory("tagA", {"Label": "a"}))
        fake_api.add_record("Tags", payload_factory("tagB", {"Label": "b"}))
        result = _invoke(cli_runner, "records", "resolve", "Tasks", "rec1", "Tags")
        assert result.exit_code == 0, result.output
        assert [r["id"] for r in json.loads(result.stdout)] == ["tagB", "tagA"]

    def test_resolve_with_target_table(self, cli_runner, fake_api, payload_factory) -> None:
        fake_api.add_record("Tasks", payload_factory("rec1", {"Owner": ["usr1"]}))
        fake_api.add_record("People", payload_factory("usr1", {"Name": "Ada"}))
        result = _invoke(cli_runner, "records", "resolve", "Tasks", "rec1", "Owner", "--target", "People")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)[0]["fields"] == {"Name": "Ada"}

    def test_resolve_fails_as_a_unit(self, cli_runner, fake_api, payload_factory) -> None:
        fake_api.add_record("Tasks", payload_factory("rec1", {"Tags": ["tagA", "tagGone"]}))
        fake_api.add_record("Tags", payload_factory("tagA"))
        result = _invoke(cli_runner, "records", "resolve", "Tasks", "rec1", "Tags")
        assert result.exit_code == 4
        assert "tagA" not in result.stdout

    def test_resolve_empty_field_warns(self, cli_runner, fake_api, payload_factory) -> None:
        fake_api.add_record("Tasks", payload_factory("rec1", {"Name": "lonely"}))
        result = _invoke(cli_runner, "records", "resolve", "Tasks", "rec1", "Tags")
        assert result.exit_code == 0, result.output
        assert "Tasks/rec1 links no records in field 'Tags'" in result.output
        assert len(fake_api.requests) == 1


# ------------------------------------------------------------------ #
# cache
# ------------------------------------------------------------------ #


class TestCacheCommands:
    def test_stats_and_clear(self, cli_runner, fake_api, payload_factory, isolated_config) -> None:
        fake_api.add("GET", "Tasks", {"records": [payload_factory("rec1"), payload_factory("rec2")]})
        _invoke(cli_runner, "records", "list", "Tasks")

        result = cli_runner.invoke(app, [*QUIET_JSON, "cache", "stats"])
        assert result.exit_code == 0, result.output
        stats = json.loads(result.stdout)
        assert stats["size"] == 3
        assert stats["directory"] == str(isolated_config / "cache" / "airkit" / "records")

        result = cli_runner.invoke(app, ["--no-color", "cache", "clear"])
        assert result.exit_code == 0
        assert "Removed 3 cache entries" in result.output

        result = cli_runner.invoke(app, [*QUIET_JSON, "cache", "stats"])
        assert json.loads(result.stdout)["size"] == 0


# ------------------------------------------------------------------ #
# config
# ------------------------------------------------------------------ #


class TestConfigCommands:
    def test_show_defaults(self, cli_runner) -> None:
        result = cli_runner.invoke(app, [*QUIET_JSON, "config", "show"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["api_key_source"] == "env:AIRTABLE_API_KEY"
        assert data["cache"]["ttl_seconds"] == 300

    def test_set_string(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["config", "set", "base_id", "appFROMCONFIG"])
        assert result.exit_code == 0, result.output
        assert load_settings().base_id == "appFROMCONFIG"

    def test_set_int(self, cli_runner) -> None:
        cli_runner.invoke(app, ["config", "set", "cache.ttl_seconds", "600"])
        assert load_settings().cache.ttl_seconds == 600

    def test_set_float(self, cli_runner) -> None:
        cli_runner.invoke(app, ["config", "set", "request.timeout", "2.5"])
        assert load_settings().request.timeout == 2.5

    def test_set_bool(self, cli_runner) -> None:
        cli_runner.invoke(app, ["config", "set", "request.verify_ssl", "false"])
        assert load_settings().request.verify_ssl is False

    def test_set_bad_int(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["config", "set", "cache.ttl_seconds", "soon"])
        assert result.exit_code == 2
        assert "Expected int" in result.output

    @pytest.mark.parametrize("key", ["nope", "cache.nope", "nope.ttl", "cache"])
    def test_set_unknown_key(self, cli_runner, key: str) -> None:
        result = cli_runner.invoke(app, ["config", "set", key, "x"])
        assert result.exit_code == 2

    def test_configured_base_id_is_used(self, cli_runner, fake_api, payload_factory) -> None:
        cli_runner.invoke(app, ["config", "set", "base_id", "appTEST0000000000"])
        fake_api.add("GET", "Tasks", {"records": [payload_factory("rec1")]})
        result = cli_runner.invoke(app, [*QUIET_JSON, "records", "list", "Tasks"])
        assert result.exit_code == 0, result.output
