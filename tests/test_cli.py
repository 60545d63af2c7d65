"""CLI tests for ``reqcraft check`` and the ``reqcraft inspect`` group."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from reqcraft import __version__
from reqcraft.app import app
from reqcraft.exceptions import InvalidUsageError


PROJECT = """\
    config {
        baseUrl http://localhost:3000
        variable token String default("abc")
        header Authorization @default("Bearer {{token}}")
    }

    api /health { get { response { ok Boolean @mock(true) } } }

    ws ws://localhost:3000/live { }

    category users {
        name "Users"
        prefix /v1/users
        api /list {
            get { response { id Number name String } }
        }
        category admin {
            prefix /admin
            api /audit { post { } }
        }
    }
"""


@pytest.fixture
def project(isolated_config: Path, write_file) -> Path:
    """A project whose default root document ``.rqc`` is populated."""
    return write_file(".rqc", PROJECT)


def _json(result) -> object:
    return json.loads(result.stdout)


class TestVersion:
    def test_version_flag(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"reqcraft {__version__}" in result.output


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


class TestCheck:
    def test_success(self, cli_runner, project: Path) -> None:
        result = cli_runner.invoke(app, ["--plain", "check"])
        assert result.exit_code == 0, result.output
        assert "loaded" in result.output
        assert "Loaded 4 endpoint(s) in 1 top-level category(ies)" in result.output

    def test_outcomes_as_json(self, cli_runner, project: Path) -> None:
        result = cli_runner.invoke(app, ["--json", "--quiet", "check"])
        assert result.exit_code == 0, result.output
        (row,) = _json(result)
        assert row["Status"] == "loaded"
        assert row["Reason"] == "ok"

    def test_missing_root(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["check"])
        assert result.exit_code == 3

    def test_root_syntax_error(self, cli_runner, isolated_config: Path, write_file) -> None:
        write_file(".rqc", "api /broken {")
        result = cli_runner.invoke(app, ["check"])
        assert result.exit_code == 4

    def test_skipped_import_warns(self, cli_runner, isolated_config: Path, write_file) -> None:
        write_file(".rqc", 'import "missing.rqc"\napi /ok { get {} }')
        result = cli_runner.invoke(app, ["--plain", "check"])
        assert result.exit_code == 0
        assert "1 import(s) skipped" in result.output
        assert "not_found" in result.output

    def test_strict_fails_on_skipped_import(
        self, cli_runner, isolated_config: Path, write_file
    ) -> None:
        write_file(".rqc", 'import "missing.rqc"\napi /ok { get {} }')
        result = cli_runner.invoke(app, ["check", "--strict"])
        assert result.exit_code == 1

    def test_root_option(self, cli_runner, isolated_config: Path, write_file) -> None:
        write_file("api/main.rqc", "api /only { get {} }")
        result = cli_runner.invoke(app, ["--root", "api/main.rqc", "--plain", "check"])
        assert result.exit_code == 0, result.output
        assert "Loaded 1 endpoint(s)" in result.output

    def test_root_from_environment(
        self, cli_runner, isolated_config: Path, write_file, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        write_file("env.rqc", "api /env { get {} }")
        monkeypatch.setenv("REQCRAFT_ROOT", "env.rqc")
        result = cli_runner.invoke(app, ["--plain", "check"])
        assert result.exit_code == 0, result.output
        assert "env.rqc" in result.output

    def test_invalid_project_config(self, cli_runner, isolated_config: Path) -> None:
        (isolated_config / "reqcraft.json").write_text("{nope", encoding="utf-8")
        result = cli_runner.invoke(app, ["check"])
        assert result.exit_code == 1
        assert "Invalid project config" in result.output


# ---------------------------------------------------------------------------
# inspect
# ---------------------------------------------------------------------------


class TestInspectEndpoints:
    def test_lists_all_endpoints(self, cli_runner, project: Path) -> None:
        result = cli_runner.invoke(app, ["--json", "--quiet", "inspect", "endpoints"])
        assert result.exit_code == 0, result.output
        rows = _json(result)
        assert [r["ID"] for r in rows] == ["api-1", "ws-2", "api-3", "api-4"]
        assert rows[2]["Path"] == "/v1/users/list"
        assert rows[2]["Category"] == "Users"
        assert rows[3]["Path"] == "/v1/users/admin/audit"
        assert rows[3]["Category"] == "cat-admin-2"
        assert rows[1]["Method"] == "-"

    def test_type_filter(self, cli_runner, project: Path) -> None:
        result = cli_runner.invoke(
            app, ["--json", "--quiet", "inspect", "endpoints", "--type", "websocket"]
        )
        assert result.exit_code == 0, result.output
        assert [r["Path"] for r in _json(result)] == ["ws://localhost:3000/live"]

    def test_plain_table(self, cli_runner, project: Path) -> None:
        result = cli_runner.invoke(app, ["--plain", "--quiet", "inspect", "endpoints"])
        assert result.exit_code == 0
        assert "ID\tType\tMethod\tPath\tName\tCategory" in result.stdout


class TestInspectCategories:
    def test_json_tree(self, cli_runner, project: Path) -> None:
        result = cli_runner.invoke(app, ["--json", "--quiet", "inspect", "categories"])
        assert result.exit_code == 0, result.output
        (users,) = _json(result)
        assert users["id"] == "cat-users-1"
        assert users["endpointCount"] == 1
        assert users["children"][0]["endpointCount"] == 1

    def test_plain_lines_are_indented(self, cli_runner, project: Path) -> None:
        result = cli_runner.invoke(app, ["--plain", "--quiet", "inspect", "categories"])
        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines == ["cat-users-1\tUsers\t1", "  cat-admin-2\t-\t1"]


class TestInspectConfig:
    def test_variables(self, cli_runner, project: Path) -> None:
        result = cli_runner.invoke(app, ["--json", "--quiet", "inspect", "variables"])
        assert result.exit_code == 0, result.output
        assert _json(result) == [{"Name": "token", "Type": "String", "Default": "abc"}]

    def test_headers(self, cli_runner, project: Path) -> None:
        result = cli_runner.invoke(app, ["--json", "--quiet", "inspect", "headers"])
        assert result.exit_code == 0, result.output
        assert _json(result) == [{"Name": "Authorization", "Default": "Bearer {{token}}"}]

    def test_document(self, cli_runner, project: Path) -> None:
        result = cli_runner.invoke(app, ["--json", "--quiet", "inspect", "document"])
        assert result.exit_code == 0, result.output
        data = _json(result)
        assert data["config"]["baseUrls"] == ["http://localhost:3000"]
        assert data["apis"][0]["path"] == "/health"


class TestInspectMock:
    def test_mock_payload(self, cli_runner, project: Path) -> None:
        result = cli_runner.invoke(
            app, ["--json", "--quiet", "inspect", "mock", "get", "/v1/users/list"]
        )
        assert result.exit_code == 0, result.output
        assert _json(result) == {"id": 0, "name": "mock_name"}

    def test_mock_value_used(self, cli_runner, project: Path) -> None:
        result = cli_runner.invoke(app, ["--json", "--quiet", "inspect", "mock", "GET", "/health"])
        assert result.exit_code == 0, result.output
        assert _json(result) == {"ok": True}

    def test_endpoint_without_response(self, cli_runner, project: Path) -> None:
        result = cli_runner.invoke(
            app, ["--json", "--quiet", "inspect", "mock", "POST", "/v1/users/admin/audit"]
        )
        assert result.exit_code == 0, result.output
        assert _json(result) == {}

    def test_no_match(self, cli_runner, project: Path) -> None:
        result = cli_runner.invoke(app, ["inspect", "mock", "GET", "/list"])
        assert result.exit_code == 2
        assert "No HTTP endpoint matches GET /list" in result.output

    def test_relative_path_rejected(self, cli_runner, project: Path) -> None:
        result = cli_runner.invoke(app, ["inspect", "mock", "GET", "health"])
        assert isinstance(result.exception, InvalidUsageError)
