"""Tests for reqcraft.imports -- resolution, outcomes and merging."""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Callable
from unittest.mock import patch

import httpx
import pytest

from reqcraft.dsl.parser import parse_file
from reqcraft.exceptions import DocumentReadError, DslParseError
from reqcraft.imports import (
    ImportReason,
    ImportStatus,
    merge_documents,
    resolve_document,
    resolve_import_path,
)
from reqcraft.models import ApiBlock, CategoryBlock, ConfigBlock, Document, ProjectConfig

FIXTURES_DIR = Path(__file__).parent / "fixtures"

WriteFile = Callable[[str, str], Path]


def _paths(document: Document) -> list[str]:
    return [api.path for api in document.apis]


# ---------------------------------------------------------------------------
# merge_documents
# ---------------------------------------------------------------------------


class TestMergeDocuments:
    """Additive merge with first-document-wins settings."""

    def test_target_without_config_adopts_source(self) -> None:
        target = Document()
        source = Document(config=ConfigBlock(base_urls=["http://b"], cors=True))
        merge_documents(target, source)
        assert target.config.base_urls == ["http://b"]
        assert target.config.cors is True

    def test_target_config_wins(self) -> None:
        target = Document(config=ConfigBlock(base_urls=["http://a"]))
        source = Document(config=ConfigBlock(base_urls=["http://b"], mock=True))
        merge_documents(target, source)
        assert target.config.base_urls == ["http://a"]
        assert target.config.mock is False

    def test_empty_base_urls_filled_from_source(self) -> None:
        target = Document(config=ConfigBlock(cors=True))
        source = Document(config=ConfigBlock(base_urls=["http://b", "http://c"]))
        merge_documents(target, source)
        assert target.config.base_urls == ["http://b", "http://c"]
        assert target.config.cors is True

    def test_lists_concatenate_in_order(self) -> None:
        target = Document(apis=[ApiBlock(path="/a")])
        source = Document(
            apis=[ApiBlock(path="/b"), ApiBlock(path="/a")],
            categories=[CategoryBlock(id="cat-x-1")],
        )
        merge_documents(target, source)
        assert _paths(target) == ["/a", "/b", "/a"]
        assert [c.id for c in target.categories] == ["cat-x-1"]

    def test_merge_never_removes(self) -> None:
        target = Document(apis=[ApiBlock(path="/a")], config=ConfigBlock(base_urls=["x"]))
        merge_documents(target, Document())
        assert _paths(target) == ["/a"]
        assert target.config.base_urls == ["x"]


class TestResolveImportPath:
    def test_dot_relative_uses_importer_dir(self, tmp_path: Path) -> None:
        importer = tmp_path / "nested" / "child.rqc"
        assert resolve_import_path("./x.rqc", tmp_path, importer) == tmp_path / "nested" / "./x.rqc"

    def test_parent_relative_uses_importer_dir(self, tmp_path: Path) -> None:
        importer = tmp_path / "nested" / "child.rqc"
        path = resolve_import_path("../x.rqc", tmp_path, importer)
        assert path.resolve() == (tmp_path / "x.rqc").resolve()

    def test_bare_path_uses_base_dir(self, tmp_path: Path) -> None:
        importer = tmp_path / "nested" / "child.rqc"
        assert resolve_import_path("shared/x.rqc", tmp_path, importer) == tmp_path / "shared/x.rqc"


# ---------------------------------------------------------------------------
# resolve_document
# ---------------------------------------------------------------------------


class TestResolveLocal:
    """Local .rqc imports."""

    def test_single_document(self, write_file: WriteFile) -> None:
        root = write_file("main.rqc", "api /ping { get {} }")
        result = resolve_document(root)
        assert _paths(result.document) == ["/ping"]
        assert result.document.imports == []
        assert [(o.status, o.reason) for o in result.outcomes] == [
            (ImportStatus.LOADED, ImportReason.OK)
        ]

    def test_import_contents_appended_after_own(self, write_file: WriteFile) -> None:
        write_file("users.rqc", "api /users { get {} }")
        root = write_file("main.rqc", """\
            import "./users.rqc"
            api /ping { get {} }
        """)
        result = resolve_document(root)
        assert _paths(result.document) == ["/ping", "/users"]
        assert result.document.imports == []

    def test_root_base_url_wins(self, write_file: WriteFile) -> None:
        write_file("other.rqc", "config { baseUrl http://other }")
        root = write_file("main.rqc", """\
            config { baseUrl http://root }
            import other.rqc
        """)
        result = resolve_document(root)
        assert result.document.config.base_urls == ["http://root"]

    def test_import_supplies_missing_config(self, write_file: WriteFile) -> None:
        write_file("settings.rqc", "config { baseUrl http://shared mock true }")
        root = write_file("main.rqc", 'import "settings.rqc"')
        result = resolve_document(root)
        assert result.document.config.base_urls == ["http://shared"]
        assert result.document.config.mock is True

    def test_mutual_imports_terminate(self, write_file: WriteFile) -> None:
        write_file("b.rqc", 'import "a.rqc"\napi /b { get {} }')
        root = write_file("a.rqc", 'import "b.rqc"\napi /a { get {} }')

        with patch("reqcraft.imports.parse_file", wraps=parse_file) as mock_parse:
            result = resolve_document(root)

        parsed = sorted(Path(call.args[0]).name for call in mock_parse.call_args_list)
        assert parsed == ["a.rqc", "b.rqc"]
        assert _paths(result.document) == ["/a", "/b"]
        cycle = [o for o in result.outcomes if o.reason is ImportReason.CYCLE]
        assert len(cycle) == 1
        assert cycle[0].status is ImportStatus.SKIPPED

    def test_self_import_terminates(self, write_file: WriteFile) -> None:
        root = write_file("main.rqc", 'import "./main.rqc"\napi /x { get {} }')
        result = resolve_document(root)
        assert _paths(result.document) == ["/x"]

    def test_diamond_import_parsed_once(self, write_file: WriteFile) -> None:
        write_file("common.rqc", "api /common { get {} }")
        write_file("left.rqc", 'import "common.rqc"')
        write_file("right.rqc", 'import "common.rqc"')
        root = write_file("main.rqc", 'import "left.rqc"\nimport "right.rqc"')
        result = resolve_document(root)
        assert _paths(result.document) == ["/common"]

    def test_nested_bare_import_resolves_against_root(self, write_file: WriteFile) -> None:
        write_file("shared.rqc", "api /shared { get {} }")
        write_file("nested/child.rqc", 'import "shared.rqc"')
        root = write_file("main.rqc", 'import "nested/child.rqc"')
        result = resolve_document(root)
        assert _paths(result.document) == ["/shared"]

    def test_nested_relative_import_resolves_against_importer(self, write_file: WriteFile) -> None:
        write_file("nested/sibling.rqc", "api /sibling { get {} }")
        write_file("nested/child.rqc", 'import "./sibling.rqc"')
        root = write_file("main.rqc", 'import "nested/child.rqc"')
        result = resolve_document(root)
        assert _paths(result.document) == ["/sibling"]

    def test_explicit_base_dir(self, write_file: WriteFile, tmp_path: Path) -> None:
        write_file("lib/extra.rqc", "api /extra { get {} }")
        root = write_file("app/main.rqc", 'import "extra.rqc"')
        result = resolve_document(root, base_dir=tmp_path / "lib")
        assert _paths(result.document) == ["/extra"]

    def test_dotfile_root_name(self, write_file: WriteFile) -> None:
        write_file("more.rqc", "api /more { get {} }")
        root = write_file(".rqc", 'import "more.rqc"\napi /root { get {} }')
        result = resolve_document(root)
        assert _paths(result.document) == ["/root", "/more"]


class TestResolveOpenAPI:
    """Local and remote OpenAPI imports."""

    def test_local_openapi_import(self, write_file: WriteFile, tmp_path: Path) -> None:
        shutil.copy(FIXTURES_DIR / "petstore.json", tmp_path / "petstore.json")
        root = write_file("main.rqc", 'import "./petstore.json"')
        result = resolve_document(root)
        assert result.document.categories[0].id == "openapi"
        assert result.document.config.base_urls == ["https://petstore.example.com/v1/"]

    def test_local_yaml_import(self, write_file: WriteFile) -> None:
        write_file("spec.yaml", """\
            paths:
              /status:
                get:
                  summary: Status
        """)
        root = write_file("main.rqc", 'import "spec.yaml"')
        result = resolve_document(root)
        assert result.document.categories[0].apis[0].path == "/status"

    def test_remote_import(self, write_file: WriteFile) -> None:
        url = "https://api.example.com/openapi.json"
        spec = json.loads((FIXTURES_DIR / "petstore.json").read_text())
        mock_response = httpx.Response(
            status_code=200, json=spec, request=httpx.Request("GET", url)
        )
        root = write_file("main.rqc", f"import {url}")

        with patch("reqcraft.openapi.loader.httpx.get", return_value=mock_response) as mock_get:
            result = resolve_document(root, settings=ProjectConfig(fetch_timeout=7.5))

        mock_get.assert_called_once_with(url, timeout=7.5, follow_redirects=True)
        assert result.document.categories[0].name == "OpenAPI"
        loaded = [o for o in result.outcomes if o.source == url]
        assert loaded[0].status is ImportStatus.LOADED

    def test_remote_failure_is_skipped(self, write_file: WriteFile) -> None:
        url = "https://down.example.com/openapi.json"
        root = write_file("main.rqc", f"import {url}\napi /local {{ get {{}} }}")

        with patch(
            "reqcraft.openapi.loader.httpx.get",
            side_effect=httpx.ConnectError("connection refused"),
        ):
            result = resolve_document(root)

        assert _paths(result.document) == ["/local"]
        (skipped,) = result.skipped
        assert skipped.reason is ImportReason.FETCH
        assert "connection refused" in skipped.message

    def test_remote_imports_disabled(self, write_file: WriteFile) -> None:
        root = write_file("main.rqc", "import https://api.example.com/openapi.json")
        with patch("reqcraft.openapi.loader.httpx.get") as mock_get:
            result = resolve_document(root, settings=ProjectConfig(remote_imports=False))
        mock_get.assert_not_called()
        assert result.skipped[0].reason is ImportReason.DISABLED

    def test_invalid_openapi_file_is_skipped(self, write_file: WriteFile) -> None:
        write_file("broken.json", "{not json")
        root = write_file("main.rqc", 'import "broken.json"\napi /ok { get {} }')
        result = resolve_document(root)
        assert _paths(result.document) == ["/ok"]
        assert result.skipped[0].reason is ImportReason.INVALID_OPENAPI

    def test_malformed_openapi_structure_is_skipped(self, write_file: WriteFile) -> None:
        spec = {"paths": {"/a": {"get": {"summary": {"text": "not a string"}}}}}
        write_file("spec.json", json.dumps(spec))
        write_file("ok.rqc", "api /ok { get {} }")
        root = write_file("main.rqc", 'import "spec.json"\nimport "ok.rqc"')
        result = resolve_document(root)
        assert _paths(result.document) == ["/ok"]
        (skipped,) = result.skipped
        assert skipped.source == "spec.json"
        assert skipped.reason is ImportReason.INVALID_OPENAPI
        assert "Malformed OpenAPI spec" in skipped.message

    def test_odd_shaped_openapi_fields_tolerated(self, write_file: WriteFile) -> None:
        spec = {
            "paths": {
                "/a": {
                    "get": {
                        "tags": {"x": 1},
                        "requestBody": "inline",
                        "responses": {
                            "200": {
                                "content": {
                                    "application/json": {
                                        "schema": {
                                            "required": True,
                                            "properties": {"id": {"type": "integer"}},
                                        }
                                    }
                                }
                            }
                        },
                    }
                }
            }
        }
        write_file("spec.json", json.dumps(spec))
        write_file("ok.rqc", "api /ok { get {} }")
        root = write_file("main.rqc", 'import "spec.json"\nimport "ok.rqc"')
        result = resolve_document(root)
        assert result.skipped == []
        assert _paths(result.document) == ["/ok"]
        (openapi,) = result.document.categories
        assert [api.path for api in openapi.apis] == ["/a"]
        assert openapi.children == []
        method = openapi.apis[0].methods[0]
        assert method.request is None
        assert method.response.fields[0].optional is True


class TestErrorPolicy:
    """Fatal root failures, tolerated import failures."""

    def test_missing_root_is_fatal(self, tmp_path: Path) -> None:
        with pytest.raises(DocumentReadError):
            resolve_document(tmp_path / "missing.rqc")

    def test_root_syntax_error_is_fatal(self, write_file: WriteFile) -> None:
        root = write_file("main.rqc", "api /x {")
        with pytest.raises(DslParseError):
            resolve_document(root)

    def test_missing_import_is_skipped(self, write_file: WriteFile) -> None:
        root = write_file("main.rqc", 'import "nope.rqc"\napi /ok { get {} }')
        result = resolve_document(root)
        assert _paths(result.document) == ["/ok"]
        (skipped,) = result.skipped
        assert skipped.source == "nope.rqc"
        assert skipped.reason is ImportReason.NOT_FOUND
        assert skipped.importer == str(root)

    def test_import_syntax_error_is_skipped(self, write_file: WriteFile) -> None:
        write_file("broken.rqc", "category x")
        write_file("good.rqc", "api /good { get {} }")
        root = write_file("main.rqc", 'import "broken.rqc"\nimport "good.rqc"')
        result = resolve_document(root)
        assert _paths(result.document) == ["/good"]
        assert result.skipped[0].reason is ImportReason.SYNTAX
        assert "broken.rqc" in result.skipped[0].message

    def test_unsupported_extension_is_skipped(self, write_file: WriteFile) -> None:
        write_file("notes.txt", "hello")
        root = write_file("main.rqc", 'import "notes.txt"')
        result = resolve_document(root)
        assert result.skipped[0].reason is ImportReason.UNSUPPORTED

    def test_skips_are_logged(
        self, write_file: WriteFile, caplog: pytest.LogCaptureFixture
    ) -> None:
        root = write_file("main.rqc", 'import "nope.rqc"')
        with caplog.at_level(logging.WARNING, logger="reqcraft.imports"):
            resolve_document(root)
        assert "nope.rqc" in caplog.text

    def test_nested_failure_does_not_hide_siblings(self, write_file: WriteFile) -> None:
        write_file("child.rqc", 'import "gone.rqc"\napi /child { get {} }')
        root = write_file("main.rqc", 'import "child.rqc"')
        result = resolve_document(root)
        assert _paths(result.document) == ["/child"]
        statuses = {o.source: o.status for o in result.outcomes}
        assert statuses["gone.rqc"] is ImportStatus.SKIPPED
        assert statuses["child.rqc"] is ImportStatus.LOADED
