"""Tests for the accessor-nav CLI."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from accessor_nav.cli.app import app
from accessor_nav.models import Position
from tests.conftest import SampleWorkspace

runner = CliRunner()

PositionOf = Callable[..., Position]


@pytest.fixture
def workspace(tmp_path: Path, sample: SampleWorkspace) -> Path:
    root = tmp_path.resolve()
    for path, text in sample.files.items():
        target = root / Path(path).relative_to(sample.root)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
    return root


def _args(workspace: Path, sample: SampleWorkspace, path: str, position: Position) -> list[str]:
    file = workspace / Path(path).relative_to(sample.root)
    return [str(file), str(position.row + 1), str(position.column + 1), "--root", str(workspace)]


@pytest.mark.parametrize(
    "args",
    [
        [],
        ["resolve"],
        ["references"],
        ["complete"],
        ["scan"],
        ["proxy"],
        ["serve"],
        ["serve", "api"],
        ["serve", "mcp"],
    ],
    ids=["root", "resolve", "references", "complete", "scan", "proxy", "serve", "serve-api", "serve-mcp"],
)
def test_short_help_flag(args: list[str]) -> None:
    result = runner.invoke(app, [*args, "-h"])
    assert result.exit_code == 0
    assert "Usage" in result.output


class TestResolveCommand:
    def test_prints_one_based_location(
        self, workspace: Path, sample: SampleWorkspace, position_of: PositionOf
    ) -> None:
        position = position_of(sample.document(sample.service_path), "getName")
        result = runner.invoke(app, ["resolve", *_args(workspace, sample, sample.service_path, position)])
        assert result.exit_code == 0, result.output
        assert f"{workspace / 'app/Domain/Widget.php'}:11:5" in result.output

    def test_no_declaration(self, workspace: Path, sample: SampleWorkspace, position_of: PositionOf) -> None:
        position = position_of(sample.document(sample.service_path), "calculate")
        result = runner.invoke(app, ["resolve", *_args(workspace, sample, sample.service_path, position)])
        assert result.exit_code == 0
        assert "No declaration found." in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["resolve", str(tmp_path / "Nope.php"), "1", "1"])
        assert result.exit_code == 1
        assert "Cannot read" in result.output


class TestReferencesCommand:
    def test_lists_locations(self, workspace: Path, sample: SampleWorkspace, position_of: PositionOf) -> None:
        position = position_of(sample.document(sample.service_path), "getName")
        result = runner.invoke(app, ["references", *_args(workspace, sample, sample.service_path, position)])
        assert result.exit_code == 0, result.output
        assert "(3 rows)" in result.output


class TestCompleteCommand:
    def test_lists_accessors(self, workspace: Path, tmp_path: Path) -> None:
        draft = workspace / "app" / "Service" / "Draft.php"
        draft.write_text(
            "<?php\nnamespace App\\Service;\nuse App\\Domain\\Widget;\nfunction f(Widget $w) {\n    $w->getN\n}\n",
            encoding="utf-8",
        )
        result = runner.invoke(app, ["complete", str(draft), "5", "13", "--root", str(workspace)])
        assert result.exit_code == 0, result.output
        assert "getName" in result.output
        assert "(1 rows)" in result.output


class TestScanCommand:
    def test_scan_widget(self, workspace: Path) -> None:
        result = runner.invoke(app, ["scan", str(workspace / "app" / "Domain" / "Widget.php")])
        assert result.exit_code == 0, result.output
        assert "App\\Domain" in result.output
        assert "Widget" in result.output
        assert "BaseEntity" in result.output
        assert "LOWER_CAMEL_CASE" in result.output
        assert "internalCode" in result.output


class TestProxyCommand:
    def test_decodes_name(self) -> None:
        result = runner.invoke(app, ["proxy", "_Proxy_App_Domain_WidgetAccessor.php"])
        assert result.exit_code == 0
        lines = [line.strip() for line in result.output.splitlines() if line.strip()]
        assert lines[0] == "* App\\Domain\\Widget"
        assert "App_Domain_Widget" in lines[-1]

    def test_rejects_other_names(self) -> None:
        result = runner.invoke(app, ["proxy", "Widget.php"])
        assert result.exit_code == 1
        assert "not a proxy file name" in result.output


class TestServeMcpCommand:
    def test_relative_environment_roots_are_resolved(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        (tmp_path / "ws").mkdir()
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("ACCESSOR_NAV_ROOTS", "ws")
        with patch("accessor_nav.mcp.server.create_mcp_server") as create:
            result = runner.invoke(app, ["serve", "mcp"])
        assert result.exit_code == 0
        context = create.call_args.args[0]
        assert context.settings.roots == [(tmp_path / "ws").resolve()]
        create.return_value.run.assert_called_once_with(transport="stdio")
