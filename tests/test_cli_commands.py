from __future__ import annotations

import json
from pathlib import Path
import textwrap

from typer.testing import CliRunner

from defew import cli


RECORDS = textwrap.dedent(
    """
    from __future__ import annotations

    from dataclasses import dataclass
    from typing import Annotated

    from defew import Defew, defew, new


    @dataclass
    class Data(Defew):
        a: int
        b: Annotated[str, new("ABC")]


    @defew(scope="app.core")
    @dataclass
    class Token(Defew):
        value: Annotated[str, new]
    """
).lstrip()


def _records(tmp_path: Path) -> Path:
    path = tmp_path / "records.py"
    path.write_text(RECORDS)
    return path


def _invoke(args: list[str]):
    return CliRunner().invoke(cli.app, args)


def test_cli_help_lists_commands() -> None:
    result = _invoke(["--help"])
    assert result.exit_code == 0
    for command in ("render", "apply", "describe"):
        assert command in result.output


def test_render_prints_constructors(tmp_path: Path) -> None:
    result = _invoke(["render", str(_records(tmp_path))])
    assert result.exit_code == 0
    assert "# Data" in result.output
    assert 'def new(cls) -> "Data":' in result.output
    assert 'def _new(cls, value: str) -> "Token":' in result.output


def test_render_class_filter_and_config(tmp_path: Path) -> None:
    config = tmp_path / "defew.toml"
    config.write_text('[synthesis]\nconstructor_name = "create"\n')
    result = _invoke(
        ["render", str(_records(tmp_path)), "--class", "Data", "--config", str(config)]
    )
    assert result.exit_code == 0
    assert 'def create(cls) -> "Data":' in result.output
    assert "Token" not in result.output


def test_render_json_payload(tmp_path: Path) -> None:
    result = _invoke(["render", str(_records(tmp_path)), "--json"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["diagnostics"] == []
    data, token = payload["plans"]
    assert data["method_name"] == "new"
    assert data["visibility"] == "public"
    assert data["construction"] == {"a": "a", "b": "b"}
    assert [binding["name"] for binding in data["bindings"]] == ["a", "b"]
    assert token["visibility"] == "scoped"
    assert token["scope"] == "app.core"
    assert token["parameters"] == [{"name": "value", "type": "str"}]


def test_render_reports_diagnostics(tmp_path: Path) -> None:
    path = tmp_path / "bad.py"
    path.write_text(
        "from defew import Defew, new\n\n"
        "class Twice(Defew):\n"
        "    a: Annotated[int, new, new(1)]\n"
    )
    result = _invoke(["render", str(path)])
    assert result.exit_code == 1
    assert f"{path}:4:" in result.output
    assert "error[multiple-annotations]" in result.output


def test_apply_dry_run_and_write(tmp_path: Path) -> None:
    path = _records(tmp_path)
    dry = _invoke(["apply", str(path)])
    assert dry.exit_code == 0
    assert "def new(cls)" in dry.output
    assert path.read_text() == RECORDS

    written = _invoke(["apply", str(path), "--write"])
    assert written.exit_code == 0
    assert f"Wrote {path}" in written.output
    assert "def _new(cls, value: str)" in path.read_text()

    again = _invoke(["apply", str(path), "--write"])
    assert again.exit_code == 0
    assert "already up to date" in again.output


def test_describe_renders_impl_blocks(tmp_path: Path) -> None:
    document = tmp_path / "pair.toml"
    document.write_text(
        textwrap.dedent(
            """
            name = "Pair"
            annotations = ["defew(Factory)"]

            [[fields]]
            type = "int"
            annotations = ["new"]

            [[fields]]
            type = "int"
            annotations = ["new(123)"]
            """
        ).strip()
        + "\n"
    )
    result = _invoke(["describe", str(document)])
    assert result.exit_code == 0
    assert "class Pair(Factory):" in result.output
    assert 'def new(cls, field0: int) -> "Pair":' in result.output
    assert "return cls(field0, field1)" in result.output

    as_json = _invoke(["describe", str(document), "--json"])
    payload = json.loads(as_json.stdout)
    assert payload["plans"][0]["trait_target"] == "Factory"
    assert payload["plans"][0]["construction"] == {"0": "field0", "1": "field1"}


def test_describe_rejects_invalid_documents(tmp_path: Path) -> None:
    document = tmp_path / "bad.json"
    document.write_text('{"fields": []}')
    result = _invoke(["describe", str(document)])
    assert result.exit_code == 1
    assert "Invalid description" in result.output
