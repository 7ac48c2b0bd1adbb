from __future__ import annotations

import io
import json

import pytest

from affinidi_cli.config_store import JSON, ConfigService, MemoryConfigStorer
from affinidi_cli.display import CSV, TABLE, Display, to_plaintext
from affinidi_cli.errors import CliError, UnknownOutputFormat


def _display(output_format: str | None = None) -> tuple[Display, io.StringIO, io.StringIO]:
    config = ConfigService(MemoryConfigStorer())
    if output_format:
        config.create("user-1")
        config.set_output_format(output_format)
    out = io.StringIO()
    err = io.StringIO()
    return Display(config, stdout=out, stderr=err), out, err


def test_strings_are_printed_raw() -> None:
    display, out, err = _display()

    display.output("hello there")

    assert out.getvalue() == "hello there\n"
    assert err.getvalue() == ""


def test_errors_go_to_stderr() -> None:
    display, out, err = _display()

    display.output("boom", err=True)

    assert out.getvalue() == ""
    assert err.getvalue() == "boom\n"


def test_persisted_json_format_is_used() -> None:
    display, out, _ = _display(JSON)

    display.output({"id": "x"})

    assert json.loads(out.getvalue()) == {"id": "x"}


def test_explicit_format_beats_persisted_one() -> None:
    display, out, _ = _display(JSON)

    display.output({"id": "x"}, "plaintext")

    assert out.getvalue() == "id : x\n"


def test_plaintext_nests_mappings() -> None:
    text = to_plaintext({"project": {"projectId": "p-1"}, "tags": ["a"], "empty": None})
    assert text.splitlines() == ["project :", "  projectId : p-1", "tags :", "  - a", "empty : "]


def test_rows_as_csv() -> None:
    display, out, _ = _display()

    display.rows([{"index": 0, "id": "A"}, {"index": 1, "id": "B"}], CSV)

    assert out.getvalue().splitlines() == ["index,id", "0,A", "1,B"]


def test_rows_as_json() -> None:
    display, out, _ = _display()

    display.rows([{"index": 0, "id": "A"}], JSON)

    assert json.loads(out.getvalue()) == [{"index": 0, "id": "A"}]


def test_rows_as_table_hide_extended_columns() -> None:
    display, out, _ = _display()
    columns = (("id", "ID", False), ("authorDid", "author Did", True))

    display.rows([{"id": "SchemaV1-0", "authorDid": "did:elem:x"}], TABLE, columns=columns)
    assert "SchemaV1-0" in out.getvalue()
    assert "did:elem:x" not in out.getvalue()

    display.rows(
        [{"id": "SchemaV1-0", "authorDid": "did:elem:x"}], TABLE, columns=columns, extended=True
    )
    assert "did:elem:x" in out.getvalue()


def test_rows_reject_unknown_format() -> None:
    display, _, _ = _display()

    with pytest.raises(CliError) as excinfo:
        display.rows([], "yaml")

    assert excinfo.value.message == UnknownOutputFormat


def test_to_file_writes_json(tmp_path) -> None:
    display, _, _ = _display()

    path = display.to_file({"a": 1}, tmp_path / "projects.json")

    assert json.loads(path.read_text(encoding="utf-8")) == {"a": 1}
