"""Render command results to the terminal or to a file."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Mapping, Sequence, TextIO

from rich.console import Console
from rich.table import Table

from affinidi_cli.config_store import JSON, PLAINTEXT, ConfigService
from affinidi_cli.errors import CliError, UnknownOutputFormat

TABLE = "table"
CSV = "csv"


def to_json(item: Any) -> str:
    return json.dumps(item, indent=2, ensure_ascii=False, default=str)


def to_plaintext(item: Any, indent: int = 0) -> str:
    """Render mappings as ``key : value`` lines, nesting by indentation."""
    pad = "  " * indent
    if isinstance(item, Mapping):
        lines = []
        for key, value in item.items():
            if isinstance(value, (Mapping, list)) and value:
                lines.append(f"{pad}{key} :")
                lines.append(to_plaintext(value, indent + 1))
            else:
                lines.append(f"{pad}{key} : {_scalar(value)}")
        return "\n".join(lines)
    if isinstance(item, list):
        blocks = []
        for entry in item:
            if isinstance(entry, (Mapping, list)):
                blocks.append(to_plaintext(entry, indent))
            else:
                blocks.append(f"{pad}- {_scalar(entry)}")
        return "\n".join(blocks)
    return f"{pad}{_scalar(item)}"


def _scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (Mapping, list)):
        return json.dumps(value)
    return str(value)


class Display:
    def __init__(self, config: ConfigService, *, stdout: TextIO, stderr: TextIO) -> None:
        self.config = config
        self.stdout = stdout
        self.stderr = stderr

    def resolve_format(self, output_format: str | None) -> str:
        if output_format:
            return output_format
        return self.config.get_output_format() or PLAINTEXT

    def output(self, item: Any, output_format: str | None = None, *, err: bool = False) -> None:
        stream = self.stderr if err else self.stdout
        fmt = self.resolve_format(output_format)
        if isinstance(item, str):
            text = item
        elif fmt == JSON:
            text = to_json(item)
        else:
            text = to_plaintext(item)
        print(text, file=stream)

    def to_file(self, item: Any, path: str | Path) -> Path:
        target = Path(path)
        target.write_text(to_json(item) + "\n", encoding="utf-8")
        return target

    def rows(
        self,
        data: Sequence[Mapping[str, Any]],
        output_format: str,
        *,
        columns: Sequence[tuple[str, str, bool]] = (),
        extended: bool = False,
    ) -> None:
        """Print tabular data as ``json``, ``csv`` or a ``table``.

        ``columns`` holds ``(key, header, extended_only)`` triples used by the
        table renderer; csv and json always carry every field.
        """
        if output_format == JSON:
            print(json.dumps(list(data), indent=1, default=str), file=self.stdout)
            return
        if output_format == CSV:
            fieldnames = list(data[0].keys()) if data else [key for key, _, _ in columns]
            writer = csv.DictWriter(self.stdout, fieldnames=fieldnames, lineterminator="\n")
            writer.writeheader()
            for row in data:
                writer.writerow({key: _scalar(row.get(key)) for key in fieldnames})
            return
        if output_format == TABLE:
            table = Table(show_lines=False)
            visible = [column for column in columns if extended or not column[2]]
            for _, header, _ in visible:
                table.add_column(header)
            for row in data:
                table.add_row(*(_scalar(row.get(key)) for key, _, _ in visible))
            Console(file=self.stdout, width=200).print(table)
            return
        raise CliError(UnknownOutputFormat, 0, "schema")
