"""Generate row-struct headers from a workbook's sheets and their CSV files."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import TextIO

from xlsxtable.converter import CSV_EXTENSION
from xlsxtable.workbook import Workbook, WorkbookError, open_workbook

TYPE_ALIASES = {
    "long double": "double",
    "string": "FString",
    "fstring": "FString",
    "text": "FText",
    "ftext": "FText",
}

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class StructGenerationError(Exception):
    """Raised when a struct header cannot be generated."""


def unreal_type(var_type: str) -> str:
    """Map a column type to the engine type; unknown types pass through unchanged."""
    return TYPE_ALIASES.get(var_type.lower(), var_type)


def write_preamble(stream: TextIO) -> None:
    """Write the comment block that opens every generated header."""
    stream.write("// It is auto generated header file.\n")
    stream.write("// Please do not edit\n\n")


def write_includes(stream: TextIO, header_name: str) -> None:
    """Write the pragma and include lines for a header called header_name."""
    stream.write("#pragma once\n\n")
    stream.write('#include "CoreMinimal.h"\n')
    stream.write('#include "Engine/DataTable.h"\n')
    stream.write(f'#include "{header_name}.generated.h"\n\n')


def _split_fields(line: str) -> list[str]:
    return [part for part in line.split(",") if part]


def _read_csv_lines(path: Path) -> list[str]:
    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise StructGenerationError(f"cannot read CSV file {path}: {exc}") from exc
    return [line for line in _LINE_BREAK.split(text) if line]


def write_structs(stream: TextIO, workbook: Workbook, csv_folder: str | os.PathLike[str]) -> list[str]:
    """Write one struct per worksheet, typed from ``<csv_folder>/<sheet>.csv``.

    The CSV's first line holds the column types and its second the column
    names; the leading key column is skipped. Returns the struct names written.
    """
    folder = Path(os.path.abspath(os.fspath(csv_folder)))
    written: list[str] = []
    for sheet_name in workbook.sheet_names():
        csv_path = folder / (sheet_name + CSV_EXTENSION)
        lines = _read_csv_lines(csv_path)
        if len(lines) < 2:
            raise StructGenerationError(f"CSV file {csv_path} needs a type row and a name row")

        var_types = _split_fields(lines[0])
        var_names = _split_fields(lines[1])
        if len(var_types) < 2 or len(var_names) < 2 or len(var_types) != len(var_names):
            raise StructGenerationError(
                f"CSV file {csv_path} has mismatched or missing type and name columns"
            )

        struct_name = f"F{sheet_name}"
        stream.write("USTRUCT(BlueprintType)\n")
        stream.write(f"struct {struct_name} : public FTableRowBase\n")
        stream.write("{\n")
        stream.write("    GENERATED_BODY()\n\n")
        for var_type, var_name in zip(var_types[1:], var_names[1:]):
            stream.write("\tUPROPERTY(EditAnywhere, BlueprintReadWrite)\n")
            stream.write(f"\t{unreal_type(var_type)} {var_name};\n\n")
        stream.write("};\n")
        written.append(struct_name)
    return written


def generate_struct_header(
    xlsx_path: str | os.PathLike[str],
    csv_folder: str | os.PathLike[str],
    out_folder: str | os.PathLike[str],
) -> Path:
    """Write ``<out_folder>/<workbook name>.h`` holding a struct per sheet."""
    try:
        workbook = open_workbook(xlsx_path)
    except WorkbookError as exc:
        raise StructGenerationError(f"failed to open Excel file: {exc}") from exc

    with workbook:
        header_name = workbook.name[:-5]
        target = Path(out_folder) / f"{header_name}.h"
        try:
            handle = open(target, "w", encoding="utf-8", newline="")
        except OSError as exc:
            raise StructGenerationError(
                f"cannot create {target}; check that the struct folder exists"
            ) from exc
        with handle:
            write_preamble(handle)
            write_includes(handle, header_name)
            write_structs(handle, workbook, csv_folder)
    return target