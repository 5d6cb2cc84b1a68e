"""Turn worksheets of typed tables into CSV files ready for data-table import."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from xlsxtable.workbook import Workbook, WorkbookError, Worksheet, open_workbook

TABLE_DIRECTORY = "Table"
EXCEL_DIRECTORY = "Excel"
CSV_DIRECTORY = "CSV"
CSV_EXTENSION = ".csv"

VALID_TYPES = frozenset(
    {
        "int", "uint", "int8", "uint8", "int16", "uint16", "int32", "uint32",
        "int64", "uint64", "float", "double", "bool", "boolean", "char",
        "ansichar", "tchar", "fstring", "ftext", "fname",
    }
)


class ConversionError(Exception):
    """Raised when a workbook cannot be turned into CSV files."""


def is_data_type_cell(text: str) -> bool:
    """True if text names one of the recognised column types, in any case."""
    return text.lower() in VALID_TYPES


def _split_parts(text: str) -> list[str]:
    parts = text.split("=")
    if parts[-1] == "":
        parts.pop()
    return parts


def sheet_to_csv(worksheet: Worksheet) -> str:
    """Render the typed table of a worksheet as CSV text.

    The table starts at the first cell holding a type name. Its row gives the
    column types (a cell such as ``int=KEY`` marks the key column), the next
    row the column names, and every later row one record. A leading ``Key``
    column is added: the key cell's value, or ``1`` when no key was marked.
    """
    lines: list[str] = []
    start_row = start_cell = key_cell = -1
    key_value = 1

    for row_num, row in enumerate(worksheet.rows()):
        values: list[str] = []
        for cell_num, text in enumerate(row):
            parts: list[str] = []
            if start_row == -1 or row_num == start_row:
                parts = _split_parts(text)
                for part in parts:
                    if start_row == -1 and is_data_type_cell(part):
                        start_row, start_cell = row_num, cell_num
                    if part == "KEY" and row_num == start_row:
                        key_cell = cell_num

            if start_row != -1 and start_cell != -1 and start_row <= row_num and start_cell <= cell_num:
                if row_num == start_row and parts:
                    values.append(parts[0])
                else:
                    values.append(text)

        if start_row == -1 or row_num < start_row:
            continue
        if row_num in (start_row, start_row + 1):
            values.insert(0, "Key")
        elif key_cell == -1:
            values.insert(0, str(key_value))
        else:
            try:
                values.insert(0, values[key_cell - start_cell])
            except IndexError:
                raise ConversionError(
                    f"row {row_num + 1} of sheet {worksheet.name!r} has no key cell"
                ) from None
        lines.append(",".join(values) + "\n")

    return "".join(lines)


def create_csv(worksheet: Worksheet, out_folder: str | os.PathLike[str]) -> Path:
    """Write the worksheet's table to ``<out_folder>/<sheet name>.csv``."""
    target = Path(out_folder) / (worksheet.name + CSV_EXTENSION)
    content = sheet_to_csv(worksheet)
    try:
        with open(target, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
    except OSError as exc:
        raise ConversionError(f"failed to create CSV file {target}: {exc}") from exc
    return target


def _check_inputs(xlsx_path: str | os.PathLike[str], out_folder: str | os.PathLike[str]) -> None:
    if os.fspath(xlsx_path) == "" or not Path(xlsx_path).is_file():
        raise ConversionError(f"invalid file path for XLSX: {os.fspath(xlsx_path)!r}")
    if os.fspath(out_folder) == "" or not Path(out_folder).is_dir():
        raise ConversionError(f"invalid folder path for CSV: {os.fspath(out_folder)!r}")


def _convert(workbook: Workbook, names: Iterable[str], out_folder) -> list[Path]:
    return [create_csv(workbook.worksheet(name), out_folder) for name in names]


def convert_all_sheets(
    xlsx_path: str | os.PathLike[str], out_folder: str | os.PathLike[str]
) -> list[Path]:
    """Write one CSV file per worksheet of the workbook; return their paths."""
    _check_inputs(xlsx_path, out_folder)
    try:
        with open_workbook(xlsx_path) as workbook:
            return _convert(workbook, workbook.sheet_names(), out_folder)
    except WorkbookError as exc:
        raise ConversionError(f"failed to create CSV file: {exc}") from exc


def convert_sheets(
    xlsx_path: str | os.PathLike[str],
    sheet_names: Iterable[str],
    out_folder: str | os.PathLike[str],
) -> list[Path]:
    """Write CSV files for the named worksheets only, in workbook order."""
    _check_inputs(xlsx_path, out_folder)
    wanted = set(sheet_names)
    try:
        with open_workbook(xlsx_path) as workbook:
            names = [name for name in workbook.sheet_names() if name in wanted]
            return _convert(workbook, names, out_folder)
    except WorkbookError as exc:
        raise ConversionError(f"failed to create CSV file: {exc}") from exc


def find_files(folder: str | os.PathLike[str], extension: str) -> list[str]:
    """Full paths of all files under folder, recursively, ending in extension."""
    if len(extension) < 2 or not extension.startswith("."):
        raise ConversionError(f"wrong extension string: {extension!r}")
    if os.fspath(folder) == "" or not Path(folder).is_dir():
        raise ConversionError(f"folder does not exist: {os.fspath(folder)!r}")
    suffix = extension.lower()
    return sorted(
        str(path.resolve())
        for path in Path(folder).rglob("*")
        if path.is_file() and path.name.lower().endswith(suffix)
    )


def list_sheets(xlsx_path: str | os.PathLike[str]) -> list[str]:
    """Names of the worksheets of the workbook at xlsx_path."""
    if not Path(xlsx_path).is_file():
        raise ConversionError(f"invalid file path for XLSX: {os.fspath(xlsx_path)!r}")
    try:
        with open_workbook(xlsx_path) as workbook:
            return workbook.sheet_names()
    except WorkbookError as exc:
        raise ConversionError(f"failed to read sheets: {exc}") from exc