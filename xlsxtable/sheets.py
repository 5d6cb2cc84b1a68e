"""The list of worksheets found in the Excel folder, with their CSV and struct state."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Optional

from xlsxtable.converter import CSV_EXTENSION, ConversionError, list_sheets

log = logging.getLogger(__name__)

COLUMN_SELECT = "Select"
COLUMN_SHEET = "SheetName"
COLUMN_EXCEL = "ExcelName"
COLUMN_EXIST_CSV = "ExistCSV"
COLUMN_EXIST_STRUCT = "ExistStruct"

COLUMNS = (COLUMN_SELECT, COLUMN_SHEET, COLUMN_EXCEL, COLUMN_EXIST_CSV, COLUMN_EXIST_STRUCT)

COLUMN_LABELS = {
    COLUMN_SELECT: "Select",
    COLUMN_SHEET: "Sheet Name",
    COLUMN_EXCEL: "Excel Name",
    COLUMN_EXIST_CSV: "Exist CSV in Project",
    COLUMN_EXIST_STRUCT: "Exist Struct DataType in Project",
}


def matches_sheet(path: str | os.PathLike[str], sheet_name: str) -> bool:
    """True if the file name of path is ``<sheet_name>.csv``."""
    return os.path.basename(os.fspath(path)) == sheet_name + CSV_EXTENSION


def _file_exists(path: str) -> bool:
    return path != "" and Path(path).is_file()


@dataclass
class SheetRow:
    """One worksheet of one workbook, with what exists for it in the project."""

    sheet_name: str
    excel_path: str
    csv_path: str = ""
    struct_name: Optional[str] = None
    checked: bool = False
    excel_name: str = field(init=False)
    csv_exists: bool = field(init=False)
    struct_exists: bool = field(init=False)
    _listeners: list[Callable[[], None]] = field(
        default_factory=list, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        self.excel_name = os.path.basename(self.excel_path)
        self.csv_exists = _file_exists(self.csv_path)
        self.struct_exists = bool(self.struct_name)

    def subscribe(self, callback: Callable[[], None]) -> None:
        """Call callback whenever the CSV state or the check mark changes."""
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback()

    def set_csv_path(self, path: str, silent: bool = False) -> None:
        """Point the row at a CSV file; notify if its existence changed."""
        self.csv_path = path
        previous = self.csv_exists
        self.csv_exists = _file_exists(path)
        if self.csv_exists != previous and not silent:
            self._notify()

    def set_checked(self, checked: bool, silent: bool = False) -> None:
        """Set the check mark; notify if it changed."""
        previous = self.checked
        self.checked = bool(checked)
        if self.checked != previous and not silent:
            self._notify()

    def column_text(self, column: str) -> str:
        """Text shown for the row in the given column; empty for unknown columns."""
        if column == COLUMN_SELECT:
            return str(bool(self.checked))
        if column == COLUMN_SHEET:
            return self.sheet_name
        if column == COLUMN_EXCEL:
            return self.excel_name
        if column == COLUMN_EXIST_CSV:
            return str(bool(self.csv_exists))
        if column == COLUMN_EXIST_STRUCT:
            return str(bool(self.struct_exists))
        return ""


@dataclass
class SheetList:
    """All worksheets of the known workbooks, one row per sheet."""

    rows: list[SheetRow] = field(default_factory=list)
    all_checked: bool = False

    def set_all_checked(self, checked: bool) -> None:
        """Check or uncheck every row."""
        self.all_checked = bool(checked)
        for row in self.rows:
            row.set_checked(checked)

    def refresh_sheets(
        self,
        excel_files: Iterable[str],
        csv_files: Iterable[str],
        struct_names: Iterable[str],
    ) -> None:
        """Rebuild the rows from the workbooks; unreadable workbooks add no rows."""
        csv_list = list(csv_files)
        structs = list(struct_names)
        self.rows = []
        self.all_checked = False
        for excel_file in excel_files:
            try:
                sheet_names = list_sheets(excel_file)
            except ConversionError as exc:
                log.error("failed to search sheets of %s: %s", excel_file, exc)
                continue
            for sheet_name in sheet_names:
                csv_path = next((p for p in csv_list if matches_sheet(p, sheet_name)), "")
                struct = next((s for s in structs if s == sheet_name), None)
                self.rows.append(SheetRow(sheet_name, excel_file, csv_path, struct))

    def refresh_csv(self, csv_files: Iterable[str]) -> None:
        """Update each row whose sheet has a matching CSV file."""
        csv_list = list(csv_files)
        for row in self.rows:
            match = next((p for p in csv_list if matches_sheet(p, row.sheet_name)), None)
            if match is not None:
                row.set_csv_path(match)

    def checked(self) -> list[SheetRow]:
        """The rows that are checked, in list order."""
        return [row for row in self.rows if row.checked]