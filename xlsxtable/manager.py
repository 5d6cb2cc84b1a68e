"""The data-table manager: folder settings, sheet list and the conversion actions."""

from __future__ import annotations

import argparse
import logging
import os
import re
import sys
from pathlib import Path
from typing import Iterable, Optional, Sequence

from xlsxtable.converter import CSV_EXTENSION, ConversionError, convert_sheets, find_files
from xlsxtable.paths import (
    FolderPath,
    PathError,
    PathType,
    ToolConfig,
    load_config,
    resolve_project_folder,
)
from xlsxtable.sheets import COLUMN_LABELS, COLUMN_SELECT, COLUMNS, SheetList
from xlsxtable.structgen import StructGenerationError, generate_struct_header

log = logging.getLogger(__name__)

XLSX_EXTENSION = ".xlsx"
HEADER_EXTENSION = ".h"
CONFIG_NAME = "DataTableManager.ini"

_ROW_STRUCT = re.compile(r"struct\s+F(\w+)\s*:\s*public\s+FTableRowBase\b")


class ManagerError(Exception):
    """Raised when one of the manager's actions cannot be carried out."""


def _scan_struct_names(folder: str) -> list[str]:
    """Names (without the F prefix) of row structs declared in headers under folder."""
    if not folder or not Path(folder).is_dir():
        return []
    try:
        headers = find_files(folder, HEADER_EXTENSION)
    except ConversionError as exc:
        log.error("cannot search struct headers: %s", exc)
        return []
    names: list[str] = []
    for header in headers:
        try:
            text = Path(header).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            log.error("cannot read %s: %s", header, exc)
            continue
        for name in _ROW_STRUCT.findall(text):
            if name not in names:
                names.append(name)
    return names


class DataTableManager:
    """Keeps the four folders, the sheets found in the Excel folder, and runs the actions."""

    def __init__(
        self,
        config: Optional[ToolConfig] = None,
        project_dir: str | os.PathLike[str] = ".",
        config_file: Optional[str | os.PathLike[str]] = None,
        struct_names: Optional[Iterable[str]] = None,
    ) -> None:
        self.config = config if config is not None else ToolConfig()
        self.project_dir = Path(os.path.abspath(os.fspath(project_dir)))
        self.config_file = config_file
        self.sheets = SheetList()
        self.excel_files: list[str] = []
        self.csv_files: list[str] = []
        project = str(self.project_dir)
        self.folders = {
            PathType.EXCEL: FolderPath(
                self.config,
                PathType.EXCEL,
                title="Excel Folder Path",
                hint="Excel Folder Path (You Must be Select Folder in Project Directory)",
                default_path=project,
                on_text_changed=lambda _text: self.refresh_excel(),
                config_file=config_file,
            ),
            PathType.CSV: FolderPath(
                self.config,
                PathType.CSV,
                title="CSV Folder Path",
                hint="CSV Folder Path (You Must be Select Folder in Project Directory)",
                default_path=project,
                on_text_changed=lambda _text: self.refresh_csv(),
                config_file=config_file,
            ),
            PathType.STRUCT: FolderPath(
                self.config,
                PathType.STRUCT,
                title="Struct Folder Path",
                hint="Struct Header Folder Path (You Must be Select Folder in Project Source Directory)",
                default_path=str(self.project_dir / "Source"),
                config_file=config_file,
            ),
            PathType.ASSET: FolderPath(
                self.config,
                PathType.ASSET,
                title="Asset Folder Path",
                hint="Struct Header Folder Path (You Must be Select Folder in Project Source Directory)",
                default_path=str(self.project_dir / "Content"),
                config_file=config_file,
            ),
        }
        if struct_names is None:
            self.struct_names = _scan_struct_names(self._folder(PathType.STRUCT))
        else:
            self.struct_names = list(struct_names)
        self.refresh_excel()

    def _folder(self, path_type: PathType) -> str:
        return self.folders[path_type].path() or ""

    def _valid_folder(self, path_type: PathType) -> Optional[str]:
        folder = self._folder(path_type)
        if folder and Path(folder).is_dir():
            return folder
        return None

    def _find(self, path_type: PathType, extension: str) -> list[str]:
        try:
            return find_files(self._folder(path_type), extension)
        except ConversionError as exc:
            log.error("%s", exc)
            return []

    def refresh_excel(self) -> None:
        """Re-scan the Excel and CSV folders and rebuild the sheet list."""
        self.excel_files = self._find(PathType.EXCEL, XLSX_EXTENSION)
        self.csv_files = self._find(PathType.CSV, CSV_EXTENSION)
        self.sheets.refresh_sheets(self.excel_files, self.csv_files, self.struct_names)
        self.sheets.refresh_csv(self.csv_files)

    def refresh_csv(self) -> None:
        """Re-scan the CSV folder and update the CSV state of every sheet."""
        self.csv_files = self._find(PathType.CSV, CSV_EXTENSION)
        self.sheets.refresh_csv(self.csv_files)

    def convert_csv(self) -> list[Path]:
        """Write a CSV file for every checked sheet into the CSV folder."""
        folder = self._valid_folder(PathType.CSV)
        if folder is None:
            raise ManagerError("CSV Folder Path is not exist or invalid")

        groups: dict[str, list[str]] = {}
        for row in self.sheets.checked():
            groups.setdefault(row.excel_path, []).append(row.sheet_name)

        written: list[Path] = []
        failures: list[str] = []
        for excel_path, sheet_names in groups.items():
            try:
                written.extend(convert_sheets(excel_path, sheet_names, folder))
            except ConversionError as exc:
                log.error("Convert CSV Failed: %s", exc)
                failures.append(f"{excel_path}: {exc}")

        self.refresh_csv()
        if failures:
            raise ManagerError("Convert CSV Failed: " + "; ".join(failures))
        return written

    def generate_structs(self) -> list[Path]:
        """Write a struct header for every workbook that has a checked sheet."""
        csv_folder = self._valid_folder(PathType.CSV)
        if csv_folder is None:
            raise ManagerError("CSV Folder Path is not exist or invalid")
        struct_folder = self._valid_folder(PathType.STRUCT)
        if struct_folder is None:
            raise ManagerError("Struct Folder Path is not exist or invalid")

        checked = self.sheets.checked()
        if any(not row.csv_exists for row in checked):
            raise ManagerError(
                "There is an item in the selected sheet where the csv file does not exist"
            )

        headers: list[Path] = []
        for excel_path in dict.fromkeys(row.excel_path for row in checked):
            try:
                headers.append(generate_struct_header(excel_path, csv_folder, struct_folder))
            except StructGenerationError as exc:
                raise ManagerError(f"Generate Struct Failed: {exc}") from exc
        return headers


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xlsxtable", description="Manage Xlsx, CSV and data-table struct files."
    )
    parser.add_argument("--project", default=".", help="project directory")
    parser.add_argument("--config", default=None, help="settings file")
    parser.add_argument("--excel", help="Excel folder path")
    parser.add_argument("--csv", help="CSV folder path")
    parser.add_argument("--struct", help="struct header folder path")
    parser.add_argument("--asset", help="asset folder path")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("list", help="show the sheets found in the Excel folder")
    for name, text in (
        ("convert", "generate CSV files in the CSV folder"),
        ("structs", "generate struct headers in the struct folder"),
    ):
        sub = commands.add_parser(name, help=text)
        sub.add_argument("--sheet", action="append", default=[], help="sheet to select")
        sub.add_argument("--all", action="store_true", help="select every sheet")
    return parser


def _print_sheets(manager: DataTableManager) -> None:
    columns = [column for column in COLUMNS if column != COLUMN_SELECT]
    print("\t".join(COLUMN_LABELS[column] for column in columns))
    for row in manager.sheets.rows:
        print("\t".join(row.column_text(column) for column in columns))


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the manager from the command line; returns the exit status."""
    args = _build_parser().parse_args(argv)
    project = os.path.abspath(args.project)
    config_file = args.config or os.path.join(project, CONFIG_NAME)

    try:
        config = load_config(config_file)
        overrides = {
            PathType.EXCEL: args.excel,
            PathType.CSV: args.csv,
            PathType.STRUCT: args.struct,
            PathType.ASSET: args.asset,
        }
        changed = False
        for path_type, value in overrides.items():
            if value is not None:
                config.set_path(path_type, resolve_project_folder(value, project))
                changed = True
        if changed:
            config.save(config_file)

        manager = DataTableManager(config, project, config_file)

        if args.command == "list":
            _print_sheets(manager)
            return 0

        if args.all:
            manager.sheets.set_all_checked(True)
        else:
            wanted = set(args.sheet)
            for row in manager.sheets.rows:
                if row.sheet_name in wanted:
                    row.set_checked(True)

        if args.command == "convert":
            manager.convert_csv()
            print("Convert CSV Success")
        else:
            manager.generate_structs()
            print("Generate Struct Success\nTo import csv, please rebuild the project")
        return 0
    except (ManagerError, PathError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())