"""Read the worksheets of an .xlsx workbook as rows of cell text."""

from __future__ import annotations

import os
import posixpath
import re
import xml.etree.ElementTree as ET
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

_MAIN = "{http://schemas.openxmlformats.org/spreadsheetml/2006/main}"
_DOC_REL = "{http://schemas.openxmlformats.org/officeDocument/2006/relationships}"
_PKG_REL = "{http://schemas.openxmlformats.org/package/2006/relationships}"

_CELL_REF = re.compile(r"([A-Za-z]+)(\d+)")
_INTEGER = re.compile(r"[+-]?\d+")


class WorkbookError(Exception):
    """Raised when a workbook or one of its parts cannot be read."""


@dataclass
class Worksheet:
    """A named grid of cell text; missing cells inside a row are empty strings."""

    name: str
    cells: list[list[str]] = field(default_factory=list)

    def rows(self) -> Iterator[list[str]]:
        """Yield every row from the first to the last, each as a new list."""
        for row in self.cells:
            yield list(row)


def _column_index(ref: str) -> int:
    match = _CELL_REF.fullmatch(ref)
    if match is None:
        raise WorkbookError(f"malformed cell reference {ref!r}")
    index = 0
    for letter in match.group(1).upper():
        index = index * 26 + ord(letter) - ord("A") + 1
    return index


def _inline_text(node: ET.Element) -> str:
    parts = [t.text or "" for t in node.findall(f"{_MAIN}t")]
    parts.extend(t.text or "" for t in node.findall(f"{_MAIN}r/{_MAIN}t"))
    return "".join(parts)


def _format_number(raw: str) -> str:
    text = raw.strip()
    if _INTEGER.fullmatch(text):
        return str(int(text))
    try:
        return format(float(text), "g")
    except ValueError:
        return raw


class Workbook:
    """An open .xlsx file; use it as a context manager or call close()."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        try:
            self._zip = zipfile.ZipFile(self.path)
        except FileNotFoundError:
            raise WorkbookError(f"no such workbook: {self.path}") from None
        except (zipfile.BadZipFile, OSError) as exc:
            raise WorkbookError(f"cannot open workbook {self.path}: {exc}") from exc
        self._closed = False
        try:
            self._sheets, self._shared = self._read_index()
        except Exception:
            self._zip.close()
            raise

    @property
    def name(self) -> str:
        """The file name of the workbook, extension included."""
        return self.path.name

    def __enter__(self) -> "Workbook":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _read_xml(self, member: str) -> ET.Element:
        try:
            data = self._zip.read(member)
        except KeyError:
            raise WorkbookError(f"workbook part {member!r} is missing") from None
        try:
            return ET.fromstring(data)
        except ET.ParseError as exc:
            raise WorkbookError(f"workbook part {member!r} is not valid XML") from exc

    def _has(self, member: str) -> bool:
        return member in self._zip.namelist()

    def _relationships(self, part: str) -> dict[str, tuple[str, str]]:
        rels_path = posixpath.join(
            posixpath.dirname(part), "_rels", posixpath.basename(part) + ".rels"
        )
        if not self._has(rels_path):
            return {}
        base = posixpath.dirname(part)
        result = {}
        for rel in self._read_xml(rels_path).findall(f"{_PKG_REL}Relationship"):
            target = rel.get("Target", "")
            if target.startswith("/"):
                resolved = target.lstrip("/")
            else:
                resolved = posixpath.normpath(posixpath.join(base, target))
            result[rel.get("Id", "")] = (rel.get("Type", ""), resolved)
        return result

    def _read_index(self) -> tuple[dict[str, str], list[str]]:
        workbook_part = "xl/workbook.xml"
        for rel_type, target in self._relationships("").values():
            if rel_type.endswith("/officeDocument"):
                workbook_part = target
                break
        root = self._read_xml(workbook_part)
        rels = self._relationships(workbook_part)

        sheets: dict[str, str] = {}
        sheets_node = root.find(f"{_MAIN}sheets")
        if sheets_node is not None:
            for sheet in sheets_node.findall(f"{_MAIN}sheet"):
                rel = rels.get(sheet.get(f"{_DOC_REL}id", ""))
                if rel is None or not rel[0].endswith("/worksheet"):
                    continue
                sheets[sheet.get("name", "")] = rel[1]

        shared: list[str] = []
        for rel_type, target in rels.values():
            if rel_type.endswith("/sharedStrings"):
                strings = self._read_xml(target)
                shared = [_inline_text(si) for si in strings.findall(f"{_MAIN}si")]
                break
        return sheets, shared

    def _check_open(self) -> None:
        if self._closed:
            raise WorkbookError("workbook is closed")

    def sheet_names(self) -> list[str]:
        """Names of the worksheets in workbook order."""
        self._check_open()
        return list(self._sheets)

    def _cell_text(self, cell: ET.Element) -> str:
        kind = cell.get("t", "n")
        if kind == "inlineStr":
            node = cell.find(f"{_MAIN}is")
            return _inline_text(node) if node is not None else ""
        value = cell.find(f"{_MAIN}v")
        raw = value.text if value is not None and value.text else ""
        if not raw:
            return ""
        if kind == "s":
            try:
                return self._shared[int(raw)]
            except (ValueError, IndexError):
                raise WorkbookError(f"bad shared string index {raw!r}") from None
        if kind == "b":
            return "1" if raw.strip() in ("1", "true") else "0"
        if kind == "n":
            return _format_number(raw)
        return raw

    def worksheet(self, name: str) -> Worksheet:
        """Read the worksheet called name."""
        self._check_open()
        try:
            part = self._sheets[name]
        except KeyError:
            raise WorkbookError(f"no worksheet named {name!r}") from None
        root = self._read_xml(part)
        data = root.find(f"{_MAIN}sheetData")

        rows: dict[int, dict[int, str]] = {}
        next_row = 1
        for row_node in data.findall(f"{_MAIN}row") if data is not None else []:
            ref = row_node.get("r")
            row_num = int(ref) if ref else next_row
            next_row = row_num + 1
            cells = rows.setdefault(row_num, {})
            next_col = 1
            for cell in row_node.findall(f"{_MAIN}c"):
                cell_ref = cell.get("r")
                col = _column_index(cell_ref) if cell_ref else next_col
                next_col = col + 1
                cells[col] = self._cell_text(cell)

        grid = []
        for row_num in range(1, max(rows, default=0) + 1):
            cells = rows.get(row_num, {})
            width = max(cells, default=0)
            grid.append([cells.get(col, "") for col in range(1, width + 1)])
        return Worksheet(name, grid)

    def close(self) -> None:
        """Release the underlying file."""
        if not self._closed:
            self._zip.close()
            self._closed = True


def open_workbook(path: str | os.PathLike[str]) -> Workbook:
    """Open the .xlsx file at path."""
    return Workbook(path)