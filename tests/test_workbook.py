import zipfile
from xml.sax.saxutils import escape

import pytest

from xlsxtable.workbook import Workbook, WorkbookError, Worksheet, open_workbook

MAIN = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
DOC_REL = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
PKG_REL = "http://schemas.openxmlformats.org/package/2006/relationships"


def _ref(col, row):
    return f"{chr(ord('A') + col)}{row}"


def _sheet_xml(grid, shared, strings):
    rows = []
    for row_num, row in enumerate(grid, 1):
        cells = []
        for col, value in enumerate(row):
            if value is None:
                continue
            ref = _ref(col, row_num)
            if isinstance(value, bool):
                cells.append(f'<c r="{ref}" t="b"><v>{int(value)}</v></c>')
            elif isinstance(value, (int, float)):
                cells.append(f'<c r="{ref}"><v>{value}</v></c>')
            elif shared:
                strings.append(value)
                cells.append(f'<c r="{ref}" t="s"><v>{len(strings) - 1}</v></c>')
            else:
                cells.append(
                    f'<c r="{ref}" t="inlineStr"><is><t>{escape(value)}</t></is></c>'
                )
        rows.append(f'<row r="{row_num}">{"".join(cells)}</row>')
    return f'<worksheet xmlns="{MAIN}"><sheetData>{"".join(rows)}</sheetData></worksheet>'


def _write_xlsx(path, sheets, shared=False):
    strings = []
    sheet_entries, rel_entries, parts = [], [], {}
    for index, (name, content) in enumerate(sheets.items(), 1):
        sheet_entries.append(f'<sheet name="{escape(name)}" sheetId="{index}" r:id="rId{index}"/>')
        rel_entries.append(
            f'<Relationship Id="rId{index}" Type="{DOC_REL}/worksheet" '
            f'Target="worksheets/sheet{index}.xml"/>'
        )
        xml = content if isinstance(content, str) else _sheet_xml(content, shared, strings)
        parts[f"xl/worksheets/sheet{index}.xml"] = xml
    if strings:
        items = "".join(f"<si><t>{escape(s)}</t></si>" for s in strings)
        parts["xl/sharedStrings.xml"] = f'<sst xmlns="{MAIN}">{items}</sst>'
        rel_entries.append(
            f'<Relationship Id="rIdS" Type="{DOC_REL}/sharedStrings" Target="sharedStrings.xml"/>'
        )
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr(
            "_rels/.rels",
            f'<Relationships xmlns="{PKG_REL}"><Relationship Id="r1" '
            f'Type="{DOC_REL}/officeDocument" Target="xl/workbook.xml"/></Relationships>',
        )
        archive.writestr(
            "xl/workbook.xml",
            f'<workbook xmlns="{MAIN}" xmlns:r="{DOC_REL}"><sheets>'
            f'{"".join(sheet_entries)}</sheets></workbook>',
        )
        archive.writestr(
            "xl/_rels/workbook.xml.rels",
            f'<Relationships xmlns="{PKG_REL}">{"".join(rel_entries)}</Relationships>',
        )
        for member, xml in parts.items():
            archive.writestr(member, xml)
    return path


def test_sheet_names_in_workbook_order(tmp_path):
    path = _write_xlsx(tmp_path / "Book.xlsx", {"Zeta": [["a"]], "Alpha": [["b"]], "Mid": []})
    with open_workbook(path) as workbook:
        assert workbook.sheet_names() == ["Zeta", "Alpha", "Mid"]
        assert workbook.name == "Book.xlsx"


@pytest.mark.parametrize("shared", [True, False])
def test_rows_hold_cell_text(tmp_path, shared):
    grid = [["int", "string"], ["ID", "Name"], [10, "Alice"], [2.5, True]]
    path = _write_xlsx(tmp_path / "Data.xlsx", {"Items": grid}, shared=shared)
    with open_workbook(path) as workbook:
        rows = list(workbook.worksheet("Items").rows())
    assert rows == [["int", "string"], ["ID", "Name"], ["10", "Alice"], ["2.5", "1"]]


def test_gaps_are_filled_with_empty_cells(tmp_path):
    xml = (
        f'<worksheet xmlns="{MAIN}"><sheetData>'
        '<row r="1"><c r="A1" t="inlineStr"><is><t>a</t></is></c>'
        '<c r="C1" t="inlineStr"><is><t>c</t></is></c></row>'
        '<row r="3"><c r="B3"><v>7</v></c></row>'
        "</sheetData></worksheet>"
    )
    path = _write_xlsx(tmp_path / "Gaps.xlsx", {"S": xml})
    with open_workbook(path) as workbook:
        rows = list(workbook.worksheet("S").rows())
    assert rows == [["a", "", "c"], [], ["", "7"]]


def test_rich_text_runs_are_joined(tmp_path):
    xml = (
        f'<worksheet xmlns="{MAIN}"><sheetData><row r="1">'
        '<c r="A1" t="inlineStr"><is><r><t>Fo</t></r><r><t>o</t></r></is></c>'
        "</row></sheetData></worksheet>"
    )
    path = _write_xlsx(tmp_path / "Rich.xlsx", {"S": xml})
    with open_workbook(path) as workbook:
        assert list(workbook.worksheet("S").rows()) == [["Foo"]]


def test_missing_worksheet_raises(tmp_path):
    path = _write_xlsx(tmp_path / "Book.xlsx", {"Only": [["x"]]})
    with open_workbook(path) as workbook:
        with pytest.raises(WorkbookError):
            workbook.worksheet("Other")


def test_missing_file_raises(tmp_path):
    with pytest.raises(WorkbookError):
        open_workbook(tmp_path / "absent.xlsx")


def test_non_zip_file_raises(tmp_path):
    path = tmp_path / "broken.xlsx"
    path.write_bytes(b"not a workbook")
    with pytest.raises(WorkbookError):
        Workbook(path)


def test_closed_workbook_refuses_reads(tmp_path):
    path = _write_xlsx(tmp_path / "Book.xlsx", {"Only": [["x"]]})
    with open_workbook(path) as workbook:
        pass
    with pytest.raises(WorkbookError):
        workbook.worksheet("Only")
    with pytest.raises(WorkbookError):
        workbook.sheet_names()


def test_worksheet_rows_are_copies():
    sheet = Worksheet("Items", [["a", "b"]])
    first = next(sheet.rows())
    first.append("c")
    assert list(sheet.rows()) == [["a", "b"]]