import zipfile
from pathlib import Path
from xml.sax.saxutils import escape

import pytest

from xlsxtable.converter import (
    ConversionError,
    convert_all_sheets,
    convert_sheets,
    create_csv,
    find_files,
    is_data_type_cell,
    list_sheets,
    sheet_to_csv,
)
from xlsxtable.workbook import Worksheet

MAIN = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
DOC_REL = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
PKG_REL = "http://schemas.openxmlformats.org/package/2006/relationships"


def _write_xlsx(path, sheets):
    sheet_entries, rel_entries = [], []
    with zipfile.ZipFile(path, "w") as archive:
        for index, (name, grid) in enumerate(sheets.items(), 1):
            sheet_entries.append(f'<sheet name="{name}" sheetId="{index}" r:id="rId{index}"/>')
            rel_entries.append(
                f'<Relationship Id="rId{index}" Type="{DOC_REL}/worksheet" '
                f'Target="worksheets/sheet{index}.xml"/>'
            )
            rows = []
            for row_num, row in enumerate(grid, 1):
                cells = "".join(
                    f'<c r="{chr(ord("A") + col)}{row_num}" t="inlineStr">'
                    f"<is><t>{escape(value)}</t></is></c>"
                    for col, value in enumerate(row)
                )
                rows.append(f'<row r="{row_num}">{cells}</row>')
            archive.writestr(
                f"xl/worksheets/sheet{index}.xml",
                f'<worksheet xmlns="{MAIN}"><sheetData>{"".join(rows)}</sheetData></worksheet>',
            )
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
    return path


KEYED = [
    ["", "", ""],
    ["", "int=KEY", "string"],
    ["", "ID", "Name"],
    ["", "10", "Alice"],
    ["", "20", "Bob"],
]


@pytest.mark.parametrize("text", ["int", "INT", "FString", "fname", "uint64", "boolean"])
def test_recognised_types(text):
    assert is_data_type_cell(text) is True


@pytest.mark.parametrize("text", ["", "KEY", "string", "vector", "int "])
def test_unrecognised_types(text):
    assert is_data_type_cell(text) is False


def test_keyed_sheet_uses_key_column():
    csv = sheet_to_csv(Worksheet("Items", KEYED))
    assert csv == "Key,int,string\nKey,ID,Name\n10,10,Alice\n20,20,Bob\n"


def test_unkeyed_sheet_uses_constant_key():
    grid = [["float", "fname"], ["Speed", "Tag"], ["1.5", "a"], ["2.5", "b"]]
    lines = sheet_to_csv(Worksheet("S", grid)).splitlines()
    assert lines[0] == "Key,float,fname"
    assert lines[1] == "Key,Speed,Tag"
    assert [line.split(",")[0] for line in lines[2:]] == ["1", "1"]
    assert [line.split(",", 1)[1] for line in lines[2:]] == ["1.5,a", "2.5,b"]


def test_cells_before_table_are_dropped():
    grid = [["title"], ["note", "int", "bool"], ["x", "A", "B"], ["y", "3", "true"]]
    lines = sheet_to_csv(Worksheet("S", grid)).splitlines()
    assert lines == ["Key,int,bool", "Key,A,B", "1,3,true"]


def test_sheet_without_types_gives_nothing():
    assert sheet_to_csv(Worksheet("S", [["a", "b"], ["c", "d"]])) == ""


def test_every_line_ends_with_newline():
    csv = sheet_to_csv(Worksheet("Items", KEYED))
    assert csv.endswith("\n")
    assert csv.count("\n") == 4


def test_short_row_without_key_cell_raises():
    grid = [["int", "int=KEY"], ["A", "B"], ["1"]]
    with pytest.raises(ConversionError):
        sheet_to_csv(Worksheet("S", grid))


def test_create_csv_writes_named_file(tmp_path):
    sheet = Worksheet("Items", KEYED)
    target = create_csv(sheet, tmp_path)
    assert target == tmp_path / "Items.csv"
    assert target.read_text(encoding="utf-8") == sheet_to_csv(sheet)


def test_create_csv_into_missing_folder_raises(tmp_path):
    with pytest.raises(ConversionError):
        create_csv(Worksheet("Items", KEYED), tmp_path / "absent")


def test_convert_all_sheets(tmp_path):
    book = _write_xlsx(tmp_path / "Book.xlsx", {"Items": KEYED, "Other": [["int"], ["N"], ["4"]]})
    out = tmp_path / "csv"
    out.mkdir()
    written = convert_all_sheets(book, out)
    assert written == [out / "Items.csv", out / "Other.csv"]
    assert (out / "Items.csv").read_text(encoding="utf-8") == sheet_to_csv(Worksheet("Items", KEYED))
    assert (out / "Other.csv").read_text(encoding="utf-8").splitlines()[-1] == "1,4"


def test_convert_selected_sheets_only(tmp_path):
    book = _write_xlsx(tmp_path / "Book.xlsx", {"Items": KEYED, "Other": [["int"], ["N"]]})
    out = tmp_path / "csv"
    out.mkdir()
    written = convert_sheets(book, ["Other", "Missing"], out)
    assert written == [out / "Other.csv"]
    assert sorted(p.name for p in out.iterdir()) == ["Other.csv"]


def test_convert_rejects_bad_paths(tmp_path):
    book = _write_xlsx(tmp_path / "Book.xlsx", {"Items": KEYED})
    with pytest.raises(ConversionError):
        convert_all_sheets(tmp_path / "none.xlsx", tmp_path)
    with pytest.raises(ConversionError):
        convert_all_sheets(book, tmp_path / "nowhere")
    with pytest.raises(ConversionError):
        convert_sheets("", ["Items"], tmp_path)


def test_convert_broken_workbook_raises(tmp_path):
    broken = tmp_path / "broken.xlsx"
    broken.write_bytes(b"garbage")
    with pytest.raises(ConversionError):
        convert_all_sheets(broken, tmp_path)


def test_find_files_recursive(tmp_path):
    (tmp_path / "sub").mkdir()
    (tmp_path / "a.csv").write_text("x")
    (tmp_path / "sub" / "b.CSV").write_text("x")
    (tmp_path / "sub" / "c.txt").write_text("x")
    found = find_files(tmp_path, ".csv")
    assert sorted(Path(p).name for p in found) == ["a.csv", "b.CSV"]
    assert all(Path(p).is_absolute() for p in found)


@pytest.mark.parametrize("extension", ["", ".", "csv"])
def test_find_files_rejects_bad_extension(tmp_path, extension):
    with pytest.raises(ConversionError):
        find_files(tmp_path, extension)


def test_find_files_rejects_missing_folder(tmp_path):
    with pytest.raises(ConversionError):
        find_files(tmp_path / "absent", ".csv")


def test_list_sheets(tmp_path):
    book = _write_xlsx(tmp_path / "Book.xlsx", {"B": [["int"]], "A": [["int"]]})
    assert list_sheets(book) == ["B", "A"]
    with pytest.raises(ConversionError):
        list_sheets(tmp_path / "absent.xlsx")