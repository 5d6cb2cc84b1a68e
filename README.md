# xlsxtable

`xlsxtable` takes Excel workbooks (`.xlsx`) that describe game data tables
and turns them into two things:

* one CSV file per worksheet, ready to be imported as a data table, and
* a C++ header per workbook declaring one `USTRUCT` row type (derived from
  `FTableRowBase`) per worksheet.

Workbooks are read with the standard library alone; no spreadsheet
application and no third-party package is needed.

## Sheet layout

A worksheet is scanned row by row, cell by cell, until a cell holds a known
data type: `int`, `uint`, `int8` … `uint64`, `float`, `double`, `bool`,
`boolean`, `char`, `ansichar`, `tchar`, `fstring`, `ftext` or `fname`, in any
letter case. That cell marks the top-left corner of the table:

* its row is the type row; cells to the left of it and rows above it are
  ignored,
* the next row holds the column names,
* every later row is one record.

A type cell may carry extra parts separated by `=`; only the part before the
first `=` is written to the CSV. A type cell with a `KEY` part (for example
`int=KEY`) marks the key column.

Every CSV line gets a leading key field: `Key` on the type and name rows,
then the value of the key column on each record. When no column is marked
`KEY`, every record's key is `1`.

Numeric cells are written in their shortest form (`3`, `2.5`), booleans as
`1` or `0`, and strings as they are. Fields are joined with commas and are
not quoted.

## Generated headers

For a workbook `Items.xlsx`, `Items.h` is written with a short comment
block, `#pragma once`, includes of `CoreMinimal.h`, `Engine/DataTable.h` and
`Items.generated.h`, and then, for every worksheet `Sheet`, a struct
`FSheet`. Its members come from `<csv folder>/Sheet.csv`: the first line
gives the types, the second the names, and the leading key column is
skipped. The types `string`/`fstring` become `FString`, `text`/`ftext`
become `FText` and `long double` becomes `double`; other types are kept as
written. A CSV file must exist for every worksheet of the workbook.

## Command line

```
xlsxtable [--project DIR] [--config FILE]
          [--excel DIR] [--csv DIR] [--struct DIR] [--asset DIR]
          {list,convert,structs} ...
```

The manager works with four folders: Excel workbooks, CSV output, struct
headers and assets. Folders given with `--excel`, `--csv`, `--struct` and
`--asset` must lie inside the project directory (`--project`, default the
current directory); they are stored in the settings file (`--config`,
default `DataTableManager.ini` in the project directory) and reused on later
runs.

* `xlsxtable list` prints every worksheet of every workbook found (recursively)
  in the Excel folder, with its workbook, whether its CSV file exists in the
  CSV folder, and whether a row struct of that name is declared in a header
  under the struct folder.
* `xlsxtable convert --sheet NAME [--sheet NAME ...]` or
  `xlsxtable convert --all` writes the CSV files of the selected sheets into
  the CSV folder.
* `xlsxtable structs --sheet NAME ...` or `xlsxtable structs --all` writes a
  struct header, into the struct folder, for every workbook that has a
  selected sheet. Every selected sheet must already have its CSV file.

The command exits with status 0 on success and 1, with a message on
standard error, when an action fails.

## Library use

```python
from xlsxtable.converter import convert_all_sheets, convert_sheets, list_sheets
from xlsxtable.structgen import generate_struct_header

print(list_sheets("Tables/Items.xlsx"))
convert_all_sheets("Tables/Items.xlsx", "CSV")
convert_sheets("Tables/Items.xlsx", ["Weapons"], "CSV")
generate_struct_header("Tables/Items.xlsx", "CSV", "Source/Game/Public")
```

Failures raise exceptions rather than returning status flags:
`ConversionError` from `xlsxtable.converter`, `StructGenerationError` from
`xlsxtable.structgen`, `WorkbookError` from `xlsxtable.workbook`,
`PathError` from `xlsxtable.paths` and `ManagerError` from
`xlsxtable.manager`.

Modules:

* `xlsxtable.workbook` — `open_workbook`, `Workbook` (a context manager with
  `sheet_names()`, `worksheet(name)` and `close()`) and `Worksheet` (whose
  `rows()` yields each row as a list of cell text).
* `xlsxtable.converter` — `sheet_to_csv`, `create_csv`, `convert_all_sheets`,
  `convert_sheets`, `list_sheets`, `find_files` (recursive search by
  extension) and `is_data_type_cell`.
* `xlsxtable.structgen` — `generate_struct_header`, its parts
  `write_preamble`, `write_includes` and `write_structs`, and `unreal_type`.
* `xlsxtable.paths` — `PathType`, `ToolConfig` with `load_config` and
  `ToolConfig.save`, `FolderPath`, and `resolve_project_folder`, which keeps
  chosen folders inside the project.
* `xlsxtable.sheets` — `SheetList` and `SheetRow`, the table of sheets with
  their CSV and struct status and selection; rows can notify subscribers
  when their state changes.
* `xlsxtable.manager` — `DataTableManager`, tying it all together, and
  `main`, the command line.

## What it does not do

* It has no graphical screen and no folder browser; folders are given on the
  command line or through `FolderPath` and `ToolConfig`.
* The asset folder is only remembered. Nothing imports the CSV files into
  data-table assets; that step is left to the engine's editor.
* It does not compile the generated headers or register their structs; a
  struct counts as existing only once a header declaring it is found under
  the struct folder.

## Tests

The tests use pytest (install the `test` extra) and live in `tests/`.