"""Remembered folder paths of the tool and the folder-path field that edits them."""

from __future__ import annotations

import configparser
import enum
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

CONFIG_SECTION = "/Script/DataTableModule.DataTableManagerConfig"


class PathType(enum.IntEnum):
    """Which of the tool's folders a path refers to."""

    NONE = 0
    EXCEL = 1
    CSV = 2
    STRUCT = 3
    ASSET = 4


class PathError(Exception):
    """Raised for a folder path the tool cannot use."""


_FIELDS = {
    PathType.EXCEL: "excel_path",
    PathType.CSV: "csv_path",
    PathType.STRUCT: "struct_path",
    PathType.ASSET: "asset_path",
}

_KEYS = {
    "excel_path": "CachedExcelPath",
    "csv_path": "CachedCSVPath",
    "struct_path": "CachedStructPath",
    "asset_path": "CachedAssetPath",
}


def _parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str  # keep key case
    return parser


@dataclass
class ToolConfig:
    """The four folder paths the tool remembers between sessions."""

    excel_path: str = ""
    csv_path: str = ""
    struct_path: str = ""
    asset_path: str = ""

    def path_for(self, path_type: PathType) -> Optional[str]:
        """The stored path for path_type, or None for PathType.NONE."""
        attr = _FIELDS.get(PathType(path_type))
        return None if attr is None else getattr(self, attr)

    def set_path(self, path_type: PathType, value: str) -> None:
        """Store value as the path for path_type."""
        attr = _FIELDS.get(PathType(path_type))
        if attr is None:
            raise PathError(f"no path is stored for {PathType(path_type).name}")
        setattr(self, attr, value)

    def save(self, file: str | os.PathLike[str]) -> None:
        """Write the paths to an INI file."""
        parser = _parser()
        parser[CONFIG_SECTION] = {key: getattr(self, attr) for attr, key in _KEYS.items()}
        target = Path(file)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as handle:
            parser.write(handle)


def load_config(file: str | os.PathLike[str]) -> ToolConfig:
    """Read the paths from an INI file; a missing file or key gives empty paths."""
    target = Path(file)
    if not target.is_file():
        return ToolConfig()
    parser = _parser()
    try:
        parser.read(target, encoding="utf-8")
    except configparser.Error as exc:
        raise PathError(f"cannot read config {target}: {exc}") from exc
    if not parser.has_section(CONFIG_SECTION):
        return ToolConfig()
    section = parser[CONFIG_SECTION]
    return ToolConfig(**{attr: section.get(key, "") for attr, key in _KEYS.items()})


def _normalize(path: str | os.PathLike[str]) -> str:
    full = os.path.abspath(os.fspath(path)).replace("\\", "/")
    return full.rstrip("/") or "/"


def resolve_project_folder(
    selected: str | os.PathLike[str], project_dir: str | os.PathLike[str]
) -> str:
    """Full, normalised form of selected; it must lie in project_dir."""
    if os.fspath(selected) == "":
        raise PathError("no folder was selected")
    folder = _normalize(selected)
    project = _normalize(project_dir)
    if not folder.startswith(project):
        raise PathError("selected folder path is not in project directory")
    return folder


@dataclass
class FolderPath:
    """An editable field bound to one of the configured folder paths."""

    config: ToolConfig
    path_type: PathType
    title: str = ""
    hint: str = ""
    default_path: str = ""
    on_text_changed: Optional[Callable[[str], None]] = None
    config_file: Optional[str | os.PathLike[str]] = None

    def path(self) -> Optional[str]:
        """The path the field currently shows."""
        return self.config.path_for(self.path_type)

    def set_text(self, text: str) -> None:
        """Store new text, save the config and notify the listener."""
        if self.path_type is not PathType.NONE:
            self.config.set_path(self.path_type, text)
        if self.config_file is not None:
            self.config.save(self.config_file)
        if self.on_text_changed is not None:
            self.on_text_changed(text)

    def browse_start(self) -> str:
        """Folder a browser should open at: the current path, else the default."""
        return self.path() or self.default_path