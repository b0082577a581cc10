# Copyright (c) Syntropy Systems
"""In-memory workbook of benchmark sheets, and its xlsx serializer."""
from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

from openpyxl import Workbook as XlsxWorkbook

from encbench.errors import WorkbookExportError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Numeric:
    """A cell whose text parsed as a float."""

    value: float


@dataclass(frozen=True)
class Text:
    """A cell kept verbatim."""

    value: str


Cell = Union[Numeric, Text]


@dataclass
class Sheet:
    """One 2-D table of results for an (input, encoder) pair.

    Row 0 is stored like any other row; whatever header the source had is
    just data here.
    """

    name: str
    rows: list[list[Cell]] = field(default_factory=list)

    def append_row(self, row: list[Cell]) -> None:
        self.rows.append(row)

    def cell(self, row: int, col: int) -> Cell:
        return self.rows[row][col]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return max((len(row) for row in self.rows), default=0)


class Workbook:
    """Ordered, append-only collection of sheets."""

    def __init__(self) -> None:
        self._sheets: list[Sheet] = []

    def append(self, sheet: Sheet) -> None:
        """Add a sheet at the end. No merging or deduplication."""
        self._sheets.append(sheet)

    @property
    def sheets(self) -> tuple[Sheet, ...]:
        return tuple(self._sheets)

    @property
    def sheet_names(self) -> list[str]:
        return [sheet.name for sheet in self._sheets]

    def __iter__(self) -> Iterator[Sheet]:
        return iter(tuple(self._sheets))

    def __len__(self) -> int:
        return len(self._sheets)


# Excel caps worksheet titles at 31 characters and compares them case-insensitively
MAX_TITLE_LENGTH = 31
_DIGEST_LENGTH = 8


def sheet_title(name: str) -> str:
    """Worksheet title for a sheet name.

    Names that fit are used unchanged. Longer names keep their leading
    characters and end in a short digest of the full name, so the same name
    always maps to the same title.
    """
    if len(name) <= MAX_TITLE_LENGTH:
        return name
    digest = hashlib.sha1(name.encode("utf-8")).hexdigest()[:_DIGEST_LENGTH]
    return f"{name[: MAX_TITLE_LENGTH - _DIGEST_LENGTH - 1]}~{digest}"


def write_workbook(workbook: Workbook, path: Path) -> Path:
    """Serialize the workbook to an .xlsx file with openpyxl.

    Each sheet becomes a worksheet with cells at their original coordinates,
    titled by sheet_title(). Names or titles that collide case-insensitively
    are rejected rather than silently renamed.
    """
    seen: dict[str, str] = {}
    for name in workbook.sheet_names:
        for key in {name.casefold(), sheet_title(name).casefold()}:
            if key in seen:
                msg = f"Duplicate sheet name: {name} (clashes with {seen[key]})"
                raise WorkbookExportError(msg)
            seen[key] = name

    xlsx = XlsxWorkbook()
    # openpyxl always starts with one empty sheet
    xlsx.remove(xlsx.active)

    for sheet in workbook:
        title = sheet_title(sheet.name)
        if title != sheet.name:
            logger.debug("Sheet %s written as %s", sheet.name, title)
        try:
            worksheet = xlsx.create_sheet(title=title)
        except ValueError as e:
            msg = f"Invalid sheet name {sheet.name!r}: {e}"
            raise WorkbookExportError(msg) from e
        for r, row in enumerate(sheet.rows, start=1):
            for c, cell in enumerate(row, start=1):
                _ = worksheet.cell(row=r, column=c, value=cell.value)

    if not workbook.sheet_names:
        _ = xlsx.create_sheet(title="empty")

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        xlsx.save(path)
    except OSError as e:
        msg = f"Cannot write workbook {path}: {e}"
        raise WorkbookExportError(msg) from e

    logger.info("Wrote %d sheet(s) to %s", len(workbook), path)
    return path
