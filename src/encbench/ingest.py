# Copyright (c) Syntropy Systems
"""Load hyperfine exports into sheets and models."""
from __future__ import annotations

import csv
import logging
import math
from typing import TYPE_CHECKING

from pydantic import ValidationError

from encbench.errors import ResultIngestError
from encbench.models.results import HyperfineExport
from encbench.workbook import Cell, Numeric, Sheet, Text

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


def parse_cell(raw: str) -> Cell:
    """Coerce one CSV field.

    Numeric when the text is a plain ASCII float literal. float() also
    tolerates surrounding whitespace, digit-group underscores and non-ASCII
    Unicode digits, all of which stay Text.
    """
    if raw and raw.isascii() and raw == raw.strip() and "_" not in raw:
        try:
            return Numeric(float(raw))
        except ValueError:
            pass
    return Text(raw)


def ingest_csv(path: Path, name: str | None = None) -> Sheet:
    """Read a CSV export into a sheet, keeping every row including the header."""
    sheet = Sheet(name=name if name is not None else path.stem)
    try:
        with path.open(newline="", encoding="utf-8") as f:
            for record in csv.reader(f):
                sheet.append_row([parse_cell(field) for field in record])
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        msg = f"Cannot read results from {path}: {e}"
        raise ResultIngestError(msg) from e

    logger.debug("Ingested %d row(s) from %s", sheet.row_count, path)
    return sheet


def load_hyperfine_json(path: Path) -> HyperfineExport:
    """Validate hyperfine's JSON export."""
    try:
        data = path.read_bytes()
    except OSError as e:
        msg = f"Cannot read results from {path}: {e}"
        raise ResultIngestError(msg) from e

    try:
        export = HyperfineExport.model_validate_json(data)
    except ValidationError as e:
        msg = f"Malformed hyperfine export {path}: {e}"
        raise ResultIngestError(msg) from e

    for result in export.results:
        if not math.isfinite(result.mean):
            logger.warning("Non-finite mean for %r in %s", result.command, path)
    return export
