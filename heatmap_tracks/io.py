"""Input helpers for the heatmap pipeline.

Reads the delimited session logs (header row naming the fields, one sample per
row) into a validated :class:`~heatmap_tracks.records.RecordSet`.
"""

from __future__ import annotations

import io
import logging
import re
from pathlib import Path
from typing import List, Optional

import pandas as pd

from .records import RecordSchema, RecordSet


class ParseError(ValueError):
    """The session log is structurally invalid or a required value is not numeric."""


def _read_header(text: str, separator: str) -> List[str]:
    """Peek at the raw header row, before pandas renames blank or duplicate names."""

    try:
        peek = pd.read_csv(io.StringIO(text), sep=separator, header=None, nrows=1, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError as exc:
        raise ParseError("Input has no header row.") from exc
    except pd.errors.ParserError as exc:
        raise ParseError(f"Malformed header row: {exc}") from exc
    if peek.empty:
        raise ParseError("Input has no header row.")

    header = [str(name).strip() for name in peek.iloc[0].tolist()]
    blank = [pos for pos, name in enumerate(header) if not name]
    if blank:
        raise ParseError(f"Header has unnamed fields at positions {blank}.")
    duplicates = sorted({name for name in header if header.count(name) > 1})
    if duplicates:
        raise ParseError(f"Header has duplicate fields: {duplicates}")
    return header


def _first_bad_value(series: pd.Series, decimal: str) -> Optional[int]:
    mark = re.escape(decimal)
    pattern = re.compile(rf"[+-]?(\d+({mark}\d*)?|{mark}\d+)([eE][+-]?\d+)?")
    for pos, value in enumerate(series.tolist()):
        if not pattern.fullmatch(str(value).strip()):
            return pos
    return None


def read_records(
    text: str,
    separator: str = ",",
    decimal: str = ".",
    schema: Optional[RecordSchema] = None,
) -> RecordSet:
    """
    Parse delimited session-log text into a RecordSet.

    Numbers are read with the configured decimal mark only; columns that parse
    completely become floats and the rest stay strings. Every schema column
    must parse, otherwise ParseError names the offending column and data row.
    """

    if separator == decimal:
        raise ValueError("Item separator and decimal separator must differ.")
    schema = schema or RecordSchema()
    text = text.lstrip("\ufeff")
    header = _read_header(text, separator)

    missing = [col for col in schema.required_fields if col not in header]
    if missing:
        raise ParseError(f"Missing required fields in header: {missing}")

    try:
        frame = pd.read_csv(
            io.StringIO(text),
            sep=separator,
            decimal=decimal,
            keep_default_na=False,
            skip_blank_lines=True,
            on_bad_lines="error",
        )
    except pd.errors.ParserError as exc:
        raise ParseError(f"Row has more fields than the header: {exc}") from exc
    if len(frame) and not isinstance(frame.index, pd.RangeIndex):
        # pandas turns surplus leading fields into an index instead of failing
        raise ParseError("Data rows have more fields than the header.")
    frame.columns = header

    # With keep_default_na=False only the cells pandas pads into short rows are NaN.
    short = frame.isna().any(axis=1).to_numpy()
    if short.any():
        pos = int(short.argmax())
        raise ParseError(f"Data row {pos + 1}: expected {len(header)} fields, found fewer.")

    for col in schema.required_fields:
        if frame.empty:
            frame[col] = frame[col].astype(float)
            continue
        if not pd.api.types.is_numeric_dtype(frame[col]) or pd.api.types.is_bool_dtype(frame[col]):
            pos = _first_bad_value(frame[col], decimal)
            where = f"Data row {pos + 1}: " if pos is not None else ""
            value = f": {frame[col].iloc[pos]!r}" if pos is not None else ""
            raise ParseError(f"{where}field '{col}' is not a number with decimal mark {decimal!r}{value}")
        frame[col] = frame[col].astype(float)
    for col in frame.select_dtypes(include="integer").columns:
        frame[col] = frame[col].astype(float)

    logging.info("Parsed %d records with %d fields", len(frame), len(header))
    return RecordSet(frame, schema)


def load_records(
    path: str | Path,
    separator: str = ",",
    decimal: str = ".",
    schema: Optional[RecordSchema] = None,
    data_dir: str | Path | None = None,
) -> RecordSet:
    """Load a session log from disk; relative paths resolve against data_dir when given."""

    path = Path(path)
    if data_dir is not None and not path.is_absolute():
        path = Path(data_dir) / path
    if not path.exists():
        raise FileNotFoundError(f"Session log not found: {path}")

    logging.info("Reading %s", path)
    text = path.read_text(encoding="utf-8-sig")
    return read_records(text, separator=separator, decimal=decimal, schema=schema)
