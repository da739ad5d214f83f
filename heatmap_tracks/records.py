"""Ordered, read-only collections of captured session samples.

A :class:`RecordSet` wraps a pandas DataFrame whose row order is the temporal
order of the session. The position and gaze columns named by the
:class:`RecordSchema` are validated once, at construction, so the culling,
density and trail steps can rely on them being present and numeric.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .geometry import Vector3

SOURCES = ("position", "gaze")


class FieldError(ValueError):
    """A field required by the pipeline is missing or not numeric."""


@dataclass(frozen=True)
class RecordSchema:
    """Column names of the head position and gaze position triples."""

    position: Optional[Tuple[str, str, str]] = ("xpos", "ypos", "zpos")
    gaze: Optional[Tuple[str, str, str]] = ("EtPositionX", "EtPositionY", "EtPositionZ")

    def __post_init__(self) -> None:
        for name in SOURCES:
            fields = getattr(self, name)
            if fields is None:
                continue
            fields = tuple(str(f) for f in fields)
            if len(fields) != 3:
                raise ValueError(f"Schema '{name}' needs exactly 3 field names, got {list(fields)}")
            object.__setattr__(self, name, fields)

    def fields_for(self, source: str) -> Tuple[str, str, str]:
        """Return the three column names of a position source ('position' or 'gaze')."""

        if source not in SOURCES:
            raise ValueError(f"Unknown position source: {source}")
        fields = getattr(self, source)
        if fields is None:
            raise FieldError(f"No '{source}' fields are configured in the record schema.")
        return fields

    @property
    def required_fields(self) -> List[str]:
        required: List[str] = []
        for name in SOURCES:
            fields = getattr(self, name)
            if fields is not None:
                required.extend(fields)
        return required


class Record(Mapping[str, object]):
    """One captured sample: a read-only mapping of field name to scalar."""

    __slots__ = ("_values", "index")

    def __init__(self, values: Mapping[str, object], index: int) -> None:
        self._values = MappingProxyType(dict(values))
        self.index = index

    def __getitem__(self, key: str) -> object:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Record(index={self.index}, {dict(self._values)!r})"


def _validate_schema(frame: pd.DataFrame, schema: RecordSchema) -> None:
    missing = [col for col in schema.required_fields if col not in frame.columns]
    if missing:
        raise FieldError(f"Missing required fields: {missing}")

    for col in schema.required_fields:
        series = frame[col]
        if pd.api.types.is_bool_dtype(series) or not pd.api.types.is_numeric_dtype(series):
            raise FieldError(f"Field '{col}' is not numeric (dtype={series.dtype}).")
        if series.isna().any():
            first_bad = int(np.flatnonzero(series.isna().to_numpy())[0])
            raise FieldError(f"Field '{col}' has no numeric value in row {first_bad}.")


class RecordSet:
    """Immutable ordered collection of records; order encodes time."""

    def __init__(
        self,
        frame: pd.DataFrame,
        schema: Optional[RecordSchema] = None,
        source_indices: Optional[Sequence[int]] = None,
    ) -> None:
        self._schema = schema or RecordSchema()
        _validate_schema(frame, self._schema)
        self._frame = frame.reset_index(drop=True).copy()

        if source_indices is None:
            indices = np.arange(len(self._frame), dtype=int)
        else:
            indices = np.asarray(source_indices, dtype=int).copy()
            if len(indices) != len(self._frame):
                raise ValueError("source_indices must have one entry per row.")
        indices.setflags(write=False)
        self._source_indices = indices

        self._positions = {}
        for source in SOURCES:
            if getattr(self._schema, source) is None:
                continue
            cols = list(self._schema.fields_for(source))
            arr = self._frame[cols].to_numpy(dtype=float).reshape(-1, 3)
            arr.setflags(write=False)
            self._positions[source] = arr

    @classmethod
    def from_records(
        cls, rows: Iterable[Mapping[str, object]], schema: Optional[RecordSchema] = None
    ) -> "RecordSet":
        """Build a set from an iterable of field mappings, e.g. a list of dicts."""

        schema = schema or RecordSchema()
        rows = [dict(row) for row in rows]
        frame = pd.DataFrame(rows) if rows else pd.DataFrame(columns=schema.required_fields, dtype=float)
        return cls(frame, schema)

    @property
    def schema(self) -> RecordSchema:
        return self._schema

    @property
    def fields(self) -> List[str]:
        return [str(col) for col in self._frame.columns]

    @property
    def source_indices(self) -> np.ndarray:
        """Row index of every record in the originally loaded set."""

        return self._source_indices

    @property
    def frame(self) -> pd.DataFrame:
        """A copy of the underlying table."""

        return self._frame.copy()

    def __len__(self) -> int:
        return len(self._frame)

    def __iter__(self) -> Iterator[Record]:
        for values, index in zip(self._frame.to_dict("records"), self._source_indices):
            yield Record(values, int(index))

    def __getitem__(self, item):
        if isinstance(item, slice):
            return self.take(np.arange(len(self))[item])
        position = int(item)
        if position < 0:
            position += len(self)
        if not 0 <= position < len(self):
            raise IndexError(f"Record index {item} out of range for {len(self)} records")
        values = self._frame.iloc[position].to_dict()
        return Record(values, int(self._source_indices[position]))

    def __repr__(self) -> str:
        return f"RecordSet(n={len(self)}, fields={self.fields})"

    def take(self, indices: Sequence[int] | np.ndarray) -> "RecordSet":
        """Return a new set holding the rows at the given positions (or boolean mask), in that order."""

        idx = np.asarray(indices)
        if idx.dtype == bool:
            if len(idx) != len(self):
                raise ValueError("Boolean mask length does not match the record count.")
            idx = np.flatnonzero(idx)
        idx = idx.astype(int, copy=False)
        return RecordSet(self._frame.iloc[idx], self._schema, self._source_indices[idx])

    def positions(self, source: str = "position") -> np.ndarray:
        """Return the (n, 3) read-only coordinate array of a position source."""

        self._schema.fields_for(source)
        return self._positions[source]

    def _triple(self, record: Mapping[str, object], source: str) -> Vector3:
        fields = self._schema.fields_for(source)
        coords = []
        for name in fields:
            if name not in record:
                raise FieldError(f"Record is missing field '{name}'.")
            value = record[name]
            if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
                raise FieldError(f"Field '{name}' is not numeric: {value!r}")
            if np.isnan(value):
                raise FieldError(f"Field '{name}' is NaN.")
            coords.append(float(value))
        return (coords[0], coords[1], coords[2])

    def position(self, record: Mapping[str, object]) -> Vector3:
        """Head position of a record."""

        return self._triple(record, "position")

    def gaze_position(self, record: Mapping[str, object]) -> Vector3:
        """Gaze hit position of a record."""

        return self._triple(record, "gaze")
