"""In-memory tabular result collection.

A `ResultList` is a list of rows with a fixed set of named, unit-carrying columns.
Sweeps write into one through `Sweep.run_into`; see `MCSMU.create_sweep_list` for the
standard per-channel voltage/current layout.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np


@dataclass(frozen=True)
class Column:
    name: str
    unit: str = ""

    @property
    def title(self) -> str:
        return f"{self.name} [{self.unit}]" if self.unit else self.name


class ResultList:
    """Rows of floats under named columns.

    Rows can be appended from a pump worker thread while the owner reads,
    so appends and reads are guarded by a lock.
    """

    def __init__(self, *columns: Column | str):
        if not columns:
            raise ValueError("A ResultList needs at least one column")
        self.columns: list[Column] = [
            c if isinstance(c, Column) else Column(c) for c in columns
        ]
        self._rows: list[tuple[float, ...]] = []
        self._attributes: dict[str, str] = {}
        self._lock = threading.Lock()

    def set_units(self, *units: str) -> None:
        if len(units) != len(self.columns):
            raise ValueError(
                f"Expected {len(self.columns)} units, got {len(units)}"
            )
        self.columns = [Column(c.name, u) for c, u in zip(self.columns, units)]

    def get_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def get_titles(self) -> list[str]:
        return [c.title for c in self.columns]

    def add_data(self, *values: float) -> None:
        if len(values) != len(self.columns):
            raise ValueError(
                f"Row has {len(values)} values but the list has {len(self.columns)} columns"
            )
        with self._lock:
            self._rows.append(tuple(float(v) for v in values))

    def get_row(self, i: int) -> tuple[float, ...]:
        with self._lock:
            return self._rows[i]

    def get_column(self, column: int | str) -> np.ndarray:
        idx = column if isinstance(column, int) else self.get_names().index(column)
        with self._lock:
            return np.array([row[idx] for row in self._rows], dtype=float)

    def to_array(self) -> np.ndarray:
        with self._lock:
            if not self._rows:
                return np.empty((0, len(self.columns)))
            return np.array(self._rows, dtype=float)

    def set_attribute(self, name: str, value: str) -> None:
        self._attributes[name] = value

    def get_attribute(self, name: str) -> str | None:
        return self._attributes.get(name)

    def get_attributes(self) -> dict[str, str]:
        return dict(self._attributes)

    def clear(self) -> None:
        with self._lock:
            self._rows.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    def __iter__(self) -> Iterator[tuple[float, ...]]:
        with self._lock:
            rows: Sequence[tuple[float, ...]] = list(self._rows)
        return iter(rows)

    def __repr__(self):
        return f"ResultList(columns={self.get_titles()}, rows={len(self)})"
