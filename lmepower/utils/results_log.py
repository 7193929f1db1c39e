"""
Log-structured CSV results file.

Rows are only ever appended. The header is written once, when the file is
created; later appends reuse the existing header's column order. Every
append is flushed so that a failure mid-sweep leaves all earlier rows on
disk.
"""

import os
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from ..errors import IOFailure

PathLike = Union[str, "os.PathLike[str]"]


class ResultsLog:
    """Append-only writer for result rows.

    Use as a context manager::

        with ResultsLog("sims/sens_n_subj.csv") as log:
            log.append(rows)

    Args:
        path: CSV file to create or append to. Parent directories are
            created when missing.

    Raises:
        IOFailure: If the file cannot be opened, read, or written.
    """

    def __init__(self, path: PathLike):
        self.path = Path(path)
        self._handle = None
        self._columns: Optional[List[str]] = None
        self.rows_written = 0

    @property
    def exists(self) -> bool:
        return self.path.exists()

    @property
    def columns(self) -> Optional[List[str]]:
        """Header columns, once known (read from disk or from the first append)."""
        return self._columns

    def open(self) -> "ResultsLog":
        if self._handle is not None:
            return self
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self.path.exists() and self.path.stat().st_size > 0:
                self._columns = list(pd.read_csv(self.path, nrows=0).columns)
            self._handle = open(self.path, "a", newline="", encoding="utf-8")
        except (OSError, pd.errors.ParserError) as e:
            raise IOFailure(f"Cannot open results file '{self.path}': {e}") from e
        return self

    def close(self):
        if self._handle is not None:
            try:
                self._handle.flush()
            finally:
                self._handle.close()
                self._handle = None

    def __enter__(self) -> "ResultsLog":
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def append(self, rows: pd.DataFrame) -> int:
        """Append *rows*, writing the header only if the file is new.

        Columns are reordered to the existing header. Columns missing from
        *rows* are written empty; extra columns are an error.

        Returns:
            Number of rows written.
        """
        if rows.empty:
            return 0
        if self._handle is None:
            raise IOFailure(f"Results file '{self.path}' is not open")

        write_header = self._columns is None
        if write_header:
            self._columns = list(rows.columns)
        else:
            extra = [c for c in rows.columns if c not in self._columns]
            if extra:
                raise IOFailure(f"Rows have columns not present in '{self.path}' header: {', '.join(extra)}")
            rows = rows.reindex(columns=self._columns)

        try:
            rows.to_csv(self._handle, header=write_header, index=False)
            self._handle.flush()
        except OSError as e:
            raise IOFailure(f"Cannot append to results file '{self.path}': {e}") from e

        self.rows_written += len(rows)
        return len(rows)


def append_rows(path: PathLike, rows: pd.DataFrame) -> int:
    """Open *path*, append *rows*, and close it again."""
    with ResultsLog(path) as log:
        return log.append(rows)


def read_results(path: PathLike) -> pd.DataFrame:
    """Read a results file back, keeping empty convergence markers as ``""``."""
    try:
        rows = pd.read_csv(path, keep_default_na=False, na_values=["", "nan", "NaN"])
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise IOFailure(f"Cannot read results file '{path}': {e}") from e
    if "convergence_warning" in rows.columns:
        rows["convergence_warning"] = rows["convergence_warning"].fillna("").astype(str)
    return rows
