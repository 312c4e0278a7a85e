'''Fixed-schema time-series output
OutputRecord, TimeSeriesRecorder and the CSV reader'''

from dataclasses import dataclass
from typing import Optional, Tuple
import warnings
import numpy as np
import pandas as pd
from .config import config
from .defaults import YEAR
from .errors import OutputError


COLUMNS: Tuple[str, ...] = (
    't',
    'starx', 'stary', 'starz', 'starvx', 'starvy', 'starvz',
    'star_sx', 'star_sy', 'star_sz',
    'a1', 'i1', 'e1',
    's1x', 's1y', 's1z', 'mag1',
    'pom1', 'Om1', 'f1',
    'p1x', 'p1y', 'p1z', 'p1vx', 'p1vy', 'p1vz',
    'a2', 'i2', 'e2', 'Om2', 'pom2',
)

HEADER = ",".join(COLUMNS)


@dataclass(frozen=True)
class SpinObliquity:
    """
    Spin magnitude and obliquity against the fixed +z pole.

    Attributes
    ----------
    magnitude : float
        Euclidean norm of the spin vector
    obliquity_deg : float
        Angle between spin and +z [deg], NaN when magnitude is 0
    """
    magnitude: float
    obliquity_deg: float


@dataclass(frozen=True)
class OutputRecord:
    """
    One row of the time series.

    Field order is the file column order; ``t`` is held in code units
    and written in years. Angles are in radians. The two SpinObliquity
    values are kept in memory only.
    """
    t: float
    starx: float
    stary: float
    starz: float
    starvx: float
    starvy: float
    starvz: float
    star_sx: float
    star_sy: float
    star_sz: float
    a1: float
    i1: float
    e1: float
    s1x: float
    s1y: float
    s1z: float
    mag1: float
    pom1: float
    Om1: float
    f1: float
    p1x: float
    p1y: float
    p1z: float
    p1vx: float
    p1vy: float
    p1vz: float
    a2: float
    i2: float
    e2: float
    Om2: float
    pom2: float
    star_obliquity: SpinObliquity
    planet_obliquity: SpinObliquity

    @property
    def t_years(self) -> float:
        """Clock in years"""
        return self.t / YEAR

    def row(self) -> Tuple[float, ...]:
        """Values in column order, with t in years."""
        return (self.t_years,) + tuple(float(getattr(self, name)) for name in COLUMNS[1:])


class TimeSeriesRecorder:
    """
    Context manager writing OutputRecords as comma-separated rows.

    The file is opened once in truncate mode and the header written on
    entry. Each ``append`` writes one row with every value printed to
    ``precision`` decimals (NaN as ``nan``) and, every
    ``progress_every`` rows, prints a progress line.

    Examples
    --------
    >>> with TimeSeriesRecorder("run.txt") as recorder:
    ...     recorder.append(record)
    """
    def __init__(self, path: str, precision: Optional[int] = None,
                 progress_every: Optional[int] = None,
                 flush_every: Optional[int] = None):
        """
        Parameters
        ----------
        path : str
            Output file, truncated on open
        precision : int, optional
            Decimals per value (default config.OUTPUT_PRECISION)
        progress_every : int, optional
            Rows between progress lines, 0 disables
            (default config.PROGRESS_EVERY)
        flush_every : int, optional
            Rows between explicit flushes, 0 leaves buffering to the OS
            (default config.FLUSH_EVERY)
        """
        self.path = str(path)
        self.precision = config.OUTPUT_PRECISION if precision is None else int(precision)
        self.progress_every = (config.PROGRESS_EVERY if progress_every is None
                               else int(progress_every))
        self.flush_every = config.FLUSH_EVERY if flush_every is None else int(flush_every)
        self._file = None
        self._rows = 0
        self._last_time: Optional[float] = None

    # ========== CONTEXT MANAGEMENT ==========
    def open(self):
        """Open the sink and write the header."""
        if self._file is not None:
            raise OutputError(f"{self.path} is already open")
        try:
            self._file = open(self.path, "w", encoding="utf-8", newline="")
            self._file.write(HEADER + "\n")
        except OSError as exc:
            self._file = None
            raise OutputError(f"Cannot open output file {self.path}: {exc}") from exc
        self._rows = 0
        self._last_time = None
        return self

    def close(self):
        """Flush and close the sink (idempotent)."""
        if self._file is None:
            return
        f, self._file = self._file, None
        try:
            f.close()
        except OSError as exc:
            raise OutputError(f"Cannot close output file {self.path}: {exc}") from exc

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.close()
            return
        # an error is already propagating; report a failed close beside it
        try:
            self.close()
        except OutputError as close_error:
            warnings.warn(str(close_error), UserWarning, stacklevel=2)

    # ========== WRITING ==========
    def append(self, record: OutputRecord):
        """
        Write one row.

        Raises
        ------
        OutputError
            If the recorder is closed, the time does not increase, or
            the write fails
        """
        if self._file is None:
            raise OutputError(f"Recorder for {self.path} is not open")
        if self._last_time is not None and not record.t > self._last_time:
            raise OutputError(
                f"Record time {record.t} does not increase past {self._last_time}")

        line = ",".join(self.format_value(v) for v in record.row())
        try:
            self._file.write(line + "\n")
            if self.flush_every and (self._rows + 1) % self.flush_every == 0:
                self._file.flush()
        except OSError as exc:
            raise OutputError(f"Cannot write to {self.path}: {exc}") from exc

        if self.progress_every and self._rows % self.progress_every == 0:
            print(progress_line(record))
        self._rows += 1
        self._last_time = record.t

    def format_value(self, value: float) -> str:
        """Fixed-point text for one value."""
        if np.isnan(value):
            return "nan"
        return f"{value:.{self.precision}f}"

    # ========== PROPERTY ACCESS ==========
    @property
    def rows_written(self) -> int:
        """Data rows written since open"""
        return self._rows

    @property
    def last_time(self) -> Optional[float]:
        """Clock of the last row [code units]"""
        return self._last_time

    @property
    def is_open(self) -> bool:
        """True between open and close"""
        return self._file is not None

    def __repr__(self):
        state = "open" if self.is_open else "closed"
        return f"TimeSeriesRecorder('{self.path}', {state}, rows={self._rows})"


def progress_line(record: OutputRecord) -> str:
    """Console progress text: time [yr], inner semi-major axis, planet obliquity."""
    return (f"t={record.t_years:f}\t a1={record.a1:.6f}\t "
            f"o1={record.planet_obliquity.obliquity_deg:.5f}")


def load_time_series(path: str) -> pd.DataFrame:
    """
    Read a time-series file into a DataFrame.

    Raises
    ------
    OutputError
        If the header does not match COLUMNS
    """
    df = pd.read_csv(path)
    if tuple(df.columns) != COLUMNS:
        raise OutputError(f"{path} does not have the expected columns")
    return df
