"""Tests for the time-series recorder."""

import numpy as np
import pandas as pd
import pytest

from lidov import (COLUMNS, IntegrationFailure, OutputError, SpinObliquity,
                   TimeSeriesRecorder, load_time_series)
from lidov.recorder import HEADER, progress_line

from conftest import make_record

YEAR = 2 * np.pi

EXPECTED_HEADER = (
    "t,starx,stary,starz,starvx,starvy,starvz,star_sx,star_sy,star_sz,"
    "a1,i1,e1,s1x,s1y,s1z,mag1,pom1,Om1,f1,p1x,p1y,p1z,p1vx,p1vy,p1vz,"
    "a2,i2,e2,Om2,pom2"
)


def read_lines(path):
    with open(path, encoding="utf-8") as f:
        return f.read().splitlines()


class FailingClose:
    """File wrapper whose close reports a disk error after closing."""

    def __init__(self, f):
        self._f = f

    def write(self, text):
        return self._f.write(text)

    def flush(self):
        self._f.flush()

    def close(self):
        self._f.close()
        raise OSError("disk full")


class TestSchema:
    """Header and row layout."""

    def test_header_exact(self):
        assert HEADER == EXPECTED_HEADER
        assert len(COLUMNS) == 31

    def test_header_written_on_open(self, tmp_path):
        path = tmp_path / "out.txt"
        with TimeSeriesRecorder(str(path), progress_every=0):
            pass
        assert read_lines(path) == [EXPECTED_HEADER]

    def test_row_values(self, tmp_path):
        """t in years, every value to 10 decimals."""
        path = tmp_path / "out.txt"
        with TimeSeriesRecorder(str(path), progress_every=0) as rec:
            rec.append(make_record(100 * YEAR, a1=5.0, e1=0.1, pom2=1 / 3))
        row = read_lines(path)[1].split(",")
        assert len(row) == 31
        assert row[0] == "100.0000000000"
        assert row[COLUMNS.index('a1')] == "5.0000000000"
        assert row[COLUMNS.index('e1')] == "0.1000000000"
        assert row[-1] == "0.3333333333"

    def test_precision(self, tmp_path):
        path = tmp_path / "out.txt"
        with TimeSeriesRecorder(str(path), precision=3, progress_every=0) as rec:
            rec.append(make_record(YEAR, a1=5.123456))
        row = read_lines(path)[1].split(",")
        assert row[0] == "1.000"
        assert row[COLUMNS.index('a1')] == "5.123"

    def test_nan_written(self, tmp_path):
        """Undefined elements are written as nan."""
        path = tmp_path / "out.txt"
        with TimeSeriesRecorder(str(path), progress_every=0) as rec:
            rec.append(make_record(YEAR, a2=np.nan, e2=np.nan))
        row = read_lines(path)[1].split(",")
        assert row[COLUMNS.index('a2')] == "nan"
        assert row[COLUMNS.index('e2')] == "nan"

    def test_truncates_existing_file(self, tmp_path):
        path = tmp_path / "out.txt"
        path.write_text("old content\nmore\n", encoding="utf-8")
        with TimeSeriesRecorder(str(path), progress_every=0) as rec:
            rec.append(make_record(YEAR))
        lines = read_lines(path)
        assert lines[0] == EXPECTED_HEADER
        assert len(lines) == 2


class TestOrdering:
    """Rows must be appended in strictly increasing time."""

    def test_non_increasing_time(self, tmp_path):
        with TimeSeriesRecorder(str(tmp_path / "out.txt"), progress_every=0) as rec:
            rec.append(make_record(2 * YEAR))
            with pytest.raises(OutputError, match="does not increase"):
                rec.append(make_record(2 * YEAR))
            with pytest.raises(OutputError):
                rec.append(make_record(YEAR))
            assert rec.rows_written == 1

    def test_append_when_closed(self, tmp_path):
        rec = TimeSeriesRecorder(str(tmp_path / "out.txt"))
        with pytest.raises(OutputError, match="not open"):
            rec.append(make_record(YEAR))


class TestErrors:
    """I/O failures surface as OutputError."""

    def test_unwritable_path(self, tmp_path):
        rec = TimeSeriesRecorder(str(tmp_path / "missing" / "out.txt"))
        with pytest.raises(OutputError):
            with rec:
                pass
        assert not rec.is_open

    def test_output_error_is_oserror(self, tmp_path):
        with pytest.raises(OSError):
            TimeSeriesRecorder(str(tmp_path / "missing" / "out.txt")).open()

    def test_closed_after_exception(self, tmp_path):
        rec = TimeSeriesRecorder(str(tmp_path / "out.txt"), progress_every=0)
        with pytest.raises(RuntimeError):
            with rec:
                rec.append(make_record(YEAR))
                raise RuntimeError("engine failed")
        assert not rec.is_open
        assert len(read_lines(tmp_path / "out.txt")) == 2

    def test_failed_close_raises(self, tmp_path):
        rec = TimeSeriesRecorder(str(tmp_path / "out.txt"), progress_every=0)
        with pytest.raises(OutputError, match="Cannot close"):
            with rec:
                rec._file = FailingClose(rec._file)

    def test_failed_close_keeps_engine_error(self, tmp_path):
        """A close failure during unwinding does not replace the engine error."""
        rec = TimeSeriesRecorder(str(tmp_path / "out.txt"), progress_every=0)
        with pytest.warns(UserWarning, match="Cannot close"):
            with pytest.raises(IntegrationFailure) as info:
                with rec:
                    rec._file = FailingClose(rec._file)
                    raise IntegrationFailure("close encounter", 3.0, 4.0, (0, 1))
        assert info.value.time == 3.0
        assert not rec.is_open


class TestProgress:
    """Progress line format and cadence."""

    def test_progress_line_format(self):
        record = make_record(200 * YEAR, a1=5.0,
                             planet_obliquity=SpinObliquity(1.0, 85.25))
        assert progress_line(record) == "t=200.000000\t a1=5.000000\t o1=85.25000"

    def test_progress_every(self, tmp_path, capsys):
        """First row and every progress_every-th row after it."""
        with TimeSeriesRecorder(str(tmp_path / "out.txt"), progress_every=2) as rec:
            for k in range(1, 6):
                rec.append(make_record(k * YEAR))
        lines = [l for l in capsys.readouterr().out.splitlines() if l.startswith("t=")]
        assert len(lines) == 3
        assert lines[0].startswith("t=1.000000")
        assert lines[1].startswith("t=3.000000")

    def test_progress_disabled(self, tmp_path, capsys):
        with TimeSeriesRecorder(str(tmp_path / "out.txt"), progress_every=0) as rec:
            rec.append(make_record(YEAR))
        assert capsys.readouterr().out == ""


class TestLoad:
    """load_time_series reads files back into pandas."""

    def test_dataframe(self, tmp_path):
        path = tmp_path / "out.txt"
        with TimeSeriesRecorder(str(path), progress_every=0) as rec:
            rec.append(make_record(100 * YEAR, a1=5.0, a2=np.nan))
            rec.append(make_record(200 * YEAR, a1=5.1))
        df = load_time_series(str(path))
        assert isinstance(df, pd.DataFrame)
        assert tuple(df.columns) == COLUMNS
        np.testing.assert_allclose(df['t'], [100.0, 200.0])
        assert np.isnan(df['a2'].iloc[0])

    def test_wrong_header(self, tmp_path):
        path = tmp_path / "other.csv"
        path.write_text("a,b\n1,2\n", encoding="utf-8")
        with pytest.raises(OutputError):
            load_time_series(str(path))
