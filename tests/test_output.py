import csv
import io
from pathlib import Path

import pytest

from pad_tracker.output import ConsoleOutput, CsvOutput
from pad_tracker.storage import SessionStorage
from pad_tracker.types import TrackRecord


def _record(seq=1, marker_id=3):
    return TrackRecord(
        seq, 42, "2026-10-17T12:00:00", 8.25, 29.5, marker_id,
        0.1, -0.25, 1.5, 3.14, 0.0, -0.5,
    )


def test_console_output_header_and_lines():
    buf = io.StringIO()
    out = ConsoleOutput(stream=buf)

    out.open()
    out.write(_record())
    out.write(_record(seq=2, marker_id=None))
    out.close()

    lines = buf.getvalue().splitlines()
    assert lines[0].split("\t") == ConsoleOutput.HEADER
    assert lines[1].split("\t") == [
        "1", "2026-10-17T12:00:00", "8.25", "29.50", "3", "0.1000", "-0.2500", "1.5000",
    ]
    assert lines[2].split("\t")[4] == "-"


def test_csv_output_writes_rows(tmp_path: Path):
    path = tmp_path / "track.csv"
    out = CsvOutput(path)

    out.open()
    out.write(_record())
    out.close()

    with path.open(newline="", encoding="utf-8") as fh:
        rows = list(csv.DictReader(fh))

    assert len(rows) == 1
    row = rows[0]
    assert list(row.keys()) == CsvOutput.HEADER
    assert row["seq"] == "1"
    assert row["frame_idx"] == "42"
    assert row["marker_id"] == "3"
    assert float(row["z"]) == pytest.approx(1.5)
    assert float(row["roll"]) == pytest.approx(3.14)


def test_csv_output_ignores_writes_when_closed(tmp_path: Path):
    out = CsvOutput(tmp_path / "track.csv")
    out.write(_record())
    out.close()

    assert not (tmp_path / "track.csv").exists()


def test_session_storage_layout(tmp_path: Path):
    storage = SessionStorage(str(tmp_path), name="pad")
    first = Path(storage.begin())
    storage.write_manifest({"source": 0, "axis_signs": (-1.0, 1.0, 1.0)})

    assert first.parent == tmp_path
    assert first.name.startswith("pad_")
    assert (first / "config.json").exists()
    assert storage.csv_path == first / "track.csv"
    assert storage.raw_video_path.suffix == ".avi"

    second = Path(SessionStorage(str(tmp_path), name="pad").begin())
    assert second != first


def test_session_storage_requires_begin(tmp_path: Path):
    with pytest.raises(RuntimeError):
        SessionStorage(str(tmp_path)).csv_path
