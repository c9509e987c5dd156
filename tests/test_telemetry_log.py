# tests/test_telemetry_log.py
"""Tests for loading telemetry logs and writing trajectories."""

import pandas as pd
import pytest

from dead_reckoning.util import load_telemetry_log, save_trajectory

HEADER = "timestamp,altitude,roll,pitch,yaw,vx,vy,vz"


def write(path, text):
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadTelemetryLog:

    def test_csv(self, tmp_path):
        path = write(tmp_path / "log.csv", HEADER + "\n0.0,1.0,0,0,0,0.5,0,0\n0.1,1.1,0,0,0,0.5,0,0\n")
        df = load_telemetry_log(path)
        assert list(df.columns) == HEADER.split(",")
        assert len(df) == 2
        assert df["altitude"].tolist() == [1.0, 1.1]

    def test_aliases_and_case(self, tmp_path):
        text = (
            "Time(s);Altitude(m);roll(rad);pitch(rad);yaw(rad);vx(m/s);vy(m/s);vz(m/s);Battery(%)\n"
            "0.0;1.0;0;0;0;0;0;0;88\n"
            "0.1;1.0;0;0;0;0;0;0;87\n"
        )
        df = load_telemetry_log(write(tmp_path / "log.txt", text))
        assert list(df.columns) == HEADER.split(",") + ["battery"]
        assert df["battery"].tolist() == [88, 87]

    def test_extra_columns_dropped(self, tmp_path):
        path = write(tmp_path / "log.csv", HEADER + ",image\n0,1,0,0,0,0,0,0,frame0.png\n")
        df = load_telemetry_log(path)
        assert "image" not in df.columns

    def test_json_lines(self, tmp_path):
        rows = pd.DataFrame([{c: float(i) for c in HEADER.split(",")} for i in range(3)])
        path = tmp_path / "log.json"
        rows.to_json(path, orient="records", lines=True)
        df = load_telemetry_log(path)
        assert len(df) == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_telemetry_log(tmp_path / "nope.csv")

    def test_missing_columns(self, tmp_path):
        path = write(tmp_path / "log.csv", "timestamp,altitude\n0,1\n")
        with pytest.raises(ValueError, match="missing columns"):
            load_telemetry_log(path)

    def test_non_numeric_values(self, tmp_path):
        path = write(tmp_path / "log.csv", HEADER + "\n0,high,0,0,0,0,0,0\n")
        with pytest.raises(ValueError, match="non-numeric"):
            load_telemetry_log(path)


class TestSaveTrajectory:

    def test_roundtrip_and_overwrite(self, tmp_path):
        df = pd.DataFrame({"time": [0.0], "x": [1.0], "y": [2.0], "z": [3.0]})
        out = tmp_path / "out" / "trajectory.csv"
        assert save_trajectory(df, out) == str(out)
        pd.testing.assert_frame_equal(pd.read_csv(out), df)

        with pytest.raises(FileExistsError):
            save_trajectory(df, out)
        save_trajectory(df, out, overwrite=True)
