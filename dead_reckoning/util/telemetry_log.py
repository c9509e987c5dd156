from pathlib import Path
from typing import Optional, Union

import pandas as pd

REQUIRED_COLUMNS = ["timestamp", "altitude", "roll", "pitch", "yaw", "vx", "vy", "vz"]
OPTIONAL_COLUMNS = ["battery"]

# common spellings seen in recorded logs
_ALIASES = {
    "time": "timestamp",
    "t": "timestamp",
    "time(s)": "timestamp",
    "alt": "altitude",
    "altitude(m)": "altitude",
    "roll(rad)": "roll",
    "pitch(rad)": "pitch",
    "yaw(rad)": "yaw",
    "vx(m/s)": "vx",
    "vy(m/s)": "vy",
    "vz(m/s)": "vz",
    "battery(%)": "battery",
}


def _read_table(inp: Path) -> pd.DataFrame:
    suffix = inp.suffix.lower()
    if suffix in ('.xls', '.xlsx'):
        return pd.read_excel(inp)
    if suffix == '.parquet':
        return pd.read_parquet(inp)
    if suffix == '.json':
        # try line-delimited first, then standard json
        try:
            return pd.read_json(inp, lines=True)
        except ValueError:
            return pd.read_json(inp)
    if suffix == '.tsv':
        return pd.read_csv(inp, sep='\t')
    # Let pandas infer the separator (comma, tab, semicolon)
    return pd.read_csv(inp, sep=None, engine='python')


def load_telemetry_log(input_path: Union[str, Path]) -> pd.DataFrame:
    """Load a recorded telemetry log into a DataFrame.

    Supported input formats (auto-detected by extension):
    - Delimited text: .csv/.txt/.tsv (separator inferred)
    - JSON: .json (also tries line-delimited JSON)
    - Parquet: .parquet
    - Excel: .xls, .xlsx

    Column names are stripped, lower-cased and mapped through common aliases
    (``time(s)`` -> ``timestamp`` ...). The returned frame holds the required
    columns ``timestamp, altitude, roll, pitch, yaw, vx, vy, vz`` as floats,
    plus ``battery`` when present. Row order is replay order.
    """
    inp = Path(input_path)
    if not inp.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")

    try:
        df = _read_table(inp)
    except Exception as e:
        raise RuntimeError(f"Failed to read telemetry log {input_path}: {e}") from e

    df.columns = [str(c).strip().lower() for c in df.columns]
    df = df.rename(columns=lambda c: _ALIASES.get(c, c))

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Telemetry log {input_path} is missing columns: {missing}")

    keep = REQUIRED_COLUMNS + [c for c in OPTIONAL_COLUMNS if c in df.columns]
    df = df[keep].copy()
    try:
        df = df.apply(pd.to_numeric)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Telemetry log {input_path} has non-numeric values: {e}") from e
    return df.reset_index(drop=True)


def save_trajectory(df: pd.DataFrame, output_path: Union[str, Path], overwrite: bool = False) -> str:
    """Write an estimated trajectory table as CSV. Returns the written path."""
    outp = Path(output_path)
    if outp.exists() and not overwrite:
        raise FileExistsError(f"Output file already exists: {outp}")
    outp.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(outp, index=False)
    return str(outp)


def _cli(argv: Optional[list] = None):
    import argparse

    parser = argparse.ArgumentParser(description="Normalise a telemetry log to CSV")
    parser.add_argument('input', help='Input file path')
    parser.add_argument('-o', '--out', help='Output CSV path (defaults to same name with .csv)')
    parser.add_argument('--overwrite', action='store_true', help='Overwrite existing output file')
    args = parser.parse_args(argv)

    df = load_telemetry_log(args.input)
    out = save_trajectory(df, args.out or Path(args.input).with_suffix('.csv'), args.overwrite)
    print(f"Wrote CSV: {out}")


if __name__ == '__main__':
    _cli()
