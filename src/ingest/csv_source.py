from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterator, Sequence, Tuple, Union

import pandas as pd

from src.utils.errors import DataSourceError

# A required column is a name or a tuple of accepted alternatives ("from" or "src").
Column = Union[str, Tuple[str, ...]]


def norm_cols(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df


def check_columns(path: Union[str, Path], columns: Sequence[str], required: Sequence[Column]) -> None:
    present = set(columns)
    missing = []
    for col in required:
        options = (col,) if isinstance(col, str) else col
        if not present.intersection(options):
            missing.append("|".join(options))
    if missing:
        raise DataSourceError(f"{path}: missing required columns {missing}")


def iter_rows(
    path: Union[str, Path],
    required: Sequence[Column],
    chunk_size: int = 10_000,
) -> Iterator[Dict[str, Any]]:
    """
    Stream CSV rows as dicts of raw strings.

    Every cell is read as text with no NA conversion; typing is left to the
    record models so one bad cell never fails the whole chunk. Header names
    are stripped and lower-cased.
    """
    try:
        reader = pd.read_csv(
            path,
            dtype=str,
            keep_default_na=False,
            chunksize=chunk_size,
            skipinitialspace=True,
        )
        with reader:
            checked = False
            for chunk in reader:
                chunk = norm_cols(chunk)
                if not checked:
                    check_columns(path, list(chunk.columns), required)
                    checked = True
                for row in chunk.to_dict(orient="records"):
                    yield row
            if not checked:
                # header only: no chunk is produced, so check the header itself
                header = pd.read_csv(path, nrows=0)
                check_columns(path, [str(c).strip().lower() for c in header.columns], required)
    except pd.errors.EmptyDataError as e:
        raise DataSourceError(f"{path}: file is empty") from e
    except (OSError, UnicodeDecodeError, pd.errors.ParserError) as e:
        raise DataSourceError(f"Cannot read {path}: {e}") from e
