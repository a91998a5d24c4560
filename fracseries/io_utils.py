"""
I/O adapters: the .npz frame loader and the delimited-text result sink.

    from fracseries.io_utils import load_frames, ResultWriter

    frames = load_frames("aggregation_run.npz")        # (T, X, Y, Z)
    with ResultWriter("fractal_dimension.csv", separator="\t") as sink:
        for result in measure_dimension_series(frames):
            sink.write(result)
"""
import csv
import zipfile

import numpy as np
import pandas as pd

from .config import DEFAULT_CONFIG
from .errors import InputFormatError

FRAME_COLUMN = 'FrameNumber'
DIMENSION_COLUMN = 'FractalDimension'
FIT_COLUMNS = ['R2', 'CILow', 'CIHigh', 'NumLevels']


def load_frames(file_path, config=DEFAULT_CONFIG):
    """
    Load the 4D (time, x, y, z) intensity array from a .npz archive.

    Parameters
    ----------
    file_path : str or os.PathLike
        Path to the archive.
    config : AnalysisConfig, optional
        config.array_name selects the array inside the archive.

    Returns
    -------
    np.ndarray
        C-contiguous integer array of shape (T, X, Y, Z). Fortran-ordered storage is
        normalized, boolean arrays are promoted to uint8.

    Raises
    ------
    InputFormatError
        If the archive cannot be read, the array is missing, is not 4D or does not
        hold integers.
    """
    name = config.array_name
    try:
        archive = np.load(file_path, allow_pickle=False)
    except (OSError, ValueError, EOFError, zipfile.BadZipFile) as exc:
        raise InputFormatError(f"Could not read archive {file_path}: {exc}") from exc
    if not hasattr(archive, 'files'):
        raise InputFormatError(f"{file_path} holds a bare array, expected a .npz archive")

    with archive:
        if name not in archive.files:
            raise InputFormatError(
                f"Could not load array by name {name!r} from {file_path} "
                f"(available: {', '.join(archive.files) or 'none'})"
            )
        try:
            arr = archive[name]
        except (OSError, ValueError, EOFError, zipfile.BadZipFile) as exc:
            raise InputFormatError(f"Could not read array {name!r} from {file_path}: {exc}") from exc

    if arr.ndim != 4:
        raise InputFormatError(f"Expected a 4D array, got shape {arr.shape}")
    if arr.dtype == np.bool_:
        arr = arr.astype(np.uint8)
    elif not np.issubdtype(arr.dtype, np.integer):
        raise InputFormatError(f"Expected an integer array, got dtype {arr.dtype}")

    return np.ascontiguousarray(arr)


def validate_separator(separator):
    """Return `separator` if it encodes to exactly one byte, else raise ValueError."""
    if not isinstance(separator, str) or len(separator.encode('utf-8')) != 1:
        raise ValueError(f"CSV separator must be a single-byte character, got {separator!r}")
    return separator


def result_row(result, fit_stats=False, lacunarity=False):
    row = {
        FRAME_COLUMN: int(result.frame_index),
        DIMENSION_COLUMN: float(result.dimension),
    }
    if fit_stats:
        row['R2'] = result.r2
        row['CILow'] = result.ci_low
        row['CIHigh'] = result.ci_high
        row['NumLevels'] = len(result.box_sizes)
    if lacunarity and result.lacunarity is not None:
        for level, value in enumerate(result.lacunarity):
            row[f'Lacunarity_L{level}'] = value
    return row


def results_to_dataframe(results, fit_stats=False, lacunarity=False):
    """Tabulate FrameResults, one row per frame."""
    rows = [result_row(r, fit_stats=fit_stats, lacunarity=lacunarity) for r in results]
    return pd.DataFrame(rows, columns=_columns(fit_stats, lacunarity, rows))


def _columns(fit_stats, lacunarity, rows=(), num_levels=None):
    columns = [FRAME_COLUMN, DIMENSION_COLUMN]
    if fit_stats:
        columns += FIT_COLUMNS
    if lacunarity:
        if num_levels is None:
            num_levels = max((sum(k.startswith('Lacunarity_L') for k in row) for row in rows), default=0)
        columns += [f'Lacunarity_L{level}' for level in range(num_levels)]
    return columns


class ResultWriter:
    """
    Buffered delimited-text sink for FrameResults.

    Rows are buffered by write() and reach the file on flush(). Data fields are all
    numeric and written unquoted, NaN as ``nan``. The quoted header is always present
    once the writer is closed, even when no frame was written.

    Parameters
    ----------
    path : str or os.PathLike
        Output file. Created or truncated on construction.
    separator : str, default '\\t'
        Single-byte field delimiter.
    fit_stats : bool, default False
        Add the R2, CILow, CIHigh and NumLevels columns.
    lacunarity : bool, default False
        Add one Lacunarity_L<n> column per scale level.
    config : AnalysisConfig, optional
        Gives the number of scale levels for the lacunarity columns.
    """

    def __init__(self, path, separator='\t', fit_stats=False, lacunarity=False, config=DEFAULT_CONFIG):
        self.separator = validate_separator(separator)
        self.path = path
        self.fit_stats = fit_stats
        self.lacunarity = lacunarity
        self.columns = _columns(fit_stats, lacunarity, num_levels=config.num_levels)
        self.rows_written = 0
        self._buffer = []
        self._header_written = False
        self._fh = open(path, 'w', newline='')

    def write(self, result):
        self._buffer.append(result_row(result, fit_stats=self.fit_stats, lacunarity=self.lacunarity))

    def flush(self):
        if self._buffer:
            self._write_frame(pd.DataFrame(self._buffer, columns=self.columns))
            self.rows_written += len(self._buffer)
            self._buffer = []
        self._fh.flush()

    def close(self):
        if self._fh.closed:
            return
        try:
            self.flush()
            if not self._header_written:
                self._write_frame(pd.DataFrame(columns=self.columns))
        finally:
            self._fh.close()

    def _write_frame(self, df):
        if not self._header_written:
            pd.DataFrame(columns=self.columns).to_csv(
                self._fh,
                sep=self.separator,
                index=False,
                quoting=csv.QUOTE_NONNUMERIC,
                lineterminator='\n',
            )
            self._header_written = True
        if len(df):
            # Every data field is numeric, NaN included
            df.to_csv(
                self._fh,
                sep=self.separator,
                header=False,
                index=False,
                na_rep='nan',
                quoting=csv.QUOTE_MINIMAL,
                lineterminator='\n',
            )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
