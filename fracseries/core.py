from dataclasses import dataclass, field
from typing import Optional

import numpy as np
from tqdm.auto import tqdm  # type: ignore

from .boxcount import aggregate_keys
from .config import DEFAULT_CONFIG
from .dimension import estimate_dimension
from .errors import InputFormatError
from .io_utils import ResultWriter, load_frames
from .morton import encode_frame
from .volume_processing import count_occupied, threshold_frame


@dataclass
class FrameResult:
    """
    Dimension estimate of one frame.

    Attributes
    ----------
    frame_index : int
    dimension : float
        Box-counting dimension, or the configured empty-frame value.
    occupied_voxels : int
        Voxels at or above the intensity threshold.
    lacunarity : np.ndarray or None
        Λ(L) for every scale level L, unreduced.
    box_sizes, box_counts : np.ndarray
        Scaling points used in the fit.
    fit : np.ndarray
        [slope, intercept] of log10(count) against log10(box size).
    r2, ci_low, ci_high : float
        Fit quality and confidence interval of the dimension (NaN when undefined).
    """
    frame_index: int
    dimension: float
    occupied_voxels: int = 0
    lacunarity: Optional[np.ndarray] = None
    box_sizes: np.ndarray = field(default_factory=lambda: np.array([]))
    box_counts: np.ndarray = field(default_factory=lambda: np.array([]))
    fit: np.ndarray = field(default_factory=lambda: np.array([np.nan, np.nan]))
    r2: float = np.nan
    ci_low: float = np.nan
    ci_high: float = np.nan


def analyze_frame(frame, frame_index=0, config=DEFAULT_CONFIG, strategy='sequential',
                  return_lacunarity=True, alpha=0.05):
    """
    Estimate the fractal dimension of a single 3D frame.

    Pipeline: threshold -> spatial keys -> sorted multiscale aggregation -> log-log fit.

    Parameters
    ----------
    frame : np.ndarray
        3D intensity grid.
    frame_index : int, default 0
        Index stored in the result.
    config : AnalysisConfig, optional
    strategy : {'sequential', 'parallel'}, default 'sequential'
        Key generation strategy. Does not change the result.
    return_lacunarity : bool, default True
    alpha : float, default 0.05
        Significance level for the dimension confidence interval.

    Returns
    -------
    FrameResult

    Raises
    ------
    NumericalError
        If the frame is occupied but too small to give 2 scale levels.
    """
    mask = threshold_frame(frame, config)
    keys = encode_frame(mask, config, strategy=strategy)
    buckets = aggregate_keys(keys, config)
    est = estimate_dimension(buckets, mask.shape, config, alpha=alpha, return_lacunarity=return_lacunarity)
    return FrameResult(
        frame_index=int(frame_index),
        dimension=est['D'],
        occupied_voxels=count_occupied(mask),
        lacunarity=est['lacunarity'],
        box_sizes=est['valid_sizes'],
        box_counts=est['valid_counts'],
        fit=est['fit'],
        r2=est['R2'],
        ci_low=est['ci_low'],
        ci_high=est['ci_high'],
    )


def iter_frame_results(frames, config=DEFAULT_CONFIG, strategy='sequential', return_lacunarity=True,
                       verbose=False):
    """Yield one FrameResult per frame of a (T, X, Y, Z) array, in frame order."""
    frames = np.asarray(frames)
    if frames.ndim != 4:
        raise InputFormatError(f"Expected a 4D (time, x, y, z) array, got shape {frames.shape}")

    for frame_index in tqdm(range(frames.shape[0]), desc='Processing frames', disable=not verbose):
        result = analyze_frame(frames[frame_index], frame_index=frame_index, config=config,
                               strategy=strategy, return_lacunarity=return_lacunarity)
        if verbose:
            tqdm.write(f"Processed frame: {frame_index} ({result.occupied_voxels} occupied voxels)")
        yield result


def measure_dimension_series(frames, config=DEFAULT_CONFIG, strategy='sequential', sink=None,
                             return_lacunarity=True, verbose=False):
    """
    Measure the fractal dimension of every frame of a 4D simulation output.

    Frames are processed one at a time in index order. Each result is handed to
    `sink` as soon as it is computed and the sink is flushed after frame 0 and
    every config.flush_every frames thereafter, then once more at the end. Any
    error aborts the run; rows flushed before the failure stay in the sink.

    Parameters
    ----------
    frames : np.ndarray
        4D integer array (time, x, y, z).
    config : AnalysisConfig, optional
    strategy : {'sequential', 'parallel'}, default 'sequential'
    sink : ResultWriter, optional
        Any object with write(result) and flush().
    return_lacunarity : bool, default True
    verbose : bool, default False
        Show a progress bar and per-frame messages.

    Returns
    -------
    list of FrameResult
        One result per frame, in frame order.

    Examples
    --------
    >>> frames = np.zeros((2, 4, 4, 4), dtype=np.int32)
    >>> frames[1] = 5
    >>> [round(r.dimension, 3) for r in measure_dimension_series(frames)]
    [0.0, 3.0]
    """
    results = []
    for result in iter_frame_results(frames, config=config, strategy=strategy,
                                     return_lacunarity=return_lacunarity, verbose=verbose):
        results.append(result)
        if sink is not None:
            sink.write(result)
            if result.frame_index % config.flush_every == 0:
                sink.flush()
    if sink is not None:
        sink.flush()
    return results


def analyze_archive(npz_file_path, output_file='fractal_dimension.csv', config=DEFAULT_CONFIG,
                    strategy='sequential', separator='\t', fit_stats=False, lacunarity=False,
                    verbose=True):
    """
    Load a 4D .npz simulation output, measure every frame and write the results.

    Parameters
    ----------
    npz_file_path : str or os.PathLike
        Input archive holding config.array_name.
    output_file : str or os.PathLike, default 'fractal_dimension.csv'
    config : AnalysisConfig, optional
    strategy : {'sequential', 'parallel'}, default 'sequential'
    separator : str, default '\\t'
        Single-byte field delimiter of the output file.
    fit_stats : bool, default False
        Also write R2, confidence interval and number of fitted levels.
    lacunarity : bool, default False
        Also write the per-level lacunarity curve.
    verbose : bool, default True

    Returns
    -------
    list of FrameResult
    """
    frames = load_frames(npz_file_path, config)
    if verbose:
        print("Loading done. Starting processing.")
        print(f"Frames: {frames.shape[0]}, grid: {frames.shape[1:]}, strategy: {strategy}")

    with ResultWriter(output_file, separator=separator, fit_stats=fit_stats,
                      lacunarity=lacunarity, config=config) as sink:
        results = measure_dimension_series(frames, config=config, strategy=strategy, sink=sink,
                                           return_lacunarity=lacunarity, verbose=verbose)

    if verbose:
        peak = max((r.occupied_voxels for r in results), default=0)
        print(f"Wrote {len(results)} frame(s) to {output_file}, peak occupancy {peak} voxels")
    return results
