import numpy as np

from .config import DEFAULT_CONFIG


def threshold_frame(frame, config=DEFAULT_CONFIG):
    """
    Convert a 3D intensity grid into a uint8 occupancy grid.

    Parameters
    ----------
    frame : np.ndarray
        3D array of integer intensities, one simulation frame.
    config : AnalysisConfig, optional
        Supplies the intensity cutoff and the byte stored for occupied voxels.

    Returns
    -------
    np.ndarray
        uint8 array of the same shape. Voxels with intensity < config.threshold are 0,
        all others hold config.occupied_value.

    Notes
    -----
    The cutoff is inclusive on the occupied side: with the default cutoff of 2,
    intensity 2 is occupied and intensity 1 is empty.

    Examples
    --------
    >>> threshold_frame(np.array([[[0, 1, 2, 7]]]))
    array([[[  0,   0, 255, 255]]], dtype=uint8)
    """
    frame = np.asarray(frame)
    if frame.ndim != 3:
        raise ValueError(f"Expected a 3D frame, got array with shape {frame.shape}")
    mask = np.zeros(frame.shape, dtype=np.uint8)
    mask[frame >= config.threshold] = config.occupied_value
    return mask


def count_occupied(mask):
    """Number of occupied voxels in a thresholded frame."""
    return int(np.count_nonzero(mask))
