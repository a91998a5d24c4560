import numpy as np
from scipy.stats import t
from sklearn.metrics import r2_score

from .config import DEFAULT_CONFIG
from .errors import NumericalError


def resolvable_levels(shape, config=DEFAULT_CONFIG):
    """
    Scale levels whose boxes are at least one voxel wide along every split axis.

    Level L splits each axis into 2**L boxes, so it is resolvable while
    2**L <= min extent. Axes of extent 1 never split and do not limit the
    depth, so a (1, Y, Z) frame is measured like a 2D grid.
    """
    extents = [int(e) for e in shape]
    if not extents or min(extents) < 1:
        return np.arange(0)
    split = [e for e in extents if e > 1]
    if not split:
        return np.arange(1)
    max_level = min(config.bits_per_dim, min(split).bit_length() - 1)
    return np.arange(max_level + 1)


def box_sizes_for_levels(levels, shape):
    """Box edge extent / 2**L, measured along the longest axis."""
    extent = float(max(shape))
    return extent / np.power(2.0, np.asarray(levels, dtype=np.float64))


def compute_dimension(sizes, counts, alpha=0.05):
    """
    Fit log10(N) against log10(box size) by ordinary least squares.

    Parameters
    ----------
    sizes : array-like
        Box sizes.
    counts : array-like
        Box counts N for each size.
    alpha : float, default 0.05
        Significance level of the two-sided t-based confidence interval.

    Returns
    -------
    tuple
        (valid_sizes, valid_counts, d_value, fit, r2, ci_low, ci_high) where d_value is
        the negative slope and fit is [slope, intercept]. The confidence interval needs
        at least 3 points and is NaN otherwise.

    Raises
    ------
    NumericalError
        If fewer than 2 points with positive size and count remain.
    """
    sizes = np.asarray(sizes, dtype=np.float64)
    counts = np.asarray(counts, dtype=np.float64)

    valid = (sizes > 0) & (counts > 0) & np.isfinite(sizes) & np.isfinite(counts)
    valid_sizes = sizes[valid]
    valid_counts = counts[valid]

    if len(valid_sizes) < 2 or len(np.unique(valid_sizes)) < 2:
        raise NumericalError(
            f"Degenerate scaling curve: {len(valid_sizes)} usable scale(s), at least 2 required"
        )

    x = np.log10(valid_sizes)
    y = np.log10(valid_counts)
    fit = np.polyfit(x, y, 1)
    slope, intercept = fit
    y_pred = slope * x + intercept
    r2 = r2_score(y, y_pred)
    d_value = -slope

    n = len(x)
    if n > 2:
        dof = n - 2
        sigma_sq = np.sum((y - y_pred) ** 2) / dof
        sxx = np.sum((x - x.mean()) ** 2)
        slope_se = np.sqrt(sigma_sq / sxx)
        t_crit = t.ppf(1 - alpha / 2, dof)
        ci_low = d_value - t_crit * slope_se
        ci_high = d_value + t_crit * slope_se
    else:
        ci_low = np.nan
        ci_high = np.nan

    return valid_sizes, valid_counts, float(d_value), fit, float(r2), float(ci_low), float(ci_high)


def lacunarity_curve(buckets):
    """
    Lacunarity per scale level from the box mass statistics.

    Λ(L) = variance(mass) / mean(mass)**2 + 1 = N(L) * Σm² / (Σm)²

    Levels without boxes or mass are NaN.
    """
    n = buckets.box_counts.astype(np.float64)
    s1 = buckets.mass_sum.astype(np.float64)
    s2 = buckets.mass_sq_sum.astype(np.float64)
    lac = np.full(len(n), np.nan)
    ok = (n > 0) & (s1 > 0)
    lac[ok] = n[ok] * s2[ok] / (s1[ok] * s1[ok])
    return lac


def estimate_dimension(buckets, shape, config=DEFAULT_CONFIG, alpha=0.05, return_lacunarity=True):
    """
    Turn a frame's ScaleBuckets into a fractal dimension estimate.

    Parameters
    ----------
    buckets : ScaleBuckets
        Output of boxcount.aggregate_keys for the frame.
    shape : tuple of int
        Spatial extents (X, Y, Z) of the frame.
    config : AnalysisConfig, optional
    alpha : float, default 0.05
        Significance level of the confidence interval.
    return_lacunarity : bool, default True
        Include the per-level lacunarity curve.

    Returns
    -------
    dict
        - 'D' : float - fractal dimension, config.empty_dimension for empty frames
        - 'levels' : np.ndarray - scale levels used in the fit
        - 'valid_sizes' : np.ndarray - box sizes used in the fit
        - 'valid_counts' : np.ndarray - occupied box counts used in the fit
        - 'fit' : np.ndarray - [slope, intercept]
        - 'R2' : float
        - 'ci_low', 'ci_high' : float
        - 'lacunarity' : np.ndarray or None - Λ(L) for every level L

    Raises
    ------
    NumericalError
        When the frame has occupied voxels but fewer than 2 resolvable levels.

    Notes
    -----
    The count regressed is the number of boxes holding occupied voxels at each
    resolvable level. The joint count N(L) also includes boxes of empty space and
    is not used for the fit.
    """
    lacunarity = lacunarity_curve(buckets) if return_lacunarity else None

    if buckets.total_occupied == 0:
        return {
            'D': float(config.empty_dimension),
            'levels': np.arange(0),
            'valid_sizes': np.array([]),
            'valid_counts': np.array([]),
            'fit': np.array([np.nan, np.nan]),
            'R2': np.nan,
            'ci_low': np.nan,
            'ci_high': np.nan,
            'lacunarity': lacunarity,
        }

    levels = resolvable_levels(shape, config)
    sizes = box_sizes_for_levels(levels, shape)
    counts = buckets.occupied_counts[levels]
    valid_sizes, valid_counts, d_value, fit, r2, ci_low, ci_high = compute_dimension(sizes, counts, alpha=alpha)

    return {
        'D': d_value,
        'levels': levels[counts > 0],
        'valid_sizes': valid_sizes,
        'valid_counts': valid_counts,
        'fit': fit,
        'R2': r2,
        'ci_low': ci_low,
        'ci_high': ci_high,
        'lacunarity': lacunarity,
    }
