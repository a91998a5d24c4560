from dataclasses import dataclass

import numpy as np
from numba import njit

from .config import DEFAULT_CONFIG, NUM_FIELDS


@dataclass
class ScaleBuckets:
    """
    Per-level box statistics of one frame.

    All arrays are indexed by scale level L = 0 .. bits_per_dim, where level L
    partitions every axis into 2**L boxes.

    Attributes
    ----------
    box_counts : np.ndarray
        N(L), the number of joint space x occupancy boxes holding at least one voxel.
    occupied_counts : np.ndarray
        Number of those boxes whose voxels are occupied.
    mass_sum : np.ndarray
        Sum of per-box voxel counts. Equals total_mass at every level.
    mass_sq_sum : np.ndarray
        Sum of squared per-box voxel counts.
    depth_histogram : np.ndarray
        Histogram of agreement depths (0 .. key_width) of adjacent sorted keys.
    total_mass : int
        Number of voxels in the frame.
    total_occupied : int
        Number of occupied voxels in the frame.
    """
    box_counts: np.ndarray
    occupied_counts: np.ndarray
    mass_sum: np.ndarray
    mass_sq_sum: np.ndarray
    depth_histogram: np.ndarray
    total_mass: int
    total_occupied: int

    @property
    def levels(self):
        return np.arange(len(self.box_counts))

    @property
    def num_levels(self):
        return len(self.box_counts)


@njit(nogil=True, cache=True)
def agreement_depth(a, b, width):
    """Number of leading bits shared by two `width`-bit keys (width when equal)."""
    diff = np.int64(a) ^ np.int64(b)
    n = 0
    while diff > 0:
        diff >>= 1
        n += 1
    return width - n


@njit(nogil=True, cache=True)
def _close_run(L, run_length, run_occupied, occupied_counts, mass_sum, mass_sq_sum):
    m = run_length[L]
    mass_sum[L] += m
    mass_sq_sum[L] += m * m
    if run_occupied[L]:
        occupied_counts[L] += 1
    run_length[L] = 0
    run_occupied[L] = False


@njit(nogil=True, cache=True)
def _aggregate_sorted_keys(keys, bits):
    """
    Single pass over sorted keys.

    A box boundary at level L lies between two adjacent keys iff their agreement
    depth d < 4*L. The pass records the depth histogram and, per level, the run
    length (box mass) and occupancy of every box it closes.
    """
    num_levels = bits + 1
    width = NUM_FIELDS * bits
    occ_bit = NUM_FIELDS * (bits - 1)  # top bit of the occupancy field
    n = keys.shape[0]

    depth_hist = np.zeros(width + 1, dtype=np.int64)
    occupied_counts = np.zeros(num_levels, dtype=np.int64)
    mass_sum = np.zeros(num_levels, dtype=np.int64)
    mass_sq_sum = np.zeros(num_levels, dtype=np.int64)
    run_length = np.zeros(num_levels, dtype=np.int64)
    run_occupied = np.zeros(num_levels, dtype=np.bool_)
    total_occupied = 0

    if n == 0:
        return depth_hist, occupied_counts, mass_sum, mass_sq_sum, total_occupied

    prev = np.int64(keys[0])
    for i in range(n):
        cur = np.int64(keys[i])
        if i > 0:
            d = agreement_depth(prev, cur, width)
            depth_hist[d] += 1
            # Levels with 4*L > d start a new box here
            for L in range(d // NUM_FIELDS + 1, num_levels):
                _close_run(L, run_length, run_occupied, occupied_counts, mass_sum, mass_sq_sum)
        occupied = ((cur >> occ_bit) & 1) == 1
        if occupied:
            total_occupied += 1
        for L in range(num_levels):
            run_length[L] += 1
            if occupied:
                run_occupied[L] = True
        prev = cur

    for L in range(num_levels):
        _close_run(L, run_length, run_occupied, occupied_counts, mass_sum, mass_sq_sum)

    return depth_hist, occupied_counts, mass_sum, mass_sq_sum, total_occupied


def box_counts_from_depths(depth_histogram, num_levels):
    """
    N(L) = 1 + #{adjacent pairs with agreement depth < 4*L}, for every level at once.

    Returns zeros when the histogram is empty of samples (n = 0 gives no pairs and
    is handled by the caller).
    """
    below = np.concatenate(([0], np.cumsum(depth_histogram)))
    return 1 + below[NUM_FIELDS * np.arange(num_levels)]


def aggregate_keys(keys, config=DEFAULT_CONFIG, presorted=False):
    """
    Derive per-level box counts and mass statistics from a frame's spatial keys.

    Parameters
    ----------
    keys : np.ndarray
        Spatial keys of every voxel of the frame (see morton.encode_frame).
    config : AnalysisConfig, optional
        Must be the configuration the keys were encoded with.
    presorted : bool, default False
        Skip the sort when `keys` is already in ascending order.

    Returns
    -------
    ScaleBuckets

    Notes
    -----
    The sort and the adjacency pass are sequential regardless of how the keys were
    produced, so any key generation strategy yields the same buckets.

    Invariants:
    - box_counts[0] == 1 for a non-empty frame
    - box_counts is non-decreasing in L
    - mass_sum[L] == total voxel count for every L
    """
    keys = np.asarray(keys, dtype=np.uint32)
    if not presorted:
        keys = np.sort(keys, kind='stable')
    keys = np.ascontiguousarray(keys)
    num_levels = config.num_levels

    depth_hist, occupied_counts, mass_sum, mass_sq_sum, total_occupied = \
        _aggregate_sorted_keys(keys, config.bits_per_dim)

    if keys.size == 0:
        box_counts = np.zeros(num_levels, dtype=np.int64)
    else:
        box_counts = box_counts_from_depths(depth_hist, num_levels).astype(np.int64)

    return ScaleBuckets(
        box_counts=box_counts,
        occupied_counts=occupied_counts,
        mass_sum=mass_sum,
        mass_sq_sum=mass_sq_sum,
        depth_histogram=depth_hist,
        total_mass=int(keys.size),
        total_occupied=int(total_occupied),
    )
