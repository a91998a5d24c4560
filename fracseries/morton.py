"""
Spatial keys: 4D Morton (Z-order) codes over (x, y, z, occupancy).

Bit layout
----------
Each voxel contributes four fields of B = config.bits_per_dim bits: the quantized x,
y and z coordinates and the occupancy byte. Bit ``b`` (0 = least significant) of
field ``f`` (x=0, y=1, z=2, occupancy=3) is stored at key bit ``4*b + (3 - f)``.
With the default B = 8 the 32-bit key reads, from the most significant nibble down::

    (x7 y7 z7 o7) (x6 y6 z6 o6) ... (x0 y0 z0 o0)

so two keys share their top 4*L bits exactly when the voxels lie in the same
space x occupancy box at scale level L.
"""
import numpy as np
from numba import njit, prange

from .config import DEFAULT_CONFIG


@njit(nogil=True, cache=True)
def quantize(coord, extent, buckets):
    """floor(coord * buckets / extent), clamped to [0, buckets - 1]."""
    q = (np.int64(coord) * np.int64(buckets)) // np.int64(extent)
    if q > buckets - 1:
        q = buckets - 1
    if q < 0:
        q = 0
    return q


@njit(nogil=True, cache=True)
def interleave_fields(qx, qy, qz, occ, bits):
    """Interleave four `bits`-wide fields into one key, most significant bits first."""
    key = np.int64(0)
    for b in range(bits):
        key |= ((np.int64(qx) >> b) & 1) << (4 * b + 3)
        key |= ((np.int64(qy) >> b) & 1) << (4 * b + 2)
        key |= ((np.int64(qz) >> b) & 1) << (4 * b + 1)
        key |= ((np.int64(occ) >> b) & 1) << (4 * b)
    return key


@njit(nogil=True, cache=True)
def deinterleave_key(key, bits):
    """Inverse of interleave_fields. Returns (qx, qy, qz, occ)."""
    key = np.int64(key)
    qx = np.int64(0)
    qy = np.int64(0)
    qz = np.int64(0)
    occ = np.int64(0)
    for b in range(bits):
        qx |= ((key >> (4 * b + 3)) & 1) << b
        qy |= ((key >> (4 * b + 2)) & 1) << b
        qz |= ((key >> (4 * b + 1)) & 1) << b
        occ |= ((key >> (4 * b)) & 1) << b
    return qx, qy, qz, occ


@njit(nogil=True, cache=True)
def _voxel_key(mask, i, Y, Z, X, buckets, bits):
    # Flat C-order index -> (x, y, z)
    x = i // (Y * Z)
    y = (i // Z) % Y
    z = i % Z
    return interleave_fields(
        quantize(x, X, buckets),
        quantize(y, Y, buckets),
        quantize(z, Z, buckets),
        np.int64(mask[x, y, z]),
        bits,
    )


@njit(nogil=True, cache=True)
def _encode_keys_serial(mask, bits):
    X, Y, Z = mask.shape
    n = X * Y * Z
    buckets = 1 << bits
    keys = np.empty(n, dtype=np.uint32)
    for i in range(n):
        keys[i] = np.uint32(_voxel_key(mask, i, Y, Z, X, buckets, bits))
    return keys


@njit(nogil=True, parallel=True, cache=True)
def _encode_keys_parallel(mask, bits):
    X, Y, Z = mask.shape
    n = X * Y * Z
    buckets = 1 << bits
    keys = np.empty(n, dtype=np.uint32)
    # Each worker writes only the slots of its own index range
    for i in prange(n):
        keys[i] = np.uint32(_voxel_key(mask, i, Y, Z, X, buckets, bits))
    return keys


KEY_STRATEGIES = {
    'sequential': _encode_keys_serial,
    'parallel': _encode_keys_parallel,
}


def encode_key(x, y, z, occupancy, shape, config=DEFAULT_CONFIG):
    """
    Encode a single voxel into its spatial key.

    Parameters
    ----------
    x, y, z : int
        Voxel coordinates, 0 <= x < shape[0] etc.
    occupancy : int
        Occupancy byte (0 for empty, config.occupied_value for occupied).
    shape : tuple of int
        Grid extents (X, Y, Z).
    config : AnalysisConfig, optional

    Returns
    -------
    int
        Key of config.key_width bits.
    """
    X, Y, Z = shape
    buckets = config.quantization_buckets
    bits = config.bits_per_dim
    return int(interleave_fields(
        quantize(x, X, buckets),
        quantize(y, Y, buckets),
        quantize(z, Z, buckets),
        occupancy,
        bits,
    ))


def decode_key(key, config=DEFAULT_CONFIG):
    """Split a key back into its (qx, qy, qz, occupancy) fields."""
    return tuple(int(v) for v in deinterleave_key(int(key), config.bits_per_dim))


def encode_frame(mask, config=DEFAULT_CONFIG, strategy='sequential'):
    """
    Compute the spatial key of every voxel of a thresholded frame.

    Parameters
    ----------
    mask : np.ndarray
        3D uint8 occupancy grid as produced by threshold_frame.
    config : AnalysisConfig, optional
    strategy : {'sequential', 'parallel'}, default 'sequential'
        'parallel' splits the voxels across numba worker threads. Both strategies
        return the same array.

    Returns
    -------
    np.ndarray
        uint32 array of X*Y*Z keys in C (row-major) voxel order, unsorted.
    """
    if strategy not in KEY_STRATEGIES:
        raise ValueError(f"Unknown strategy: {strategy}. Use one of {sorted(KEY_STRATEGIES)}")
    mask = np.ascontiguousarray(mask, dtype=np.uint8)
    if mask.ndim != 3:
        raise ValueError(f"Expected a 3D mask, got array with shape {mask.shape}")
    return KEY_STRATEGIES[strategy](mask, config.bits_per_dim)


__all__ = [
    'KEY_STRATEGIES',
    'quantize',
    'interleave_fields',
    'deinterleave_key',
    'encode_key',
    'decode_key',
    'encode_frame',
]
