import numpy as np
import pytest

from fracseries import AnalysisConfig, decode_key, encode_frame, encode_key, threshold_frame
from fracseries.morton import interleave_fields, quantize


class TestQuantize:
    """Tests for axis quantization"""

    def test_small_axis_spreads_over_buckets(self):
        assert [quantize(c, 4, 256) for c in range(4)] == [0, 64, 128, 192]

    def test_last_index_stays_in_range(self):
        for extent in (1, 3, 7, 100, 255, 256, 1000):
            assert quantize(extent - 1, extent, 256) <= 255

    def test_large_axis_loses_resolution(self):
        """Axes longer than 256 share buckets between neighbouring coordinates"""
        assert quantize(0, 512, 256) == quantize(1, 512, 256) == 0
        assert quantize(511, 512, 256) == 255

    def test_no_overflow_for_large_extent(self):
        assert quantize(2**40 - 1, 2**40, 256) == 255

    def test_clamped(self):
        assert quantize(10, 4, 256) == 255
        assert quantize(-1, 4, 256) == 0


class TestBitLayout:
    """Tests for the canonical interleaving order"""

    def test_top_nibble_holds_most_significant_bits(self):
        """Key bit 4*b + (3 - f) holds bit b of field f"""
        assert interleave_fields(128, 0, 0, 0, 8) == 1 << 31
        assert interleave_fields(0, 128, 0, 0, 8) == 1 << 30
        assert interleave_fields(0, 0, 128, 0, 8) == 1 << 29
        assert interleave_fields(0, 0, 0, 128, 8) == 1 << 28
        assert interleave_fields(1, 0, 0, 0, 8) == 1 << 3
        assert interleave_fields(0, 0, 0, 1, 8) == 1

    def test_all_ones(self):
        assert interleave_fields(255, 255, 255, 255, 8) == 2**32 - 1

    def test_round_trip(self):
        rng = np.random.default_rng(7)
        for qx, qy, qz, occ in rng.integers(0, 256, size=(200, 4)):
            key = interleave_fields(qx, qy, qz, occ, 8)
            assert decode_key(key) == (qx, qy, qz, occ)

    def test_encode_key_round_trip(self):
        shape = (4, 8, 256)
        key = encode_key(3, 5, 17, 255, shape)
        assert decode_key(key) == (192, 160, 17, 255)

    def test_round_trip_small_key(self):
        cfg = AnalysisConfig(bits_per_dim=4, key_width=16, occupied_value=15)
        key = encode_key(1, 2, 3, 15, (4, 4, 4), cfg)
        assert key < 2**16
        assert decode_key(key, cfg) == (4, 8, 12, 15)

    def test_order_follows_z_curve(self):
        """Keys order first by the top bit of every field, then the next, ..."""
        shape = (4, 4, 4)
        assert encode_key(1, 3, 3, 255, shape) < encode_key(2, 0, 0, 0, shape)
        assert encode_key(0, 0, 0, 0, shape) < encode_key(0, 0, 0, 255, shape)

    def test_shared_prefix_means_shared_box(self):
        shape = (16, 16, 16)
        a = encode_key(4, 4, 4, 255, shape)
        b = encode_key(7, 7, 7, 255, shape)
        c = encode_key(8, 7, 7, 255, shape)
        # (4..7) share the top 2 bits of their 4-bit index, 8 does not
        assert a >> 24 == b >> 24
        assert a >> 24 != c >> 24


class TestEncodeFrame:
    """Tests for whole-frame key generation"""

    def test_matches_single_voxel_encoding(self, random_frame):
        mask = threshold_frame(random_frame)
        keys = encode_frame(mask)
        assert keys.dtype == np.uint32
        assert keys.shape == (mask.size,)
        X, Y, Z = mask.shape
        for flat in (0, 1, 17, mask.size - 1):
            x, y, z = np.unravel_index(flat, mask.shape)
            assert keys[flat] == encode_key(x, y, z, mask[x, y, z], (X, Y, Z))

    def test_parallel_equals_sequential(self, random_frame):
        """Both strategies yield the same keys, not just the same sorted set"""
        mask = threshold_frame(random_frame)
        seq = encode_frame(mask, strategy='sequential')
        par = encode_frame(mask, strategy='parallel')
        np.testing.assert_array_equal(seq, par)
        np.testing.assert_array_equal(np.sort(seq), np.sort(par))

    def test_unknown_strategy(self, random_frame):
        with pytest.raises(ValueError):
            encode_frame(threshold_frame(random_frame), strategy='gpu')

    def test_empty_grid(self):
        keys = encode_frame(np.zeros((0, 4, 4), dtype=np.uint8))
        assert keys.size == 0

    def test_rejects_non_3d(self):
        with pytest.raises(ValueError):
            encode_frame(np.zeros((4, 4), dtype=np.uint8))
