import pytest

from fracseries import AnalysisConfig, ConfigError, DEFAULT_CONFIG


class TestAnalysisConfig:
    """Tests for the immutable analysis configuration"""

    def test_defaults(self):
        """Defaults match the archive and key layout conventions"""
        assert DEFAULT_CONFIG.array_name == 'arr_0'
        assert DEFAULT_CONFIG.threshold == 2
        assert DEFAULT_CONFIG.occupied_value == 255
        assert DEFAULT_CONFIG.key_width == 32
        assert DEFAULT_CONFIG.num_levels == 9
        assert DEFAULT_CONFIG.quantization_buckets == 256
        assert DEFAULT_CONFIG.num_fields == 4
        assert DEFAULT_CONFIG.empty_dimension == 0.0
        assert DEFAULT_CONFIG.flush_every == 10

    def test_frozen(self):
        """Config cannot be mutated in place"""
        with pytest.raises(AttributeError):
            DEFAULT_CONFIG.threshold = 3

    def test_key_width_must_match_fields(self):
        with pytest.raises(ConfigError):
            AnalysisConfig(key_width=24)

    @pytest.mark.parametrize('bits', [0, 9])
    def test_bits_per_dim_range(self, bits):
        with pytest.raises(ConfigError):
            AnalysisConfig(bits_per_dim=bits, key_width=4 * bits)

    def test_occupied_value_needs_top_bit(self):
        """Occupied voxels must split from empty ones at the first level"""
        with pytest.raises(ConfigError):
            AnalysisConfig(occupied_value=1)
        with pytest.raises(ConfigError):
            AnalysisConfig(occupied_value=256)

    def test_flush_every_positive(self):
        with pytest.raises(ConfigError):
            AnalysisConfig(flush_every=0)

    def test_smaller_key(self):
        cfg = AnalysisConfig(bits_per_dim=4, key_width=16, occupied_value=15)
        assert cfg.num_levels == 5
        assert cfg.quantization_buckets == 16

    def test_replace_validates(self):
        cfg = DEFAULT_CONFIG.replace(threshold=5)
        assert cfg.threshold == 5
        assert DEFAULT_CONFIG.threshold == 2
        with pytest.raises(ConfigError):
            DEFAULT_CONFIG.replace(bits_per_dim=4)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            AnalysisConfig(flush_every=-1)
