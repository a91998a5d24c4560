from dataclasses import dataclass, replace as _dc_replace

from .errors import ConfigError

NUM_FIELDS = 4  # x, y, z, occupancy


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Immutable settings shared by the loader, thresholder, key encoder and aggregator.

    Parameters
    ----------
    array_name : str, default 'arr_0'
        Name of the 4D array inside the .npz archive.
    threshold : int, default 2
        Intensity cutoff. Voxels with intensity below it are empty, all others occupied.
    occupied_value : int, default 255
        Byte written into the occupancy field of occupied voxels. Its top bit must be
        set so occupied and empty voxels separate at the first scale level.
    bits_per_dim : int, default 8
        Bits per interleaved field. Each spatial axis is binned into 2**bits_per_dim
        buckets and there are bits_per_dim + 1 scale levels.
    key_width : int, default 32
        Total key width in bits. Must equal 4 * bits_per_dim.
    empty_dimension : float, default 0.0
        Dimension reported for frames without any occupied voxel.
    flush_every : int, default 10
        Output sink flush interval, in frames.
    """
    array_name: str = 'arr_0'
    threshold: int = 2
    occupied_value: int = 255
    bits_per_dim: int = 8
    key_width: int = 32
    empty_dimension: float = 0.0
    flush_every: int = 10

    def __post_init__(self):
        if not isinstance(self.bits_per_dim, int) or not 1 <= self.bits_per_dim <= 8:
            raise ConfigError(f"bits_per_dim must be an integer in [1, 8], got {self.bits_per_dim!r}")
        if self.key_width != NUM_FIELDS * self.bits_per_dim:
            raise ConfigError(
                f"key_width ({self.key_width}) must equal {NUM_FIELDS} * bits_per_dim "
                f"({NUM_FIELDS * self.bits_per_dim})"
            )
        max_value = (1 << self.bits_per_dim) - 1
        if not 0 < self.occupied_value <= max_value:
            raise ConfigError(f"occupied_value must be in [1, {max_value}], got {self.occupied_value}")
        if not self.occupied_value >> (self.bits_per_dim - 1):
            raise ConfigError(
                f"occupied_value ({self.occupied_value}) must have its top bit "
                f"(bit {self.bits_per_dim - 1}) set"
            )
        if self.flush_every < 1:
            raise ConfigError(f"flush_every must be >= 1, got {self.flush_every}")
        if not self.array_name:
            raise ConfigError("array_name must be a non-empty string")

    @property
    def num_fields(self):
        return NUM_FIELDS

    @property
    def num_levels(self):
        """Number of scale levels, L = 0 .. bits_per_dim."""
        return self.bits_per_dim + 1

    @property
    def quantization_buckets(self):
        return 1 << self.bits_per_dim

    def replace(self, **changes):
        """Return a validated copy with `changes` applied."""
        return _dc_replace(self, **changes)


DEFAULT_CONFIG = AnalysisConfig()
