__version__ = '0.1.0'
__author__ = 'DillyDilly'

from .config import AnalysisConfig, DEFAULT_CONFIG
from .errors import (
    FracSeriesError,
    ConfigError,
    InputFormatError,
    NumericalError,
)
from .volume_processing import threshold_frame, count_occupied
from .morton import (
    encode_key,
    decode_key,
    encode_frame,
    KEY_STRATEGIES,
)
from .boxcount import (
    ScaleBuckets,
    aggregate_keys,
    agreement_depth,
    box_counts_from_depths,
)
from .dimension import (
    compute_dimension,
    estimate_dimension,
    lacunarity_curve,
    resolvable_levels,
)
from .core import (
    FrameResult,
    analyze_frame,
    iter_frame_results,
    measure_dimension_series,
    analyze_archive,
)
from .io_utils import (
    load_frames,
    ResultWriter,
    results_to_dataframe,
    validate_separator,
)
from .visualization import (
    plot_scaling_results,
    plot_lacunarity_curve,
    plot_dimension_series,
)

__all__ = [
    # Configuration and errors
    'AnalysisConfig',
    'DEFAULT_CONFIG',
    'FracSeriesError',
    'ConfigError',
    'InputFormatError',
    'NumericalError',

    # Core functionality
    'threshold_frame',
    'count_occupied',
    'encode_key',
    'decode_key',
    'encode_frame',
    'KEY_STRATEGIES',
    'ScaleBuckets',
    'aggregate_keys',
    'agreement_depth',
    'box_counts_from_depths',
    'compute_dimension',
    'estimate_dimension',
    'lacunarity_curve',
    'resolvable_levels',
    'FrameResult',
    'analyze_frame',
    'iter_frame_results',
    'measure_dimension_series',
    'analyze_archive',

    # I/O
    'load_frames',
    'ResultWriter',
    'results_to_dataframe',
    'validate_separator',

    # Visualization
    'plot_scaling_results',
    'plot_lacunarity_curve',
    'plot_dimension_series',
]
