"""
Command line front end.

    fracseries simulation.npz -o fractal_dimension.csv -s ','

Reads the 4D (time, x, y, z) array of a .npz archive and writes one fractal
dimension per frame.
"""
import argparse
import os
import sys

from . import __version__
from .config import AnalysisConfig
from .core import analyze_archive
from .errors import FracSeriesError


def build_parser():
    parser = argparse.ArgumentParser(
        prog='fracseries',
        description='Calculate the box-counting fractal dimension of every frame of a '
                    '3D+t aggregation simulation stored as a 4D .npz array.',
    )
    parser.add_argument('npz_file_path', type=str,
                        help='Path to the simulation output (.npz)')
    parser.add_argument('-o', '--output-file', type=str, default='fractal_dimension.csv',
                        help='Path to the output file (CSV)')
    parser.add_argument('-s', '--csv-separator', type=str, default='\t',
                        help='Single-byte field separator of the output file (default: tab)')
    parser.add_argument('--array-name', type=str, default='arr_0',
                        help='Name of the 4D array inside the archive')
    parser.add_argument('--threshold', type=int, default=2,
                        help='Voxels with intensity below this value are empty')
    parser.add_argument('--parallel', action='store_true',
                        help='Generate spatial keys on multiple threads')
    parser.add_argument('--flush-every', type=int, default=10,
                        help='Flush the output file every N frames')
    parser.add_argument('--fit-stats', action='store_true',
                        help='Also write R2, confidence interval and number of fitted levels')
    parser.add_argument('--lacunarity', action='store_true',
                        help='Also write the lacunarity of every scale level')
    parser.add_argument('--plot', type=str, default=None,
                        help='Save a dimension-vs-frame figure to this path')
    parser.add_argument('--scaling-plots', type=str, default=None,
                        help='Save the log-log scaling plot of every frame into this directory')
    parser.add_argument('-q', '--quiet', action='store_true',
                        help='Suppress progress output')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def _save_plots(results, args):
    from .visualization import default_scaling_plot_name, plot_dimension_series, plot_scaling_results

    if args.plot:
        plot_dimension_series(results, show=False, save_path=args.plot)
    if args.scaling_plots:
        os.makedirs(args.scaling_plots, exist_ok=True)
        for result in results:
            plot_scaling_results(result, show=False,
                                 save_path=default_scaling_plot_name(result, args.scaling_plots))


def main(argv=None):
    args = build_parser().parse_args(argv)
    verbose = not args.quiet

    try:
        config = AnalysisConfig(
            array_name=args.array_name,
            threshold=args.threshold,
            flush_every=args.flush_every,
        )
        results = analyze_archive(
            args.npz_file_path,
            output_file=args.output_file,
            config=config,
            strategy='parallel' if args.parallel else 'sequential',
            separator=args.csv_separator,
            fit_stats=args.fit_stats,
            lacunarity=args.lacunarity,
            verbose=verbose,
        )
        if args.plot or args.scaling_plots:
            _save_plots(results, args)
    except (FracSeriesError, OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
