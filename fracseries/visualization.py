import os

import matplotlib.pyplot as plt
import numpy as np


def _finish(fig, created_fig, show, save_path):
    if save_path is not None:
        directory = os.path.dirname(save_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
    if show and created_fig:
        plt.show()
    if created_fig and not show:
        plt.close(fig)


def default_scaling_plot_name(result, save_dir):
    """File name used for a frame's scaling plot, e.g. frame_0003_D2.41.png."""
    name = f"frame_{result.frame_index:04d}"
    dimension = float(result.dimension)
    if np.isfinite(dimension):
        # 3 decimals, trailing zeros dropped: 2.410 -> D2.41, 3.000 -> D3
        name += "_D" + np.format_float_positional(round(dimension, 3) + 0.0, trim="-")
    return os.path.join(save_dir, name + ".png")


def plot_scaling_results(result, show=True, save_path=None, ax=None, legend=True):
    """
    Log-log scaling plot of one frame: occupied box count against box size.

    Parameters
    ----------
    result : FrameResult
    show : bool, default True
        Display the figure interactively.
    save_path : str, optional
        Save the figure here. Directories are created if needed.
    ax : matplotlib.axes.Axes, optional
        Draw on an existing axis.
    legend : bool, default True
        Add a text box with D and R².

    Returns
    -------
    tuple
        (fig, ax). fig is None when `ax` was supplied.
    """
    created_fig = ax is None
    if created_fig:
        fig, ax = plt.subplots(figsize=(8, 8))
    else:
        fig = None

    sizes = np.asarray(result.box_sizes, dtype=np.float64)
    counts = np.asarray(result.box_counts, dtype=np.float64)

    if sizes.size:
        log_sizes = np.log10(sizes)
        ax.scatter(log_sizes, np.log10(counts), color='black')
        if np.all(np.isfinite(result.fit)):
            ax.plot(log_sizes, result.fit[0] * log_sizes + result.fit[1], color='red')

    ax.set_title(f"Frame {result.frame_index}: $Log_{{10}}(N_L)$ vs. $Log_{{10}}(L)$")
    ax.set_xlabel(r'$Log_{10}(L)$')
    ax.set_ylabel(r'$Log_{10}(N_L)$')
    ax.grid(True)

    if legend:
        lines = [f"D Value: {np.round(result.dimension, 3)}"]
        if np.isfinite(result.r2):
            lines.append(f"$R^2$ = {np.round(result.r2, 5)}")
        if np.isfinite(result.ci_low) and np.isfinite(result.ci_high):
            lines.append(f"95% CI: [{result.ci_low:.3f}, {result.ci_high:.3f}]")
        ax.text(0.55, 0.95, "\n".join(lines), transform=ax.transAxes, verticalalignment='top',
                bbox=dict(boxstyle="round", facecolor="#e9f1f7", alpha=0.6, edgecolor="#cbd5e1"))

    _finish(ax.figure, created_fig, show, save_path)
    return (fig, ax)


def plot_lacunarity_curve(box_sizes, lacunarity, show=True, save_path=None, title=None, ax=None):
    """
    Plot Λ(L) against box size on log-log axes.

    Non-finite and non-positive entries are skipped. Returns (None, ax) when there
    is nothing to plot.
    """
    box_sizes = np.asarray(box_sizes, dtype=np.float64)
    lacunarity = np.asarray(lacunarity, dtype=np.float64)
    mask = np.isfinite(box_sizes) & np.isfinite(lacunarity) & (box_sizes > 0) & (lacunarity > 0)

    if not np.any(mask):
        return (None, ax)

    created_fig = ax is None
    if created_fig:
        fig, ax = plt.subplots(figsize=(8, 6))
    else:
        fig = None

    ax.plot(box_sizes[mask], lacunarity[mask], marker='o', linestyle='-', color='#1f77b4', linewidth=2)
    ax.set_xscale('log')
    ax.set_yscale('log')
    ax.set_xlabel('Box Size (voxels)')
    ax.set_ylabel('Lacunarity Λ(L)')
    ax.set_title(title if title else 'Lacunarity Curve')
    ax.grid(True, which='both', linestyle='--', alpha=0.3)

    _finish(ax.figure, created_fig, show, save_path)
    return (fig, ax)


def plot_dimension_series(results, show=True, save_path=None, ax=None, show_ci=True):
    """
    Fractal dimension against frame index.

    Parameters
    ----------
    results : list of FrameResult
    show : bool, default True
    save_path : str, optional
    ax : matplotlib.axes.Axes, optional
    show_ci : bool, default True
        Shade the confidence interval where it is defined.

    Returns
    -------
    tuple
        (fig, ax). fig is None when `ax` was supplied.
    """
    created_fig = ax is None
    if created_fig:
        fig, ax = plt.subplots(figsize=(10, 5))
    else:
        fig = None

    frames = np.array([r.frame_index for r in results], dtype=np.int64)
    dims = np.array([r.dimension for r in results], dtype=np.float64)
    ax.plot(frames, dims, marker='o', color='black', linewidth=1.5)

    if show_ci and len(results):
        lo = np.array([r.ci_low for r in results], dtype=np.float64)
        hi = np.array([r.ci_high for r in results], dtype=np.float64)
        ok = np.isfinite(lo) & np.isfinite(hi)
        if np.any(ok):
            ax.fill_between(frames[ok], lo[ok], hi[ok], color='red', alpha=0.2, label='95% CI')
            ax.legend(loc='best', frameon=False)

    ax.set_xlabel('Frame')
    ax.set_ylabel('Fractal Dimension')
    ax.set_title('Fractal Dimension per Frame')
    ax.grid(True, alpha=0.3)

    _finish(ax.figure, created_fig, show, save_path)
    return (fig, ax)
