"""
Trajectory display.

The top-down map uses the vehicle convention of the live display: world +x
points up the screen, world +y points left, 1 m = ``scale`` pixels, and the
origin sits in the centre of the map.
"""

from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt


def map_pixel(
    position: Sequence[float],
    map_size: Tuple[int, int] = (500, 500),
    scale: float = 100.0,
) -> Tuple[int, int]:
    """
    Map a world position to (column, row) on a top-down map image.

    Args:
        position: (x, y[, z]) in meters; z is ignored.
        map_size: (rows, cols) of the map image.
        scale: Pixels per meter.
    """
    rows, cols = map_size
    col = -position[1] * scale + cols / 2
    row = -position[0] * scale + rows / 2
    return int(round(col)), int(round(row))


def render_map(
    df: pd.DataFrame,
    map_size: Tuple[int, int] = (500, 500),
    scale: float = 100.0,
) -> np.ndarray:
    """Rasterise a trajectory table into an RGB map (red dots), off-map points dropped."""
    rows, cols = map_size
    image = np.zeros((rows, cols, 3), dtype=np.uint8)
    for x, y in zip(df["x"].to_numpy(), df["y"].to_numpy()):
        col, row = map_pixel((x, y), map_size, scale)
        if 0 <= row < rows and 0 <= col < cols:
            image[row, col] = (255, 0, 0)
    return image


def plot_trajectory(
    df: pd.DataFrame,
    truth: Optional[np.ndarray] = None,
    save_path: Optional[str] = None,
    show: bool = False,
):
    """
    Plot the top-down trace and the altitude readout of an estimated trajectory.

    Args:
        df: Trajectory table with columns time, x, y, z (and optionally altitude).
        truth: Optional (N, 3) array of true positions to overlay.
        save_path: If given, the figure is written there.
        show: Call plt.show() at the end.

    Returns:
        The matplotlib Figure.
    """
    fig, (ax_map, ax_alt) = plt.subplots(1, 2, figsize=(14, 6))
    fig.suptitle("Dead-Reckoning Position Estimate", fontsize=16, fontweight="bold")

    # top-down: screen-up is +x, screen-left is +y
    if truth is not None and len(truth):
        ax_map.plot(-truth[:, 1], truth[:, 0], "g--", label="True Path", alpha=0.7, linewidth=1.2)
    # one line per segment, reinitialisations break the trace
    segments = df.groupby("segment") if "segment" in df.columns else [(0, df)]
    for i, (_, part) in enumerate(segments):
        ax_map.plot(-part["y"], part["x"], "r-", label="Kalman Estimate" if i == 0 else None, linewidth=2.0)
    ax_map.set_xlabel("-y (m)", fontsize=10)
    ax_map.set_ylabel("x (m)", fontsize=10)
    ax_map.set_aspect("equal", adjustable="datalim")
    ax_map.legend(fontsize=9)
    ax_map.grid(True, alpha=0.3)

    time = df["time"].to_numpy()
    if "altitude" in df:
        ax_alt.plot(time, df["altitude"], "b.-", label="Altimeter", alpha=0.5, linewidth=0.8)
    if truth is not None and len(truth) == len(df):
        ax_alt.plot(time, truth[:, 2], "g--", label="True Altitude", alpha=0.7, linewidth=1.2)
    ax_alt.plot(time, df["z"], "r-", label="Kalman Estimate", linewidth=2.0)
    ax_alt.set_xlabel("Time (s)", fontsize=10)
    ax_alt.set_ylabel("Altitude (m)", fontsize=10)
    ax_alt.legend(fontsize=9)
    ax_alt.grid(True, alpha=0.3)

    plt.tight_layout(rect=[0, 0.02, 1, 0.96])

    if save_path is not None:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")
    if show:
        plt.show()
    return fig
