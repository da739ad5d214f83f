"""Optional plotting utilities for debugging.

Draws the pipeline output as a matplotlib 3D scatter of the point sprites with
the visible trail runs on top.
"""

from __future__ import annotations

import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from .pipeline import HeatmapOutput  # noqa: E402


def plot_heatmap(output: HeatmapOutput, output_path: Path, title: str = "Dwell heatmap") -> None:
    """Plot the coloured points and trail of one run and save the figure."""

    fig = plt.figure(figsize=(7, 6))
    ax = fig.add_subplot(111, projection="3d")

    if output.points:
        coords = np.array([p.position for p in output.points], dtype=float)
        colors = np.array([p.color for p in output.points], dtype=float)
        sizes = np.array([p.size for p in output.points], dtype=float)
        # Unity-style y-up data: plot x/z on the ground plane and y as height.
        ax.scatter(coords[:, 0], coords[:, 2], coords[:, 1], c=colors, s=sizes * 400, edgecolors="k", linewidths=0.2)

    if output.trail is not None:
        for run in output.trail.runs():
            ax.plot(run[:, 0], run[:, 2], run[:, 1], color=output.trail.color, linewidth=output.trail.width * 50)

    ax.set_xlabel("X (m)")
    ax.set_ylabel("Z (m)")
    ax.set_zlabel("Y (m)")
    ax.set_title(title)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    logging.info("Saved figure to %s", output_path)
