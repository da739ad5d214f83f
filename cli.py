"""CLI entry point for the dwell heatmap pipeline.

Loads the session log, applies culling, classifies gaze points by neighbour
density, builds the optional trail, and optionally saves a debug figure.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, Optional

from heatmap_tracks.config import config_from_dict, get_nested, load_config
from heatmap_tracks.pipeline import HeatmapPipeline


def configure_logging(log_cfg: Dict[str, object]) -> None:
    """Configure root logger with both file and console handlers."""

    log_dir = Path(str(log_cfg.get("dir", "logs")))
    log_dir.mkdir(parents=True, exist_ok=True)
    filename = str(log_cfg.get("filename", "heatmap.log"))
    log_path = log_dir / filename
    level_name = str(log_cfg.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s - %(levelname)s - %(message)s"
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)

    file_handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(fmt))
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(fmt))

    root.addHandler(file_handler)
    root.addHandler(stream_handler)
    root.info("Logging to %s (level=%s)", log_path, level_name)


def main(config_path: str = "config/heatmap.yaml", input_path: Optional[str] = None) -> int:
    raw_cfg = load_config(config_path)
    configure_logging(get_nested(raw_cfg, ["logging"], {}) or {})

    try:
        cfg = config_from_dict(raw_cfg)
    except ValueError as exc:
        logging.error("Invalid configuration in %s: %s", config_path, exc)
        return 1
    logging.info("Mode: %s (positions from '%s' fields)", cfg.mode.value, cfg.source)

    pipeline = HeatmapPipeline(cfg)
    try:
        output = pipeline.run_file(input_path)
    except (ValueError, FileNotFoundError) as exc:
        logging.error("Aborting run: %s", exc)
        return 1

    logging.info("Produced %d points from %d records", len(output.points), len(output.records))

    if cfg.output.save_plot:
        from heatmap_tracks.plots import plot_heatmap

        plot_heatmap(output, Path(cfg.output.dir) / cfg.output.figure_name)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Dwell heatmap and trail pipeline.")
    parser.add_argument(
        "-c",
        "--config",
        default="config/heatmap.yaml",
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "-i",
        "--input",
        default=None,
        help="Session log to read; overrides input.file from the config.",
    )
    args = parser.parse_args()
    sys.exit(main(args.config, args.input))
