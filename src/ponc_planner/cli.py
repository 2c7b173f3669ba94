# src/ponc_planner/cli.py
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .calculation_task import CalculationTask, TaskState
from .config_models import load_config
from .outputs import summarize_forest, write_result_forest, write_run_metadata
from .plotting import plot_client_levels
from .progress import NullProgressReporter, ProgressReporter

logger = logging.getLogger(__name__)


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(
        description="Passive Optical Network Tree Planner"
    )
    parser.add_argument("config", type=str, help="Path to YAML/JSON config file")
    parser.add_argument(
        "--out-dir",
        type=str,
        default="ponc_planner_out",
        help="Output directory",
    )
    parser.add_argument(
        "--no-plots",
        action="store_true",
        help="Disable client level plot generation",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable textual progress indicator",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=0.1,
        help="Seconds between progress updates",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log search details",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    cfg = load_config(args.config)

    progress = NullProgressReporter() if args.no_progress else ProgressReporter()

    with CalculationTask(cfg.to_calculator_args()) as task:
        task.start()
        progress.start("Calculating", total=100)
        try:
            while not task.wait(timeout=args.poll_interval):
                progress.update(int(task.progress * 100))
        except KeyboardInterrupt:
            progress.message("Stopping calculation...")
            task.stop()
            task.wait()
        progress.update(int(task.progress * 100))
        progress.end()

        forest = task.get_result()
        stopped = task.state is TaskState.CANCELLED
        frontier = task.frontier

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    write_result_forest(out_dir / "result_forest.json", forest, cfg.settings.resolution)
    write_run_metadata(out_dir / "run_metadata.json", cfg, forest, frontier, stopped=stopped)

    if not args.no_plots:
        plot_client_levels(forest, cfg.settings, out_path=out_dir / "client_levels.png")

    summary = summarize_forest(forest)
    logger.info(
        "%d client(s) served with %d device(s), total cost %g.",
        summary["num_clients"],
        summary["num_devices"],
        summary["total_cost"],
    )


if __name__ == "__main__":
    main()
