# slot_engine/main.py
import os
import sys
import logging
import argparse
import time

from slot_engine.infrastructure.config.loaders.yaml_loader import ConfigError, YamlConfigLoader
from slot_engine.infrastructure.config.validators.schema_validator import SchemaValidator
from slot_engine.infrastructure.logging.log_manager import DEFAULT_LOGGING_CONFIG, initialize_logging
from slot_engine.infrastructure.concurrency.task_executor import TaskExecutor, ExecutionMode
from slot_engine.domain.machine.factories.machine_factory import (
    DEFAULT_MACHINE_PATH, PACKAGE_ROOT, MachineFactory
)
from slot_engine.application.analysis.rtp_analyzer import RTPAnalyzer
from slot_engine.application.analysis.report_generator import ReportGenerator

DEFAULT_ANALYSIS_PATH = os.path.join(PACKAGE_ROOT, "application", "config", "simulation", "default_analysis.yaml")
ANALYSIS_SCHEMA_PATH = os.path.join(PACKAGE_ROOT, "infrastructure", "config", "schemas", "analysis_schema.json")
DEFAULT_SPINS = 1_000_000


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be a non-negative integer, got {value}")
    return number


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Slot machine RTP analyzer")

    parser.add_argument(
        "spins",
        nargs="?",
        type=_positive_int,
        default=None,
        help=f"Number of spins to simulate (default: from config, else {DEFAULT_SPINS:,})"
    )

    parser.add_argument(
        "-c", "--config",
        default=DEFAULT_ANALYSIS_PATH,
        help="Path to analysis configuration file"
    )

    parser.add_argument(
        "-m", "--machine",
        default=None,
        help="Path to machine configuration file (default: from config)"
    )

    parser.add_argument("--bet", type=_positive_int, default=None, help="Bet per line")
    parser.add_argument("--seed", type=_non_negative_int, default=None, help="Master seed")
    parser.add_argument("--shards", type=_positive_int, default=None, help="Number of independent shards")

    parser.add_argument(
        "--mode",
        choices=[mode.name.lower() for mode in ExecutionMode],
        default=None,
        help="How shards are executed"
    )

    parser.add_argument(
        "--target-band",
        nargs=2,
        type=float,
        metavar=("LOW", "HIGH"),
        default=None,
        help="RTP band (percent) to assess the result against"
    )

    parser.add_argument("--output-dir", default=None, help="Write the JSON report (and plot) here")
    parser.add_argument("--plot", action="store_true", help="Save a win distribution PNG")
    parser.add_argument("--no-progress", action="store_true", help="Hide progress bars")

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output"
    )

    # 简单的日志模式选择
    parser.add_argument(
        "--log-mode",
        choices=["all", "app", "domain", "none"],
        default=None,
        help="Select logging mode: 'all'=verbose, 'app'=application only, 'domain'=domain only, 'none'=minimal"
    )

    return parser.parse_args(argv)


def build_log_config(config, log_mode=None, verbose=False):
    """Merge the config's logging section with the command line switches."""
    log_config = dict(config.get("logging") or DEFAULT_LOGGING_CONFIG)
    log_config["loggers"] = dict(log_config.get("loggers") or {})

    if log_mode == "all":
        # 显示所有详细日志
        log_config["level"] = "DEBUG"
        log_config["console_level"] = "DEBUG"

    elif log_mode == "app":
        # 只显示 application 层日志
        log_config["level"] = "WARNING"
        log_config["console_level"] = "DEBUG"
        log_config["loggers"]["domain"] = {"level": "WARNING"}
        log_config["loggers"]["application"] = {"level": "DEBUG"}
        log_config["loggers"]["infrastructure"] = {"level": "WARNING"}

    elif log_mode == "domain":
        # 只显示 domain 层日志
        log_config["level"] = "WARNING"
        log_config["console_level"] = "DEBUG"
        log_config["loggers"]["domain"] = {"level": "DEBUG"}
        log_config["loggers"]["application"] = {"level": "WARNING"}
        log_config["loggers"]["infrastructure"] = {"level": "WARNING"}

    elif log_mode == "none":
        # 最小化日志输出（只显示警告和错误）
        log_config["level"] = "WARNING"
        log_config["console_level"] = "WARNING"

    # verbose 覆盖其他设置
    if verbose:
        log_config["level"] = "DEBUG"
        log_config["console_level"] = "DEBUG"

    return log_config


def main(argv=None):
    """Main entry point for the RTP analyzer."""
    args = parse_arguments(argv)
    start_time = time.time()

    config_loader = YamlConfigLoader(SchemaValidator())

    try:
        config = config_loader.load_file(args.config, schema_path=ANALYSIS_SCHEMA_PATH)
    except ConfigError as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    initialize_logging(build_log_config(config, args.log_mode, args.verbose), force=True)
    logger = logging.getLogger("main")
    logger.info(f"Loaded analysis configuration from {args.config}")

    machine_path = args.machine or config.get("machine") or DEFAULT_MACHINE_PATH
    if not os.path.isabs(machine_path) and not os.path.isfile(machine_path):
        # Bare names resolve against the shipped machine directory
        machine_path = os.path.join(os.path.dirname(DEFAULT_MACHINE_PATH), machine_path)

    spins = args.spins or config.get("spins") or DEFAULT_SPINS
    bet_per_line = args.bet or config.get("bet_per_line", 1)
    seed = args.seed if args.seed is not None else config.get("seed")
    shards = args.shards or config.get("shards", 1)
    target_band = args.target_band or config.get("target_band")
    output_dir = args.output_dir or config.get("output_dir")
    show_progress = not args.no_progress and config.get("show_progress", True)

    try:
        mode = ExecutionMode.from_name(args.mode or config.get("execution_mode", "sequential"))
        machine_config = MachineFactory(config_loader=config_loader).load_config(machine_path)
        analyzer = RTPAnalyzer(
            machine_config,
            task_executor=TaskExecutor(mode, config.get("max_workers")),
        )

        report = analyzer.run(
            spins,
            bet_per_line=bet_per_line,
            seed=seed,
            shards=shards,
            show_progress=show_progress,
            target_band=tuple(target_band) if target_band else None,
        )

        report_generator = ReportGenerator(output_dir or ("reports" if args.plot else None))
        print(report_generator.render_text(report, machine_config))

        if output_dir:
            json_path = report_generator.save_json(report)
            print(f"\nReport saved to {json_path}")
        if args.plot:
            plot_path = report_generator.plot_distribution(report)
            print(f"Plot saved to {plot_path}")

        logger.info(f"Total execution time: {time.time() - start_time:.2f} seconds")
        return 0

    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Analysis interrupted by user")
        return 130
    finally:
        logging.shutdown()


if __name__ == "__main__":
    sys.exit(main())
