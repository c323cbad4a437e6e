"""Main entry point for the Graphite check plugin."""
import argparse
import logging
import sys

from check_graphite import __version__
from check_graphite.config import LOG_LEVELS, load_config
from check_graphite.engine import CheckEngine
from check_graphite.errors import ConfigError
from check_graphite.self_metrics import CheckSelfMetrics
from check_graphite.thresholds import Severity

LOG_LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": logging.CRITICAL,
}


class PluginArgumentParser(argparse.ArgumentParser):
    """Usage errors exit with UNKNOWN, as monitoring plugins must."""

    def error(self, message):
        self.print_usage(sys.stderr)
        print(f"{Severity.UNKNOWN.name}: {message}")
        sys.exit(int(Severity.UNKNOWN))


def setup_logging(log_level: str):
    """Setup logging configuration."""
    level = LOG_LEVEL_MAP.get(log_level.lower(), logging.CRITICAL)

    # stdout belongs to the plugin output
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True
    )

    # Reduce noise from some libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = PluginArgumentParser(
        prog="check_graphite",
        description="Check Graphite values and alert in Nagios/op5"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="Path to configuration YAML file")
    parser.add_argument("-H", "--hostname", help="Hostname or IP to check")
    parser.add_argument("-p", "--port", type=int, help="TCP port")
    parser.add_argument("-P", "--protocol", help="Protocol to use (http or https)")
    parser.add_argument("-m", "--metricpath", dest="metric_path",
                        help="Metric path or Graphite function")
    parser.add_argument("-T", "--timeperiod", dest="time_period",
                        help="Timeperiod for selection")
    parser.add_argument("-w", "--warning", type=float,
                        help="Value resulting in WARNING status")
    parser.add_argument("-c", "--critical", type=float,
                        help="Value resulting in CRITICAL status")
    parser.add_argument("-i", "--if", dest="direction",
                        help="Trigger on values being less than (lt) or greater than (gt) thresholds")
    parser.add_argument("-t", "--timeout", type=float,
                        help="Number of seconds before the check times out")
    parser.add_argument("-l", "--log-level", dest="log_level",
                        help=f"Log level (options: {', '.join(LOG_LEVELS)})")
    parser.add_argument("-d", "--debug", action="store_true", default=None,
                        help="Run in debug mode (env: CHECK_GRAPHITE_DEBUG)")
    parser.add_argument("--metrics-file", dest="metrics_file",
                        help="Write self-metrics in Prometheus textfile format")
    return parser


def main(argv=None):
    """Main function."""
    parser = build_parser()
    args = parser.parse_args(argv)

    overrides = vars(args).copy()
    config_path = overrides.pop("config")

    try:
        config = load_config(config_path, overrides)
    except ConfigError as e:
        print(f"{Severity.UNKNOWN.name}: {e}")
        sys.exit(int(Severity.UNKNOWN))

    log_level = config.log_level
    # --debug only wins when no log level was set anywhere
    if config.debug and "log_level" not in config.model_fields_set:
        log_level = "debug"
    setup_logging(log_level)
    logger = logging.getLogger(__name__)
    logger.debug(f"Configuration: {config.model_dump()}")

    self_metrics = CheckSelfMetrics() if config.metrics_file else None
    engine = CheckEngine(config, self_metrics=self_metrics)
    outcome = engine.run()

    if self_metrics:
        self_metrics.write(config.metrics_file)

    text = outcome.text
    if not text.endswith("\n"):
        text += "\n"
    sys.stdout.write(text)
    sys.stdout.flush()
    sys.exit(outcome.exit_code)


if __name__ == "__main__":
    main()
