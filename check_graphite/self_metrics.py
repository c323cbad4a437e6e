"""Self-monitoring metrics for the check, exported via prometheus_client."""
import logging

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, write_to_textfile

logger = logging.getLogger(__name__)


class CheckSelfMetrics:
    """Counters and timings describing one check run."""

    def __init__(self, registry=None, prefix="check_graphite_"):
        if registry is None:
            registry = CollectorRegistry()
        self.registry = registry

        self.records_total = Counter(
            f"{prefix}records_total",
            "CSV records read from Graphite",
            ["result"],
            registry=registry
        )

        self.fetch_duration_seconds = Histogram(
            f"{prefix}fetch_duration_seconds",
            "Time until Graphite answered the render request",
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
            registry=registry
        )

        self.points = Gauge(
            f"{prefix}points",
            "Deduplicated data points per state",
            ["state"],
            registry=registry
        )

        self.exit_code = Gauge(
            f"{prefix}exit_code",
            "Exit code of the last run",
            registry=registry
        )

    def record_decoded(self):
        """Record a successfully decoded CSV record."""
        self.records_total.labels(result="decoded").inc()

    def record_malformed(self):
        """Record a skipped CSV record."""
        self.records_total.labels(result="malformed").inc()

    def record_fetch_duration(self, duration: float):
        self.fetch_duration_seconds.observe(duration)

    def set_points(self, state: str, count: int):
        self.points.labels(state=state).set(count)

    def set_exit_code(self, code: int):
        self.exit_code.set(code)

    def write(self, path: str) -> bool:
        """
        Write all metrics to a node_exporter textfile.

        Failures are logged and reported as False; they never change the
        check result.
        """
        try:
            write_to_textfile(path, self.registry)
        except OSError as e:
            logger.error(f"Failed to write self-metrics to {path}: {e}")
            return False
        logger.debug(f"Self-metrics written to {path}")
        return True
