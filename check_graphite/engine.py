"""Run controller: races the Graphite fetch against the timeout."""
import logging
import queue
import threading
from dataclasses import dataclass

from check_graphite.config import CheckConfig
from check_graphite.errors import CheckTimeout
from check_graphite.fetcher import FetchResult, GraphiteFetcher, build_url
from check_graphite.report import render, render_error, render_timeout
from check_graphite.thresholds import Classification, Severity, classify

logger = logging.getLogger(__name__)


@dataclass
class CheckOutcome:
    """What to print and which exit code to use."""
    severity: Severity
    text: str

    @property
    def exit_code(self) -> int:
        return int(self.severity)


class CheckEngine:
    """Runs one fetch-classify-report cycle."""

    def __init__(self, config: CheckConfig, fetcher=None, self_metrics=None):
        self.config = config
        self.self_metrics = self_metrics
        self.fetch_thread = None
        self.fetcher = fetcher or GraphiteFetcher(
            timeout=config.timeout,
            self_metrics=self_metrics
        )

    def _fetch_worker(self, url: str, results: "queue.Queue[FetchResult]"):
        """Fetch in the background thread and post exactly one result."""
        try:
            result = self.fetcher.fetch(url)
        except Exception as e:
            logger.error(f"Fetch thread error: {e}", exc_info=True)
            result = FetchResult(error=e)
        results.put(result)

    def fetch(self) -> FetchResult:
        """
        Run the fetch on a daemon thread and wait for it.

        The wait is truncated to whole seconds. On timeout the
        in-flight request is cancelled, which closes its socket and lets the
        fetch thread finish.

        Raises:
            CheckTimeout: if no result arrived in time
        """
        url = build_url(self.config)
        results: "queue.Queue[FetchResult]" = queue.Queue(maxsize=1)
        self.fetch_thread = threading.Thread(
            target=self._fetch_worker,
            args=(url, results),
            name="graphite-fetch",
            daemon=True
        )
        self.fetch_thread.start()

        wait_s = int(self.config.timeout)
        try:
            return results.get(timeout=wait_s)
        except queue.Empty:
            logger.warning(f"No response from Graphite within {wait_s}s, cancelling")
            try:
                self.fetcher.cancel()
            except Exception as e:
                logger.debug(f"Error while cancelling fetch: {e}")
            raise CheckTimeout(wait_s)

    def evaluate(self, result: FetchResult) -> Classification:
        """Classify a successful fetch result."""
        classification = classify(
            result.points,
            self.config.direction,
            self.config.warning,
            self.config.critical,
            response_time=result.response_time
        )
        if self.self_metrics:
            for severity, points in classification.partitions.items():
                self.self_metrics.set_points(severity.name.lower(), len(points))
        return classification

    def run(self) -> CheckOutcome:
        """Fetch, classify and render; never raises for fetch failures."""
        try:
            result = self.fetch()
        except CheckTimeout as e:
            outcome = CheckOutcome(Severity.CRITICAL, render_timeout(e.args[0]))
        else:
            if result.error is not None:
                outcome = CheckOutcome(Severity.CRITICAL, render_error(result.error))
            else:
                classification = self.evaluate(result)
                outcome = CheckOutcome(
                    classification.severity,
                    render(classification, self.config)
                )

        logger.info(f"Check finished with state {outcome.severity.name}")
        if self.self_metrics:
            self.self_metrics.set_exit_code(outcome.exit_code)
        return outcome
