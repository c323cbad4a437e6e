"""Rendering of check results in the Nagios/op5 plugin output format."""
from io import StringIO
from typing import Sequence

from check_graphite.config import CheckConfig
from check_graphite.series import DataPoint
from check_graphite.thresholds import Classification, Severity, Stats

# Graphing tools parse this, keep the layout fixed.
PERF_TEMPLATE = (
    "|value=%f;%f;%f;%f;%f response_time=%fs;%f;%f; num_matching_metrics=%d;"
)
THRESHOLD_TEMPLATE = "%d metrics are %s the %s threshold of %.02f %s"
OK_TEMPLATE = "%d metrics at %.02f on average, min: %.02f, max: %.02f %s"
UNKNOWN_TEMPLATE = "No values in Graphite within %s range!%s"

LONG_OUTPUT_ORDER = (Severity.CRITICAL, Severity.WARNING, Severity.OK)


def perf_data(stats: Stats, count: int, config: CheckConfig, response_time: float) -> str:
    """Performance data for the active state."""
    return PERF_TEMPLATE % (
        stats.avg, config.warning, config.critical, stats.min, stats.max,
        response_time, config.response_time_warning, config.timeout, count,
    )


def dump(points: Sequence[DataPoint], align: int) -> str:
    """One aligned line per point: path, value and unix timestamp."""
    return "".join(
        "%-*s % 12.4f %d\n" % (align, p.path, p.value, p.unix_time())
        for p in points
    )


def long_output(classification: Classification) -> str:
    """Listing of all points grouped by state, worst state first."""
    buf = StringIO()
    for severity in LONG_OUTPUT_ORDER:
        points = classification.partitions.get(severity, [])
        if not points:
            continue
        buf.write(f"===> Metrics in state {severity.name}:\n")
        buf.write(dump(points, classification.align))
        buf.write("\n")
    return buf.getvalue()


def message(classification: Classification, config: CheckConfig) -> str:
    """Human readable summary for the chosen state, with perf data appended."""
    severity = classification.severity
    count = classification.count(severity)

    if severity is Severity.UNKNOWN:
        perf = perf_data(Stats(), 0, config, classification.response_time)
        return UNKNOWN_TEMPLATE % (config.time_period, perf)

    stats = classification.active_stats()
    perf = perf_data(stats, count, config, classification.response_time)

    if severity is Severity.OK:
        return OK_TEMPLATE % (count, stats.avg, stats.min, stats.max, perf)

    threshold = config.critical if severity is Severity.CRITICAL else config.warning
    return THRESHOLD_TEMPLATE % (
        count, classification.direction.word, severity.name.lower(), threshold, perf,
    )


def render(classification: Classification, config: CheckConfig) -> str:
    """Full plugin output: status line, blank line, long output."""
    return "%s: %s\n\n%s" % (
        classification.severity.name,
        message(classification, config),
        long_output(classification),
    )


def render_error(error) -> str:
    """Single CRITICAL line for a failed fetch."""
    return '%s: Error parsing result: "%s"' % (Severity.CRITICAL.name, error)


def render_timeout(seconds: int) -> str:
    return "%s: Timed out after %d seconds" % (Severity.CRITICAL.name, seconds)
