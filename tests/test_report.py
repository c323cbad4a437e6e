"""Tests for the plugin output format."""
from check_graphite.report import (
    dump, long_output, message, perf_data, render, render_error, render_timeout,
)
from check_graphite.thresholds import Direction, Severity, Stats, classify
from conftest import make_config, make_point


def test_perf_data_layout():
    config = make_config(warning=30, critical=50, timeout=10)
    perf = perf_data(Stats(avg=42.5, min=40, max=45), 3, config, 0.123)

    assert perf == (
        "|value=42.500000;30.000000;50.000000;40.000000;45.000000 "
        "response_time=0.123000s;5.000000;10.000000; num_matching_metrics=3;"
    )


def test_dump_aligns_paths():
    points = [make_point("a.b", 42.5), make_point("longer.path", -1)]
    assert dump(points, 11) == (
        "a.b              42.5000 1466157600\n"
        "longer.path      -1.0000 1466157600\n"
    )


def test_long_output_orders_states_worst_first():
    points = [make_point("ok.one", 10), make_point("crit.one", 60), make_point("warn.one", 35)]
    result = classify(points, Direction.GT, 30, 50)
    text = long_output(result)

    assert text.index("===> Metrics in state CRITICAL:") < text.index("===> Metrics in state WARNING:")
    assert text.index("===> Metrics in state WARNING:") < text.index("===> Metrics in state OK:")
    assert text.endswith("\n\n")


def test_long_output_skips_empty_states():
    result = classify([make_point("a", 10)], Direction.GT, 30, 50)
    text = long_output(result)

    assert "CRITICAL" not in text
    assert "WARNING" not in text
    assert text == "===> Metrics in state OK:\na      10.0000 1466157600\n\n"


def test_ok_message():
    config = make_config(warning=45, critical=50)
    result = classify([make_point("a.b.c", 42.5)], Direction.GT, 45, 50)

    assert message(result, config).startswith(
        "1 metrics at 42.50 on average, min: 42.50, max: 42.50 |value=42.500000;45.000000;50.000000;"
    )


def test_critical_message_above():
    config = make_config(warning=30, critical=40)
    result = classify([make_point("a.b.c", 42.5)], Direction.GT, 30, 40)

    assert message(result, config).startswith(
        "1 metrics are above the critical threshold of 40.00 |value="
    )


def test_warning_message_below():
    config = make_config(warning=30, critical=10, direction="lt")
    result = classify([make_point("a", 20), make_point("b", 25)], Direction.LT, 30, 10)

    assert message(result, config).startswith(
        "2 metrics are below the warning threshold of 30.00 |value=22.500000;30.000000;10.000000;20.000000;25.000000 "
    )


def test_unknown_message():
    config = make_config(time_period="5min")
    result = classify([], Direction.GT, 30, 50)
    text = message(result, config)

    assert text.startswith("No values in Graphite within 5min range!|value=0.000000;")
    assert text.endswith("num_matching_metrics=0;")


def test_render_layout():
    config = make_config(warning=45, critical=50)
    result = classify([make_point("a.b.c", 42.5)], Direction.GT, 45, 50, response_time=0.5)
    status, blank, *rest = render(result, config).split("\n")

    assert status.startswith("OK: 1 metrics at 42.50")
    assert "response_time=0.500000s;5.000000;10.000000;" in status
    assert blank == ""
    assert rest[0] == "===> Metrics in state OK:"


def test_error_and_timeout_lines():
    assert render_error("boom") == 'CRITICAL: Error parsing result: "boom"'
    assert render_timeout(1) == "CRITICAL: Timed out after 1 seconds"
    assert Severity.CRITICAL.name == "CRITICAL"
