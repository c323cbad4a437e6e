"""CSV decoding and latest-wins deduplication of Graphite render output."""
import csv
import logging
import re
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Sequence

from check_graphite.errors import MalformedRecord, StreamError
from check_graphite.series import DataPoint

logger = logging.getLogger(__name__)

# Graphite returns (path, timestamp, value), not the (path, value, timestamp)
# order used when submitting metrics.
GRAPHITE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
# strptime accepts unpadded fields, Graphite always pads
GRAPHITE_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2} [0-9]{2}:[0-9]{2}:[0-9]{2}")


def decode_record(record: Sequence[str]) -> DataPoint:
    """
    Convert one CSV record into a DataPoint.

    Raises:
        MalformedRecord: if the record does not hold exactly a path, a
            timestamp and a float value.
    """
    if len(record) != 3:
        raise MalformedRecord(f"CSV record length != 3: {list(record)!r}")

    path, ts_field, value_field = record

    if not path:
        raise MalformedRecord("Empty metric path")

    if not GRAPHITE_DATE_RE.fullmatch(ts_field):
        raise MalformedRecord(f"Bad timestamp {ts_field!r}")
    try:
        ts = datetime.strptime(ts_field, GRAPHITE_DATE_FORMAT)
    except ValueError as e:
        raise MalformedRecord(f"Bad timestamp {ts_field!r}: {e}") from e

    if not value_field:
        raise MalformedRecord(f"Empty value field for {path}")

    # float() also takes padding, digit separators and non-ASCII digits
    if value_field != value_field.strip() or "_" in value_field or not value_field.isascii():
        raise MalformedRecord(f"Bad value {value_field!r} for {path}")

    try:
        value = float(value_field)
    except ValueError as e:
        raise MalformedRecord(f"Bad value {value_field!r} for {path}") from e

    return DataPoint(path, ts.replace(tzinfo=timezone.utc), value)


def reduce_records(records: Iterable[Sequence[str]], self_metrics=None) -> List[DataPoint]:
    """
    Decode records and keep only the newest point per path.

    Malformed records are skipped. On equal timestamps the point seen first
    is kept.

    Args:
        records: CSV records, typically a csv.reader
        self_metrics: Optional CheckSelfMetrics to count decoded/skipped records

    Returns:
        One DataPoint per path, in first-seen order

    Raises:
        StreamError: if the underlying CSV reader fails mid-stream
    """
    latest: Dict[str, DataPoint] = {}
    iterator = iter(records)

    while True:
        try:
            record = next(iterator)
        except StopIteration:
            break
        except csv.Error as e:
            raise StreamError(f"CSV stream error: {e}") from e

        logger.debug(f"{record!r}")
        try:
            point = decode_record(record)
        except MalformedRecord as e:
            logger.debug(e)
            if self_metrics:
                self_metrics.record_malformed()
            continue

        if self_metrics:
            self_metrics.record_decoded()

        current = latest.get(point.path)
        if current is None:
            latest[point.path] = point
        else:
            latest[point.path] = point.latest(current)

    return list(latest.values())


def read_csv(lines: Iterable[str], self_metrics=None) -> List[DataPoint]:
    """Parse CSV text lines into a deduplicated point list."""
    return reduce_records(csv.reader(lines, strict=True), self_metrics)
