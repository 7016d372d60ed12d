"""UTC time buckets used as idempotency and partitioning keys.

hour bucket:   "YYYY-MM-DDTHH"     one pipeline execution per value
minute bucket: "YYYY-MM-DDTHH:MM"  drives the filename, seed and timestamp
day:           "YYYY-MM-DD"        archive date filters
"""

from datetime import date, datetime, timedelta, timezone

from painter.exceptions import ValidationError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def hour_bucket(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H")


def minute_bucket(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M")


def parse_minute_bucket(bucket: str) -> datetime:
    """Parse a minute bucket back into an aware UTC datetime.

    Raises ValueError for malformed buckets.
    """
    return datetime.strptime(bucket, "%Y-%m-%dT%H:%M").replace(tzinfo=timezone.utc)


def bucket_timestamp(bucket: str) -> str:
    """ISO-8601 timestamp at the start of a minute bucket."""
    return f"{bucket}:00Z"


def epoch_seconds(moment: datetime) -> int:
    return int(moment.timestamp())


def parse_day(value: str, field: str = "date") -> date:
    """Parse a strict YYYY-MM-DD string.

    Raises:
        ValidationError: value is not a valid calendar day.
    """
    try:
        if len(value) != 10:
            raise ValueError(value)
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise ValidationError(
            f"Invalid {field} format: expected YYYY-MM-DD, got {value!r}",
            details={"field": field, "value": value},
        ) from e


def day_start_epoch(day: date) -> int:
    """Unix seconds at 00:00:00Z of day."""
    return int(datetime(day.year, day.month, day.day, tzinfo=timezone.utc).timestamp())


def next_day(day: date) -> date:
    return day + timedelta(days=1)
