from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how attempt times are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def remaining_milliseconds(end_time: datetime, now: datetime) -> int:
    return max(0, int((end_time - now).total_seconds() * 1000))


def format_remaining(milliseconds: int) -> str:
    minutes = milliseconds // 60000
    seconds = (milliseconds % 60000) // 1000
    return f"{minutes}:{seconds:02d}"
