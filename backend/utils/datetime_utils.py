"""
Datetime utility functions for handling Neo4j DateTime objects and
notification timestamps
"""
from datetime import datetime, timezone
from typing import Optional, Union
import logging

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)


def neo4j_datetime_to_python(neo4j_dt) -> Optional[datetime]:
    """
    Convert Neo4j DateTime to Python datetime

    Handles multiple cases:
    - None -> None
    - Neo4j DateTime with to_native() -> Python datetime
    - Already Python datetime -> return as-is
    - Epoch milliseconds (int/float) -> UTC datetime
    - String (ISO or other dateutil-parsable format) -> datetime
    - Other -> None with warning
    """
    if neo4j_dt is None:
        return None

    if isinstance(neo4j_dt, datetime):
        return neo4j_dt

    if hasattr(neo4j_dt, 'to_native'):
        try:
            return neo4j_dt.to_native()
        except Exception as e:
            logger.warning(f"Failed to call to_native() on {type(neo4j_dt)}: {e}")

    if isinstance(neo4j_dt, (int, float)) and not isinstance(neo4j_dt, bool):
        return datetime.fromtimestamp(neo4j_dt / 1000, tz=timezone.utc)

    if isinstance(neo4j_dt, str):
        try:
            return date_parser.isoparse(neo4j_dt)
        except ValueError:
            try:
                return date_parser.parse(neo4j_dt)
            except (ValueError, OverflowError) as e:
                logger.warning(f"Failed to parse datetime string '{neo4j_dt}': {e}")
                return None

    logger.warning(f"Cannot convert {type(neo4j_dt)} to Python datetime: {neo4j_dt}")
    return None


def now_millis() -> int:
    """Current time as epoch milliseconds (notification.time)"""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def format_relative_time(
    value: Union[int, float, datetime, str, None],
    now: Optional[datetime] = None,
) -> str:
    """
    Render a timestamp as "N seconds/minutes/hours/days" before now.

    Args:
        value: epoch millis, datetime, ISO string or Neo4j DateTime
        now: reference time (defaults to current UTC time)

    Returns:
        e.g. "42 seconds", "5 minutes", "3 hours", "12 days"
    """
    moment = neo4j_datetime_to_python(value)
    if moment is None:
        return ""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    seconds = max(0, int((now - moment).total_seconds()))
    if seconds < 60:
        return f"{seconds} seconds"
    if seconds < 3600:
        return f"{seconds // 60} minutes"
    if seconds < 86400:
        return f"{seconds // 3600} hours"

    return f"{seconds // 86400} days"
