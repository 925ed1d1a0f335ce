"""Time zone resolution and booking instant normalization."""

from datetime import date, datetime, time, tzinfo, UTC
from functools import lru_cache
from typing import Optional
import zoneinfo

from dateutil import tz
from dateutil.zoneinfo import get_zonefile_instance

from bankimport.domain.errors import ValidationError, unknown_time_zone
from bankimport.domain.report import DateChoice


@lru_cache(maxsize=1)
def iana_zone_names() -> frozenset[str]:
    """Names in the IANA database, from the system and dateutil's bundled copy."""
    return frozenset(zoneinfo.available_timezones()) | frozenset(get_zonefile_instance().zones)


def resolve_time_zone(name: Optional[str]) -> tzinfo:
    """Resolve an IANA time zone identifier.

    Args:
        name: Identifier such as "Europe/Riga"

    Raises:
        ValidationError: If the identifier is blank or unknown
    """
    # gettz also accepts POSIX TZ strings and file paths, and "" means the local zone
    if name is None or name.strip() not in iana_zone_names():
        raise ValidationError(unknown_time_zone(name or ""))
    try:
        zone = tz.gettz(name.strip())
    except ValueError as e:
        raise ValidationError(unknown_time_zone(name)) from e
    if zone is None:
        raise ValidationError(unknown_time_zone(name))
    return zone


def start_of_day(day: date, zone: tzinfo) -> datetime:
    """Return the first instant of a calendar day in a zone, in UTC."""
    local = datetime.combine(day, time.min).replace(tzinfo=zone)
    # Days starting in a DST gap begin at the end of the gap
    local = tz.resolve_imaginary(local)
    return local.astimezone(UTC)


def localize(local: datetime, zone: tzinfo) -> datetime:
    """Interpret a wall clock time in a zone, returning the UTC instant.

    Raises:
        ValidationError: If the time is skipped or repeated by a DST change
    """
    if local.tzinfo is not None:
        return local.astimezone(UTC)

    aware = local.replace(tzinfo=zone)
    if not tz.datetime_exists(aware):
        raise ValidationError(f"Local time {local.isoformat()} does not exist in the time zone")
    if tz.datetime_ambiguous(aware):
        raise ValidationError(f"Local time {local.isoformat()} is ambiguous in the time zone")
    return aware.astimezone(UTC)


def to_instant(choice: Optional[DateChoice], zone: tzinfo) -> Optional[datetime]:
    """Normalize a reported date or date-time to an absolute UTC instant."""
    if choice is None:
        return None
    if choice.date_time is not None:
        return localize(choice.date_time, zone)
    if choice.date is not None:
        return start_of_day(choice.date, zone)
    return None
