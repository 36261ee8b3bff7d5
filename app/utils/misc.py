import datetime


def get_utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def get_utc_iso_now() -> str:
    return get_utc_now().isoformat()


def to_local_date(moment: datetime.datetime, utc_offset_hours: int) -> datetime.date:
    """Calendar day of ``moment`` in a fixed UTC offset, e.g. 8 for UTC+8."""
    tz = datetime.timezone(datetime.timedelta(hours=utc_offset_hours))
    return moment.astimezone(tz).date()
