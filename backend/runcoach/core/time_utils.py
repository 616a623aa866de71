def hhmmss_to_seconds(hhmmss: str) -> int:
    """
    Convert 'HH:MM:SS' -> total seconds (int).
    Example: '00:45:32' -> 2732
    """
    parts = hhmmss.split(":")
    if len(parts) != 3:
        raise ValueError("Duration must be in HH:MM:SS format")

    hours, minutes, seconds = map(int, parts)
    return hours * 3600 + minutes * 60 + seconds


def mmss_to_seconds(mmss: str) -> int:
    """
    Convert a pace string 'M:SS' -> seconds (int).
    Example: '4:40' -> 280
    """
    parts = mmss.strip().split(":")
    if len(parts) != 2:
        raise ValueError("Pace must be in M:SS format")

    minutes, seconds = map(int, parts)
    if minutes < 0 or not 0 <= seconds < 60:
        raise ValueError("Pace must be in M:SS format")
    return minutes * 60 + seconds


def seconds_to_hhmmss(total_seconds: int) -> str:
    """
    Convert total seconds (int) -> 'HH:MM:SS'.
    Example: 2732 -> '00:45:32'
    """
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_clock(total_seconds: float) -> str:
    """
    Format a running clock: 'MM:SS' below one hour, 'HH:MM:SS' above.
    Example: 754 -> '12:34', 3725 -> '01:02:05'
    """
    s = int(total_seconds)
    if s >= 3600:
        return seconds_to_hhmmss(s)
    return f"{s // 60:02d}:{s % 60:02d}"


def pace_seconds_per_km(speed_mps: float | None) -> float | None:
    """Seconds per kilometer for a speed in m/s. None when not moving."""
    if not speed_mps or speed_mps <= 0:
        return None
    return 1000.0 / speed_mps


def format_pace(speed_mps: float | None) -> str:
    """
    Format a speed as pace per km 'MM:SS'.
    Example: 3.5714 m/s -> '04:40'. Returns '--:--' when not moving.
    """
    pace = pace_seconds_per_km(speed_mps)
    if pace is None:
        return "--:--"
    minutes = int(pace // 60)
    seconds = int(round(pace % 60))
    if seconds == 60:
        minutes, seconds = minutes + 1, 0
    return f"{minutes:02d}:{seconds:02d}"


def to_local_datetime(dt, tz_name: str | None = None):
    """Convert a datetime from source tz (assume UTC if naive) to local or given tz.

    - If `tz_name` is 'local' or None: use system local timezone.
    - If `tz_name` is IANA tz name (e.g., 'America/Sao_Paulo'): use that.
    - If `dt` has no tzinfo, assume UTC.
    """
    from datetime import timezone
    from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    if tz_name and tz_name != "local":
        try:
            return dt.astimezone(ZoneInfo(tz_name))
        except ZoneInfoNotFoundError:
            return dt.astimezone()
    return dt.astimezone()


def ms_to_datetime(ts_ms: int):
    """Epoch milliseconds -> timezone-aware UTC datetime."""
    from datetime import datetime, timezone

    return datetime.fromtimestamp(ts_ms / 1000.0, tz=timezone.utc)
