from __future__ import annotations

from .scanner import Asset

SECONDS_PER_HOUR = 3600


def is_expired(asset: Asset, max_age_hours: float, now: float) -> bool:
    """Return True when ``asset`` is older than ``max_age_hours`` at ``now``.

    ``max_age_hours == 0`` is the force-delete switch: every asset is expired,
    including one whose mtime lies in the future. Callers rely on this to purge
    the whole output directory.
    """
    if max_age_hours < 0:
        raise ValueError("max_age_hours must be >= 0")
    if max_age_hours == 0:
        return True
    return asset.age_seconds(now) > max_age_hours * SECONDS_PER_HOUR
