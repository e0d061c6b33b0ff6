from enum import Enum


class PriceSource(str, Enum):
    """Resolution tier that produced a price."""

    CACHE = "cache"
    STORAGE = "storage"
    PROVIDER = "provider"
    INTERPOLATED = "interpolated"
