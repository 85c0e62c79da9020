"""Market data access — sources, TTL cache, and price streaming."""

from contractscope.market.cache import TTLCache
from contractscope.market.sources import (
    DataSource,
    LiveSource,
    ResilientSource,
    SyntheticSource,
)

__all__ = [
    "DataSource",
    "LiveSource",
    "ResilientSource",
    "SyntheticSource",
    "TTLCache",
]
