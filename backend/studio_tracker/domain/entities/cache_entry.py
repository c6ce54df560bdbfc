"""Domain entity describing the state of one cached collection."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class CacheState(str, Enum):
    """Tri-state lifecycle of a cached collection."""

    UNFETCHED = "unfetched"
    LOADING = "loading"
    POPULATED = "populated"


@dataclass
class CacheEntry(Generic[T]):
    """Current contents of one entity cache. ``items`` is None unless populated."""

    state: CacheState = CacheState.UNFETCHED
    items: list[T] | None = None
