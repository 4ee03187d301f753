"""Explicit load state for page data.

Controllers fetch each resource once through ``load_resource`` and hand the
resulting ``Resource`` to the template, instead of juggling loading/error flags.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class Resource(Generic[T]):
    state: LoadState
    data: Optional[T] = None
    error: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self.state == LoadState.READY

    @classmethod
    def idle(cls) -> "Resource[T]":
        return cls(state=LoadState.IDLE)

    @classmethod
    def loaded(cls, data: T) -> "Resource[T]":
        return cls(state=LoadState.READY, data=data)

    @classmethod
    def failed(cls, error: str) -> "Resource[T]":
        return cls(state=LoadState.ERROR, error=error)


def load_resource(name: str, fetch: Callable[[], T]) -> Resource[T]:
    """Run ``fetch`` and fold the outcome into a READY or ERROR resource."""
    logger.debug("loading %s (%s)", name, LoadState.LOADING.value)
    try:
        return Resource.loaded(fetch())
    except DomainError as e:
        return Resource.failed(str(e))
    except Exception:
        logger.exception("failed to load %s", name)
        return Resource.failed(f"Error fetching {name}")
