"""Dashboard state and its update cycle.

The dashboard moves through three explicit statuses: `Loading` until the
dataset is available, then `Loaded` or `LoadFailed`. State is immutable and
only changes through `reduce(state, event)`. `DashboardStore` holds the
current state for the web app and serialises dispatches with a lock.
"""
import logging
import threading
from dataclasses import dataclass, replace
from typing import Union

import pandas as pd

from evinsight import config
from evinsight.core.pagination import page_count
from evinsight.core.pipeline import LoadError, LoadResult, load_and_summarize
from evinsight.models.schemas import InsightSummary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Loading:
    name = 'loading'


@dataclass(frozen=True, eq=False)
class Loaded:
    dataset: pd.DataFrame
    summary: InsightSummary
    name = 'loaded'


@dataclass(frozen=True)
class LoadFailed:
    error: str
    name = 'failed'


Status = Union[Loading, Loaded, LoadFailed]


@dataclass(frozen=True)
class DashboardState:
    status: Status = Loading()
    current_page: int = 0

    @property
    def total_records(self) -> int:
        if isinstance(self.status, Loaded):
            return len(self.status.dataset)
        return 0

    @property
    def page_count(self) -> int:
        return page_count(self.total_records, config.PAGE_SIZE)


@dataclass(frozen=True)
class LoadStarted:
    pass


@dataclass(frozen=True)
class LoadSucceeded:
    result: LoadResult


@dataclass(frozen=True)
class LoadErrored:
    error: str


@dataclass(frozen=True)
class PageSelected:
    page_index: int


Event = Union[LoadStarted, LoadSucceeded, LoadErrored, PageSelected]


def reduce(state: DashboardState, event: Event) -> DashboardState:
    if isinstance(event, LoadStarted):
        return DashboardState(status=Loading(), current_page=0)
    if isinstance(event, LoadSucceeded):
        return DashboardState(status=Loaded(event.result.dataset, event.result.summary), current_page=0)
    if isinstance(event, LoadErrored):
        return DashboardState(status=LoadFailed(event.error), current_page=0)
    if isinstance(event, PageSelected):
        # out-of-range selections are ignored
        if isinstance(state.status, Loaded) and 0 <= event.page_index < state.page_count:
            return replace(state, current_page=event.page_index)
        return state
    raise TypeError(f"Unknown event: {event!r}")


class DashboardStore:
    def __init__(self, state: DashboardState | None = None):
        self._state = state if state is not None else DashboardState()
        self._lock = threading.Lock()

    @property
    def state(self) -> DashboardState:
        return self._state

    def dispatch(self, event: Event) -> DashboardState:
        with self._lock:
            self._state = reduce(self._state, event)
            return self._state


async def load_into_store(store: DashboardStore, source) -> DashboardState:
    """Run one load of `source` and publish its outcome to `store`."""
    store.dispatch(LoadStarted())
    try:
        result = await load_and_summarize(source)
    except LoadError as exc:
        logger.exception("Failed to load dataset from %s", source)
        return store.dispatch(LoadErrored(str(exc)))
    except Exception as exc:
        logger.exception("Unexpected error while loading %s", source)
        return store.dispatch(LoadErrored(f"{type(exc).__name__}: {exc}"))
    return store.dispatch(LoadSucceeded(result))
