import sys
import pathlib
import pytest

ROOT = pathlib.Path(__file__).resolve().parents[3]
sys.path.insert(0, str(ROOT / 'backend'))

pd = pytest.importorskip('pandas')
pytest.importorskip('pydantic')
import asyncio

from evinsight.core.pipeline import LoadError, LoadResult, load_and_summarize
from evinsight.models.schemas import InsightSummary
from evinsight.state import (
    DashboardState, DashboardStore, Loaded, LoadErrored, LoadFailed, Loading,
    LoadStarted, LoadSucceeded, PageSelected, load_into_store, reduce,
)

SAMPLE = ROOT / 'data' / 'Electric_Vehicle_Population_Data.csv'


def make_result(n_rows):
    dataset = pd.DataFrame({'Make': ['TESLA'] * n_rows})
    return LoadResult(dataset=dataset, summary=InsightSummary(total_records=n_rows))


def test_initial_state_is_loading():
    state = DashboardState()
    assert isinstance(state.status, Loading)
    assert state.total_records == 0
    assert state.page_count == 0


def test_load_succeeded_then_page_selection():
    state = reduce(DashboardState(), LoadSucceeded(make_result(25)))
    assert isinstance(state.status, Loaded)
    assert state.page_count == 3

    state = reduce(state, PageSelected(2))
    assert state.current_page == 2

    # out of range selections leave the state untouched
    assert reduce(state, PageSelected(3)) is state
    assert reduce(state, PageSelected(-1)) is state


def test_page_selection_ignored_while_loading():
    state = DashboardState()
    assert reduce(state, PageSelected(0)) is state


def test_load_errored_and_restart():
    state = reduce(DashboardState(), LoadErrored("boom"))
    assert isinstance(state.status, LoadFailed)
    assert state.status.error == "boom"

    state = reduce(state, LoadStarted())
    assert isinstance(state.status, Loading)
    assert state.current_page == 0


def test_reduce_rejects_unknown_event():
    with pytest.raises(TypeError):
        reduce(DashboardState(), object())


def test_store_dispatch():
    store = DashboardStore()
    store.dispatch(LoadSucceeded(make_result(11)))
    new_state = store.dispatch(PageSelected(1))
    assert store.state is new_state
    assert new_state.current_page == 1


def test_load_and_summarize_sample_file():
    result = asyncio.run(load_and_summarize(SAMPLE))
    assert len(result.dataset) == 25
    assert result.summary.total_records == 25
    assert result.summary.total_evs == 18


def test_load_and_summarize_missing_file(tmp_path):
    with pytest.raises(LoadError):
        asyncio.run(load_and_summarize(tmp_path / 'missing.csv'))


def test_load_into_store_success():
    store = DashboardStore()
    state = asyncio.run(load_into_store(store, SAMPLE))
    assert isinstance(state.status, Loaded)
    assert state.status.summary.avg_range == 130


def test_load_into_store_failure(tmp_path):
    store = DashboardStore()
    state = asyncio.run(load_into_store(store, tmp_path / 'missing.csv'))
    assert isinstance(state.status, LoadFailed)
    assert 'not found' in state.status.error


def test_load_into_store_unexpected_error_is_published():
    store = DashboardStore()
    # Path() rejects an int source with TypeError, not LoadError
    state = asyncio.run(load_into_store(store, 12345))
    assert isinstance(state.status, LoadFailed)
    assert 'TypeError' in state.status.error
