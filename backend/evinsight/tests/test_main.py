import sys
import time
import pathlib
import pytest

# Ensure backend package is importable (add backend/ to sys.path)
ROOT = pathlib.Path(__file__).resolve().parents[3]
sys.path.insert(0, str(ROOT / 'backend'))

pd = pytest.importorskip('pandas')
pytest.importorskip('fastapi')
from fastapi.testclient import TestClient
import asyncio

from evinsight import config, main
from evinsight.main import app
from evinsight.state import LoadErrored, LoadStarted, load_into_store

SAMPLE = ROOT / 'data' / 'Electric_Vehicle_Population_Data.csv'

client = TestClient(app)


@pytest.fixture
def loaded_store():
    asyncio.run(load_into_store(main.store, SAMPLE))
    return main.store


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_summary_endpoint(loaded_store):
    response = client.get("/summary")
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["total_records"] == 25
    assert data["total_evs"] == 18
    assert data["avg_range"] == 130
    assert data["top_makes"][0] == ["TESLA", 7]
    assert "2011" not in data["years"]
    assert data["years"]["2019"] == 3


def test_charts_endpoint(loaded_store):
    response = client.get("/charts")
    assert response.status_code == 200
    data = response.json()
    assert data["bar"]["labels"] == ["TESLA", "NISSAN", "CHEVROLET", "FORD", "KIA"]
    assert data["line"]["labels"] == sorted(data["line"]["labels"])
    assert data["line"]["labels"][0] == "2012"
    assert data["top_make"] == "TESLA"


def test_records_pages(loaded_store):
    first = client.get("/records").json()
    assert first["page"] == 0
    assert first["page_count"] == 3
    assert len(first["rows"]) == 10
    assert set(first["rows"][0]) == {"Make", "Model", "Model Year", "Electric Range"}

    last = client.get("/records", params={"page": 2}).json()
    assert len(last["rows"]) == 5
    assert last["rows"][0]["Model"] == "MODEL X"
    assert loaded_store.state.current_page == 2

    beyond = client.get("/records", params={"page": 7}).json()
    assert beyond["rows"] == []


def test_records_rejects_bad_params(loaded_store):
    assert client.get("/records", params={"page": -1}).status_code == 400
    assert client.get("/records", params={"page_size": 0}).status_code == 400


def test_status_and_errors_while_loading():
    main.store.dispatch(LoadStarted())
    assert client.get("/status").json()["status"] == "loading"
    assert client.get("/summary").status_code == 503


def test_failed_load_is_visible():
    main.store.dispatch(LoadErrored("CSV source not found: x.csv"))
    status = client.get("/status").json()
    assert status["status"] == "failed"
    assert "not found" in status["error"]
    assert client.get("/charts").status_code == 502


def test_summarize_upload():
    with open(SAMPLE, "rb") as f:
        files = {"file": ("ev.csv", f, "text/csv")}
        response = client.post("/summarize", files=files)
    assert response.status_code == 200, response.text
    assert response.json()["total_evs"] == 18


def test_summarize_rejects_empty_upload():
    files = {"file": ("empty.csv", b"", "text/csv")}
    response = client.post("/summarize", files=files)
    assert response.status_code == 400


def test_reload_conflict(monkeypatch):
    monkeypatch.setattr(main, '_load_running', lambda: True)
    assert client.post("/reload").status_code == 409


def test_startup_load_reaches_loaded():
    config.set_data_source(SAMPLE)
    with TestClient(app) as live:
        status = None
        for _ in range(200):
            status = live.get("/status").json()
            if status["status"] != "loading":
                break
            time.sleep(0.05)
        assert status["status"] == "loaded", status
        assert status["total_records"] == 25
        assert status["page_count"] == 3
