from fastapi import FastAPI, UploadFile, File, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional
import asyncio
import logging

from evinsight import config
from evinsight.core.charts import build_chart_specs
from evinsight.core.pagination import page, page_count
from evinsight.core.pipeline import LoadError, summarize_bytes
from evinsight.models.schemas import ChartSpecs, DashboardStatus, InsightSummary, RecordsPage
from evinsight.state import DashboardStore, Loaded, LoadFailed, Loading, PageSelected, load_into_store

# basic logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

store = DashboardStore()
_load_task: Optional[asyncio.Task] = None


def start_load(source=None) -> asyncio.Task:
    """Schedule a background load of `source` (defaults to config.DATA_SOURCE)."""
    global _load_task
    src = source if source is not None else config.DATA_SOURCE
    _load_task = asyncio.create_task(load_into_store(store, src))
    return _load_task


def _load_running() -> bool:
    return _load_task is not None and not _load_task.done()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Loading dataset from %s", config.DATA_SOURCE)
    task = start_load()
    yield
    if not task.done():
        task.cancel()


app = FastAPI(
    title="EVInsight API",
    description="Electric vehicle population insights",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _require_loaded() -> Loaded:
    status = store.state.status
    if isinstance(status, Loading):
        raise HTTPException(status_code=503, detail="dataset is still loading")
    if isinstance(status, LoadFailed):
        raise HTTPException(status_code=502, detail=f"dataset failed to load: {status.error}")
    return status


@app.get("/")
async def root():
    return {"message": "Welcome to EVInsight API"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


@app.get("/status", response_model=DashboardStatus)
async def api_status():
    state = store.state
    error = state.status.error if isinstance(state.status, LoadFailed) else None
    return DashboardStatus(
        status=state.status.name,
        error=error,
        total_records=state.total_records,
        page_count=state.page_count,
        current_page=state.current_page,
    )


@app.get("/summary", response_model=InsightSummary)
async def api_summary():
    return _require_loaded().summary


@app.get("/charts", response_model=ChartSpecs)
async def api_charts():
    return build_chart_specs(_require_loaded().summary)


@app.get("/records", response_model=RecordsPage)
async def api_records(page_index: int = Query(0, alias="page"), page_size: int = config.PAGE_SIZE):
    """Return one page of the table.

    Query params:
      - page: zero-based page number
      - page_size: rows per page
    """
    if page_index < 0:
        raise HTTPException(status_code=400, detail="page must be >= 0")
    if page_size <= 0 or page_size > 1000:
        raise HTTPException(status_code=400, detail="page_size must be between 1 and 1000")

    loaded = _require_loaded()
    dataset = loaded.dataset
    if page_size == config.PAGE_SIZE:
        store.dispatch(PageSelected(page_index))

    rows = page(dataset, page_index, page_size)[list(config.TABLE_COLUMNS)]
    return RecordsPage(
        page=page_index,
        page_size=page_size,
        page_count=page_count(len(dataset), page_size),
        total_records=len(dataset),
        rows=rows.to_dict(orient="records"),
    )


@app.post("/reload")
async def api_reload() -> Dict[str, Any]:
    if _load_running():
        raise HTTPException(status_code=409, detail="a load is already in progress")
    start_load()
    return {"status": "loading", "source": str(config.DATA_SOURCE)}


@app.post("/summarize", response_model=InsightSummary)
async def api_summarize(file: UploadFile = File(...)):
    """Summarise an uploaded CSV without touching the dashboard state."""
    contents = await file.read()
    try:
        return await asyncio.to_thread(summarize_bytes, contents)
    except LoadError as exc:
        logger.exception("Failed to read uploaded CSV")
        raise HTTPException(status_code=400, detail=f"Invalid CSV upload: {exc}")
    except Exception as exc:
        logger.exception("Summarizing upload failed")
        raise HTTPException(status_code=500, detail=f"Summary error: {exc}")
