from pydantic import BaseModel, ConfigDict
from typing import List, Dict, Optional, Tuple


class InsightSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_evs: int = 0
    avg_range: int = 0
    top_makes: List[Tuple[str, int]] = []
    years: Dict[int, int] = {}
    sampled_records: int = 0
    total_records: int = 0


class ChartSeries(BaseModel):
    label: str
    labels: List[str]
    values: List[int]


class ChartSpecs(BaseModel):
    bar: ChartSeries
    line: ChartSeries
    top_make: str


class RecordsPage(BaseModel):
    page: int
    page_size: int
    page_count: int
    total_records: int
    rows: List[Dict[str, str]]


class DashboardStatus(BaseModel):
    status: str
    error: Optional[str] = None
    total_records: int = 0
    page_count: int = 0
    current_page: int = 0
