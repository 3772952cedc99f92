import logging
from dataclasses import dataclass

import pandas as pd

from evinsight.core.insights import compute_insights
from evinsight.core.loader import LoadError, load_records, read_valid_records
from evinsight.models.schemas import InsightSummary

logger = logging.getLogger(__name__)

__all__ = ['LoadError', 'LoadResult', 'load_and_summarize', 'summarize_bytes']


@dataclass(frozen=True, eq=False)
class LoadResult:
    dataset: pd.DataFrame
    summary: InsightSummary


async def load_and_summarize(source) -> LoadResult:
    """Load `source`, keep its Valid Records and summarise the sample.

    Raises LoadError when the resource cannot be fetched or parsed. Works
    without any web or UI framework.
    """
    dataset = await load_records(source)
    summary = compute_insights(dataset)
    logger.info("Summary ready: %d EVs with range, avg %d miles", summary.total_evs, summary.avg_range)
    return LoadResult(dataset=dataset, summary=summary)


def summarize_bytes(content: bytes) -> InsightSummary:
    """Synchronous helper used for uploaded CSV files."""
    return compute_insights(read_valid_records(content))
