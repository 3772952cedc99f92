import math
from typing import Dict, List, Tuple

import pandas as pd

from evinsight import config
from evinsight.core.loader import parse_int_series
from evinsight.models.schemas import InsightSummary


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def take_sample(records: pd.DataFrame, sample_size: int = config.SAMPLE_SIZE) -> pd.DataFrame:
    """First `sample_size` records, in dataset order."""
    return records.iloc[:max(sample_size, 0)]


def range_statistics(sample: pd.DataFrame) -> Tuple[int, int]:
    """Return (total_evs, avg_range) over sampled rows with a positive range."""
    ranges = parse_int_series(sample[config.RANGE_COLUMN])
    positive = ranges[ranges > 0]
    total_evs = int(len(positive))
    if total_evs == 0:
        return 0, 0
    return total_evs, round_half_up(float(positive.sum()) / total_evs)


def top_makes(sample: pd.DataFrame, limit: int = config.TOP_MAKES_LIMIT) -> List[Tuple[str, int]]:
    """Most frequent makes, count descending.

    Makes are compared as exact strings. Equal counts keep the order in which
    the make was first seen in the sample.
    """
    counts: Dict[str, int] = {}
    for make in sample[config.MAKE_COLUMN]:
        counts[make] = counts.get(make, 0) + 1
    # sorted() is stable, so ties stay in first-seen order
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return ranked[:max(limit, 0)]


def year_histogram(sample: pd.DataFrame, min_year: int = config.MIN_MODEL_YEAR) -> Dict[int, int]:
    years = parse_int_series(sample[config.YEAR_COLUMN]).dropna()
    years = years[years >= min_year]
    return {int(year): int(count) for year, count in years.value_counts(sort=False).items()}


def compute_insights(records: pd.DataFrame,
                     sample_size: int = config.SAMPLE_SIZE,
                     min_year: int = config.MIN_MODEL_YEAR,
                     top_n: int = config.TOP_MAKES_LIMIT) -> InsightSummary:
    """Compute the one-shot insight summary over the sampled prefix of `records`."""
    sample = take_sample(records, sample_size)
    total_evs, avg_range = range_statistics(sample)
    return InsightSummary(
        total_evs=total_evs,
        avg_range=avg_range,
        top_makes=top_makes(sample, limit=top_n),
        years=year_histogram(sample, min_year=min_year),
        sampled_records=len(sample),
        total_records=len(records),
    )
