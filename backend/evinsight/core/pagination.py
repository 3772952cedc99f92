import math

import pandas as pd

from evinsight import config


def page_count(total_rows: int, page_size: int = config.PAGE_SIZE) -> int:
    if page_size <= 0:
        raise ValueError('page_size must be positive')
    return math.ceil(total_rows / page_size)


def page(data, page_index: int, page_size: int = config.PAGE_SIZE):
    """Return rows [page_index * page_size, page_index * page_size + page_size).

    The slice is clipped to the data length, so an index past the last page
    yields an empty result. `data` is never modified.
    """
    if page_index < 0:
        raise ValueError('page_index must be >= 0')
    if page_size <= 0:
        raise ValueError('page_size must be positive')
    offset = page_index * page_size
    if isinstance(data, pd.DataFrame):
        return data.iloc[offset:offset + page_size]
    return data[offset:offset + page_size]
