import asyncio
import logging
import re
from io import BytesIO
from pathlib import Path
from typing import Optional

import pandas as pd
import requests

from evinsight import config

logger = logging.getLogger(__name__)

# Leading-integer parsing: surrounding whitespace and a sign are allowed,
# anything after the digits is ignored ("250 mi" -> 250, "3.7" -> 3).
# Only ASCII digits count.
_LEADING_INT = r'^\s*([+-]?[0-9]+)'


class LoadError(Exception):
    """Raised when the CSV resource cannot be fetched or parsed."""


def parse_int(value) -> Optional[int]:
    if value is None:
        return None
    parsed = parse_int_series(pd.Series([value]))[0]
    if pd.isna(parsed):
        return None
    return int(parsed)


def parse_int_series(series: pd.Series) -> pd.Series:
    """Parse the leading integer of every cell as float64. Unparsable cells become NaN.

    Floats keep very large values from wrapping around when summed.
    """
    digits = series.astype(str).str.extract(_LEADING_INT, expand=False)
    return digits.astype('float64')


def is_valid_record(frame: pd.DataFrame) -> pd.Series:
    """Filter predicate for a Valid Record.

    A row is kept when its vehicle type and model year are non-empty and its
    electric range parses as an integer. Everything else is dropped without
    being reported as an error.
    """
    has_type = frame[config.TYPE_COLUMN] != ''
    has_year = frame[config.YEAR_COLUMN] != ''
    has_range = parse_int_series(frame[config.RANGE_COLUMN]).notna()
    return has_type & has_year & has_range


def filter_valid_records(frame: pd.DataFrame) -> pd.DataFrame:
    missing = [c for c in config.REQUIRED_COLUMNS if c not in frame.columns]
    if missing:
        raise LoadError(f"CSV missing columns: {', '.join(missing)}")
    frame = frame.fillna('')
    valid = frame[is_valid_record(frame)]
    dropped = len(frame) - len(valid)
    if dropped:
        logger.debug("Dropped %d invalid rows out of %d", dropped, len(frame))
    return valid


def normalize_source(source):
    """Rewrite GitHub `blob` page URLs to their raw-content equivalent."""
    if not isinstance(source, str):
        return source
    url = source.strip()
    m = re.match(r"https?://github\.com/([^/]+)/([^/]+)/blob/([^/]+)/(.*)", url)
    if m:
        user, repo, branch, tail = m.groups()
        return f"https://raw.githubusercontent.com/{user}/{repo}/{branch}/{tail}"
    return url


def _is_url(source) -> bool:
    return isinstance(source, str) and source.strip().startswith(('http://', 'https://'))


def _fetch(url: str) -> bytes:
    logger.info("Fetching CSV from %s", url)
    try:
        response = requests.get(url, timeout=config.FETCH_TIMEOUT)
        response.raise_for_status()
    except requests.exceptions.RequestException as exc:
        raise LoadError(f"Failed to fetch {url}: {exc}") from exc
    return response.content


def _open_source(source):
    if isinstance(source, (bytes, bytearray)):
        return BytesIO(bytes(source))
    if hasattr(source, 'read'):  # uploaded file-like
        return source
    if _is_url(source):
        return BytesIO(_fetch(normalize_source(source)))
    path = Path(source)
    if not path.is_file():
        raise LoadError(f"CSV source not found: {path}")
    return path


def _header_width(handle) -> int:
    header = pd.read_csv(handle, nrows=0, index_col=False, encoding='utf-8-sig')
    if hasattr(handle, 'seek'):
        handle.seek(0)
    return len(header.columns)


def read_valid_records(source, chunk_size: int = config.CHUNK_SIZE) -> pd.DataFrame:
    """Read a CSV source chunk by chunk and return only its Valid Records.

    `source` may be a local path, an http(s) URL, raw bytes or a file-like
    object. The result is assembled once every chunk has been consumed, so
    callers never observe a partially loaded dataset. Rows with more fields
    than the header are cut to the header width and kept.
    """
    handle = _open_source(source)
    chunks = []
    total_rows = 0
    try:
        width = _header_width(handle)
        reader = pd.read_csv(
            handle,
            dtype=str,
            keep_default_na=False,
            index_col=False,
            encoding='utf-8-sig',
            engine='python',
            on_bad_lines=lambda fields: fields[:width],
            chunksize=chunk_size,
        )
        with reader:
            for chunk in reader:
                total_rows += len(chunk)
                chunks.append(filter_valid_records(chunk))
    except (OSError, ValueError) as exc:
        # EmptyDataError, ParserError and UnicodeDecodeError are all ValueErrors
        raise LoadError(f"Invalid CSV: {exc}") from exc

    if not chunks:
        return pd.DataFrame(columns=list(config.REQUIRED_COLUMNS), dtype=str)

    records = pd.concat(chunks).reset_index(drop=True)
    logger.info("Loaded %d valid records (%d rows read, %d dropped)", len(records), total_rows, total_rows - len(records))
    return records


async def load_records(source, chunk_size: int = config.CHUNK_SIZE) -> pd.DataFrame:
    """Asynchronously fetch and parse `source`, keeping the event loop free."""
    return await asyncio.to_thread(read_valid_records, source, chunk_size)
