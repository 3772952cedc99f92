import os
from pathlib import Path
from typing import Union

# Allow overriding the data source and aggregation knobs via environment variables
ROOT = Path(__file__).resolve().parents[2]
_env_source = os.environ.get('EVINSIGHT_DATA_SOURCE')

DATA_SOURCE: Union[str, Path] = _env_source if _env_source else (ROOT / 'data' / 'Electric_Vehicle_Population_Data.csv')

# Only the first SAMPLE_SIZE valid records feed the insight summary
SAMPLE_SIZE = int(os.environ.get('EVINSIGHT_SAMPLE_SIZE', '5000'))
MIN_MODEL_YEAR = int(os.environ.get('EVINSIGHT_MIN_MODEL_YEAR', '2012'))
TOP_MAKES_LIMIT = 5
PAGE_SIZE = 10
CHUNK_SIZE = int(os.environ.get('EVINSIGHT_CHUNK_SIZE', '10000'))
FETCH_TIMEOUT = float(os.environ.get('EVINSIGHT_FETCH_TIMEOUT', '30'))

TYPE_COLUMN = 'Electric Vehicle Type'
YEAR_COLUMN = 'Model Year'
RANGE_COLUMN = 'Electric Range'
MAKE_COLUMN = 'Make'
MODEL_COLUMN = 'Model'

REQUIRED_COLUMNS = (TYPE_COLUMN, YEAR_COLUMN, RANGE_COLUMN, MAKE_COLUMN, MODEL_COLUMN)
# Company, Model, Year, Range
TABLE_COLUMNS = (MAKE_COLUMN, MODEL_COLUMN, YEAR_COLUMN, RANGE_COLUMN)


def set_data_source(source: Union[str, Path]):
    """Programmatically override the dataset location (useful for tests)."""
    global DATA_SOURCE
    DATA_SOURCE = source
