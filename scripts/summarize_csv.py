import sys
import pathlib
import json

root = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(root / 'backend'))

from evinsight.core.charts import build_chart_specs  # type: ignore
from evinsight.core.loader import LoadError, read_valid_records  # type: ignore
from evinsight.core.insights import compute_insights  # type: ignore

p = None
if len(sys.argv) > 1:
    p = sys.argv[1]
else:
    # prefer repo data file if present
    p = root / 'data' / 'Electric_Vehicle_Population_Data.csv'

print('Using source:', p)
try:
    records = read_valid_records(p)
except LoadError as exc:
    print('Load failed:', exc)
    sys.exit(2)

summary = compute_insights(records)
print('Valid records:', len(records))
print('Summary:', json.dumps(summary.model_dump(), indent=2))

charts = build_chart_specs(summary)
print('\nEVs by year:')
for year, count in zip(charts.line.labels, charts.line.values):
    print(year, count)
