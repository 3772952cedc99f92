import sys
import pathlib

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[3] / 'backend'))

from evinsight.core.charts import build_chart_specs, top_make
from evinsight.models.schemas import InsightSummary


def test_line_chart_years_ascending_and_aligned():
    summary = InsightSummary(years={2020: 5, 2013: 1, 2018: 3})
    specs = build_chart_specs(summary)
    assert specs.line.labels == ["2013", "2018", "2020"]
    assert specs.line.values == [1, 3, 5]
    assert specs.line.label == "EVs"


def test_bar_chart_follows_top_makes():
    summary = InsightSummary(top_makes=[("TESLA", 7), ("NISSAN", 4)])
    specs = build_chart_specs(summary)
    assert specs.bar.labels == ["TESLA", "NISSAN"]
    assert specs.bar.values == [7, 4]
    assert specs.top_make == "TESLA"


def test_top_make_without_data():
    assert top_make(InsightSummary()) == "N/A"
