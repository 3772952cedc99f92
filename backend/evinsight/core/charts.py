from evinsight.models.schemas import ChartSeries, ChartSpecs, InsightSummary


def bar_chart_spec(summary: InsightSummary) -> ChartSeries:
    """Categorical bar: one bucket per top make."""
    return ChartSeries(
        label='Count',
        labels=[make for make, _ in summary.top_makes],
        values=[count for _, count in summary.top_makes],
    )


def line_chart_spec(summary: InsightSummary) -> ChartSeries:
    """Time series line: years ascending, values aligned with the labels."""
    years = sorted(summary.years)
    return ChartSeries(
        label='EVs',
        labels=[str(y) for y in years],
        values=[summary.years[y] for y in years],
    )


def top_make(summary: InsightSummary) -> str:
    if not summary.top_makes:
        return 'N/A'
    return summary.top_makes[0][0] or 'N/A'


def build_chart_specs(summary: InsightSummary) -> ChartSpecs:
    return ChartSpecs(bar=bar_chart_spec(summary), line=line_chart_spec(summary), top_make=top_make(summary))
