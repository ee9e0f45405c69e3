"""
Unit Tests - Report Emitter
"""
import json
from datetime import datetime, timezone
from decimal import Decimal

import pytest
import polars as pl

from coffee_expansion.exceptions import MissingDataError
from coffee_expansion.reporting.emitter import (
    RecommendationReport,
    ReportFormat,
    build_report,
    render,
    to_dataframe,
    write_report,
)
from coffee_expansion.scoring.aggregator import aggregate_city_metrics
from coffee_expansion.scoring.ranker import rank_cities
from coffee_expansion.scoring.scorer import CompositeScorer, ScoringWeights


@pytest.fixture
def report(sample_snapshot) -> RecommendationReport:
    scoring = CompositeScorer().score_all(aggregate_city_metrics(sample_snapshot).metrics)
    top = rank_cities(scoring.scored)[:3]
    return build_report(
        top,
        k=3,
        candidates=len(scoring.scored),
        weights=ScoringWeights(),
        excluded=[MissingDataError(5, "Echo", ["population"])],
        generated_at=datetime(2024, 6, 1, tzinfo=timezone.utc),
    )


class TestBuildReport:
    """Tests for build_report"""

    def test_ranks_start_at_one(self, report):
        assert [c.rank for c in report.cities] == [1, 2, 3]
        assert [c.city_name for c in report.cities] == ["Alpha", "Bravo", "Charlie"]

    def test_scores_rounded_to_cents(self, report):
        assert report.cities[0].composite_score == Decimal("1375.60")
        assert report.cities[0].composite_score.as_tuple().exponent == -2

    def test_warnings_from_excluded_cities(self, report):
        assert len(report.warnings) == 1
        assert report.warnings[0].city_name == "Echo"
        assert "population" in report.warnings[0].message

    def test_supporting_metrics(self, report):
        bravo = report.cities[1]

        assert bravo.avg_sale_per_customer == Decimal("1300.00")
        assert bravo.estimated_coffee_consumers == 125_000
        assert bravo.avg_rating is None


class TestRender:
    """Tests for report renderings"""

    def test_json_round_trip(self, report):
        restored = RecommendationReport.model_validate_json(render(report, ReportFormat.JSON))

        assert restored == report

    def test_json_payload(self, report):
        payload = json.loads(render(report, "json"))

        assert payload["k"] == 3
        assert payload["cities"][0]["city_name"] == "Alpha"
        assert Decimal(str(payload["weights"]["revenue_weight"])) == Decimal("0.4")

    def test_csv(self, report):
        lines = render(report, "csv").strip().splitlines()

        assert lines[0].startswith("rank,city_name,composite_score,revenue")
        assert lines[1].startswith("1,Alpha,1375.6,2950.0")
        assert len(lines) == 4

    def test_markdown(self, report):
        text = render(report, "markdown")

        assert text.startswith("# Top 3 Cities for Expansion")
        assert "| 1 | Alpha | 1,375.60 | 2,950.00 | 2 |" in text
        assert "## Warnings" in text

    def test_table(self, report):
        text = render(report, "table")

        assert "Alpha" in text
        assert "warning: " in text

    def test_unknown_format(self, report):
        with pytest.raises(ValueError):
            render(report, "pdf")

    def test_to_dataframe(self, report):
        df = to_dataframe(report.cities)

        assert df.height == 3
        assert df.schema["composite_score"] == pl.Float64
        assert df["city_name"].to_list() == ["Alpha", "Bravo", "Charlie"]


class TestWriteReport:
    """Tests for write_report"""

    @pytest.mark.parametrize(
        "file_name, expected_start",
        [
            ("top.json", "{"),
            ("top.csv", "rank,"),
            ("top.md", "# Top 3"),
        ],
    )
    def test_format_from_suffix(self, report, tmp_path, file_name, expected_start):
        path = write_report(report, tmp_path / "reports" / file_name)

        assert path.read_text(encoding="utf-8").startswith(expected_start)

    def test_explicit_format(self, report, tmp_path):
        path = write_report(report, tmp_path / "top.txt", ReportFormat.MARKDOWN)

        assert path.read_text(encoding="utf-8").startswith("# Top 3")
