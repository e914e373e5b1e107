import pytest

from meter_billing.models import BatchIssue
from meter_billing.reporting import BillingReport, build_output_rows, format_cost, round_cost


def test_round_cost_reference_value():
    assert round_cost(0.02160000000000082) == 0.02


@pytest.mark.parametrize(
    "value, expected",
    [
        (2.375, 2.38),
        (0.125, 0.13),
        (0.0, 0.0),
        (12.344999, 12.34),
        (0.015, 0.02),
        (0.045, 0.05),
        (0.25 * 0.18, 0.05),
    ],
)
def test_round_cost_half_away_from_zero(value, expected):
    assert round_cost(value) == expected


def test_format_cost_always_has_two_decimals():
    assert format_cost(0.2) == "0.20"
    assert format_cost(0.0) == "0.00"
    assert format_cost(1234.5) == "1234.50"
    assert format_cost(0.02160000000000082) == "0.02"
    assert format_cost(0.045) == "0.05"


def test_build_output_rows_is_sorted_with_header():
    rows = build_output_rows({10: 1.0, 2: 0.2, 7: 0.0})
    assert rows == [["id", "cost"], ["2", "0.20"], ["7", "0.00"], ["10", "1.00"]]


def test_report_summary_counts_issue_kinds():
    report = BillingReport(
        row_count=10,
        skipped_rows=1,
        anomalous_deltas=2,
        issues=[
            BatchIssue("malformed_row", "invalid reading: 'x'", row=3),
            BatchIssue("unknown_energy_type", "Unknown energy type: 5", row=4, meter_id=1),
        ],
        costs={1: 0.5, 2: 0.0},
    )
    assert report.summary() == {
        "meters": 2,
        "rows": 10,
        "skipped_rows": 1,
        "anomalous_deltas": 2,
        "unknown_energy_types": 1,
    }
