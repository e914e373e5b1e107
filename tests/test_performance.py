import csv
import time

from meter_billing.billing import calculate_meter_costs
from upload_flow import read_meter_rows, write_totals_csv

ROW_COUNT = 200_000
METERS = 10


def create_csv(path, line_count):
    usage = 0
    timestamp = 1415963700
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(["metering_point_id", "type", "reading", "created_at"])
        for i in range(line_count):
            # mix electricity, gas and an unknown code like a noisy export
            energy_type = (1, 2, 1, 0)[i % 4]
            writer.writerow([i % METERS, energy_type, usage, timestamp])
            usage += 10
            timestamp += 60


def test_large_batch_runs_in_a_single_pass(tmp_path):
    source = tmp_path / "test-input.csv"
    target = tmp_path / "output.csv"
    create_csv(source, ROW_COUNT)

    start = time.perf_counter()
    report = calculate_meter_costs(read_meter_rows(source))
    write_totals_csv(target, report.costs)
    elapsed = time.perf_counter() - start

    assert elapsed < 30
    assert report.row_count == ROW_COUNT
    assert report.skipped_rows == 0
    assert sorted(report.costs) == list(range(METERS))
    assert report.unknown_energy_types > 0
    assert all(total >= 0 for total in report.costs.values())

    with target.open(newline="", encoding="utf-8") as handle:
        assert len(list(csv.reader(handle))) == METERS + 1
