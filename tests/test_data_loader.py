"""Tests for file loading and the two pipeline entry points.

Covers:
- Inventory CSV ingestion: envelope shape, skipped rows, future dates,
  encodings, empty files, missing files
- Incentive JSON fetch: container shapes, filters, bad JSON, bad entries
"""

import json
from datetime import datetime, timedelta, timezone

from conftest import NOW, make_incentive, make_vehicle_row
from promo_engine.data_loader import DataLoader, fetch_incentive_data, ingest_inventory_data
from promo_engine.errors import ErrorTypes


def _days_ago(days: int) -> str:
    return (NOW - timedelta(days=days)).strftime("%Y-%m-%d %H:%M:%S")


class TestIngestInventory:

    def test_two_civics(self, write_inventory_csv, config):
        path = write_inventory_csv([
            make_vehicle_row(MSRP="25000", DateReceived=_days_ago(10)),
            make_vehicle_row(MSRP="$27,000", DateReceived=_days_ago(95)),
        ])
        result = ingest_inventory_data(path, now=NOW, config=config)

        assert result["success"] is True
        assert result["total_vehicles"] == 2
        assert result["skipped_rows"] == 0
        assert result["future_dated_rows"] == 0
        assert result["ingestion_date"] == NOW.isoformat()
        summary = result["summary"]
        assert summary["by_make"] == {"Honda": 2}
        assert summary["by_aging"] == {"Fresh": 1, "Aging": 0, "Stale": 0, "Critical": 1}
        assert summary["total_msrp_value"] == 52000
        assert summary["average_days_on_lot"] == 53
        assert result["data"][0]["vehicle_line"] == "2024 Honda Civic"

    def test_padded_make_and_model_keep_spacing_in_vehicle_line(self, write_inventory_csv, config):
        path = write_inventory_csv([make_vehicle_row(Make=" Honda ", Model=" Civic ")])
        result = ingest_inventory_data(path, now=NOW, config=config)
        vehicle = result["data"][0]
        assert vehicle["make"] == "Honda"
        assert vehicle["model"] == "Civic"
        assert vehicle["vehicle_line"] == "2024  Honda   Civic"
        assert list(result["summary"]["vehicle_lines"]) == ["2024  Honda   Civic"]

    def test_bad_rows_are_skipped(self, write_inventory_csv, config, caplog):
        path = write_inventory_csv([
            make_vehicle_row(),
            make_vehicle_row(Make=""),
            make_vehicle_row(DateReceived="not a date"),
            make_vehicle_row(MSRP="-5"),
        ])
        result = ingest_inventory_data(path, now=NOW, config=config)
        assert result["success"] is True
        assert result["total_vehicles"] == 1
        assert result["skipped_rows"] == 3
        assert "Skipping inventory row 3" in caplog.text

    def test_future_dated_rows_kept_and_counted(self, write_inventory_csv, config):
        path = write_inventory_csv([make_vehicle_row(DateReceived="2024-03-05")])
        result = ingest_inventory_data(path, now=NOW, config=config)
        assert result["total_vehicles"] == 1
        assert result["future_dated_rows"] == 1
        assert result["data"][0]["days_on_lot"] < 0
        assert result["data"][0]["aging_category"] == "Fresh"

    def test_snake_case_headers(self, write_inventory_csv, config):
        columns = ["vin", "make", "model", "year", "msrp", "date_received"]
        rows = [{"vin": "V1", "make": "Kia", "model": "Soul", "year": "2023", "msrp": "21000",
                 "date_received": "2024-01-01"}]
        result = ingest_inventory_data(write_inventory_csv(rows, columns=columns), now=NOW, config=config)
        vehicle = result["data"][0]
        assert vehicle["make"] == "Kia"
        assert vehicle["status"] == "Available"
        assert vehicle["location"] == "Main Lot"

    def test_without_metrics(self, write_inventory_csv, config):
        path = write_inventory_csv([make_vehicle_row()])
        result = ingest_inventory_data(path, calculate_metrics=False, now=NOW, config=config)
        assert result["success"] is True
        assert "days_on_lot" not in result["data"][0]
        assert result["summary"]["vehicle_lines"] == {}

    def test_header_only(self, write_inventory_csv, config):
        result = ingest_inventory_data(write_inventory_csv([]), now=NOW, config=config)
        assert result["success"] is True
        assert result["total_vehicles"] == 0
        assert result["summary"]["by_make"] == {}

    def test_empty_file(self, tmp_path, config):
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")
        result = ingest_inventory_data(path, now=NOW, config=config)
        assert result["success"] is True
        assert result["total_vehicles"] == 0

    def test_cp1252_file(self, write_inventory_csv, config):
        path = write_inventory_csv([make_vehicle_row(Trim="Café Edition")], encoding="cp1252")
        result = ingest_inventory_data(path, now=NOW, config=config)
        assert result["success"] is True
        assert result["data"][0]["trim"] == "Café Edition"

    def test_chunked_read(self, write_inventory_csv, config):
        rows = [make_vehicle_row(StockNumber=f"S{i}") for i in range(7)]
        loader = DataLoader(config=config.with_overrides(csv_chunk_size=2), now=NOW)
        result = loader.load_vehicles(write_inventory_csv(rows))
        assert [v.stock_number for v in result.records] == [f"S{i}" for i in range(7)]

    def test_missing_file(self, tmp_path, config):
        result = ingest_inventory_data(tmp_path / "nope.csv", now=NOW, config=config)
        assert result["success"] is False
        assert result["errorType"] == ErrorTypes.FILE_SYSTEM

    def test_invalid_arguments(self, config):
        result = ingest_inventory_data("", now=NOW, config=config)
        assert result["success"] is False
        assert result["errorType"] == ErrorTypes.VALIDATION


class TestFetchIncentives:

    def _payload(self):
        return [
            make_incentive(model="Civic"),
            make_incentive(model="Accord", start_date="2024-04-01", end_date="2024-05-01"),
            make_incentive(model="Pilot", start_date="2024-01-01", end_date="2024-02-01"),
        ]

    def test_array_payload_active_only(self, write_incentives_json, config):
        result = fetch_incentive_data(write_incentives_json(self._payload()), now=NOW, config=config)
        assert result["success"] is True
        assert result["total_incentives"] == 1
        assert result["data"][0]["status"] == "Active"
        assert result["fetch_date"] == NOW.isoformat()

    def test_object_payload(self, write_incentives_json, config):
        path = write_incentives_json({"incentives": self._payload()})
        result = fetch_incentive_data(path, filter_active_only=False, now=NOW, config=config)
        assert result["total_incentives"] == 2
        assert result["summary"]["by_status"] == {"Active": 1, "Upcoming": 1, "Expired": 0}

    def test_everything(self, write_incentives_json, config):
        path = write_incentives_json(self._payload())
        result = fetch_incentive_data(
            path, filter_active_only=False, include_expired=True, now=NOW, config=config
        )
        assert result["total_incentives"] == 3

    def test_unexpected_container(self, write_incentives_json, config):
        result = fetch_incentive_data(write_incentives_json({"foo": []}), now=NOW, config=config)
        assert result["success"] is False
        assert result["errorType"] == ErrorTypes.VALIDATION

    def test_invalid_json(self, tmp_path, config):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        result = fetch_incentive_data(path, now=NOW, config=config)
        assert result["success"] is False
        assert result["errorType"] == ErrorTypes.VALIDATION

    def test_bad_entries_skipped(self, write_incentives_json, config):
        payload = self._payload()[:1] + ["oops", make_incentive(value=-1), make_incentive(start_date="??")]
        result = fetch_incentive_data(write_incentives_json(payload), now=NOW, config=config)
        assert result["success"] is True
        assert result["total_incentives"] == 1
        assert result["skipped_rows"] == 3

    def test_missing_file(self, tmp_path, config):
        result = fetch_incentive_data(tmp_path / "missing.json", now=NOW, config=config)
        assert result["success"] is False
        assert result["errorType"] == ErrorTypes.FILE_SYSTEM

    def test_result_is_json_serializable(self, write_incentives_json, config):
        result = fetch_incentive_data(write_incentives_json(self._payload()), now=NOW, config=config)
        json.dumps(result)


class TestDefaultFiles:

    def test_load_default_files(self, write_inventory_csv, write_incentives_json, tmp_path):
        from promo_engine.config import Config

        write_inventory_csv([make_vehicle_row()], name="sample-inventory.csv")
        write_incentives_json([make_incentive()], name="sample-incentives.json")
        loader = DataLoader(config=Config(data_path=tmp_path), now=NOW)
        assert len(loader.load_default_inventory().records) == 1
        assert len(loader.load_default_incentives().records) == 1

    def test_default_clock_is_naive_utc(self, config):
        loader = DataLoader(config=config)
        expected = datetime.now(timezone.utc).replace(tzinfo=None)
        assert loader.now.tzinfo is None
        assert abs((expected - loader.now).total_seconds()) < 5
