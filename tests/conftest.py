"""Shared fixtures: a frozen clock, an isolated config, and file writers."""

import csv
import json
from datetime import datetime
from pathlib import Path

import pytest

from promo_engine.config import Config

NOW = datetime(2024, 3, 1, 12, 0, 0)

INVENTORY_COLUMNS = [
    "VIN", "Make", "Model", "Year", "Trim", "Color", "MSRP", "Invoice",
    "StockNumber", "DateReceived", "Status", "Location",
]


def make_vehicle_row(**overrides) -> dict:
    row = {
        "VIN": "1HGCV1F30PA000101",
        "Make": "Honda",
        "Model": "Civic",
        "Year": "2024",
        "Trim": "LX",
        "Color": "White",
        "MSRP": "26000",
        "Invoice": "24000",
        "StockNumber": "H1001",
        "DateReceived": "2024-02-20",
        "Status": "Available",
        "Location": "Main Lot",
    }
    row.update(overrides)
    return row


def make_incentive(**overrides) -> dict:
    raw = {
        "program_name": "Civic Spring Cash",
        "make": "Honda",
        "model": "Civic",
        "year": 2024,
        "type": "Cash Back",
        "value": 1500,
        "start_date": "2024-02-01",
        "end_date": "2024-03-31",
    }
    raw.update(overrides)
    return raw


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def config(tmp_path) -> Config:
    """Config isolated from the repository's data and output folders."""
    return Config(data_path=tmp_path / "data", output_path=tmp_path / "output")


@pytest.fixture
def write_inventory_csv(tmp_path):
    """Write rows to an inventory CSV and return its path."""

    def _write(rows, name="inventory.csv", columns=None, encoding="utf-8"):
        path = tmp_path / name
        fieldnames = columns or INVENTORY_COLUMNS
        with open(path, "w", newline="", encoding=encoding) as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
            writer.writeheader()
            for row in rows:
                writer.writerow(row)
        return path

    return _write


@pytest.fixture
def write_incentives_json(tmp_path):
    """Write a payload (list or object) as JSON and return its path."""

    def _write(payload, name="incentives.json"):
        path = tmp_path / name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write
