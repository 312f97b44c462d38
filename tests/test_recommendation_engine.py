"""Tests for vehicle-line ranking."""

from datetime import timedelta

import pytest

from conftest import NOW, make_incentive, make_vehicle_row
from promo_engine.config import Config
from promo_engine.recommendation_engine import RecommendationEngine


def _inventory_summary(lines):
    return {"vehicle_lines": lines}


class TestScoring:

    def setup_method(self):
        self.engine = RecommendationEngine(Config())

    def test_priority_score_components(self):
        # aging 45/45 -> 1.0, depth 10/20 -> 0.5, incentive 1000/1000 -> 1.0
        assert self.engine.calculate_priority_score(45, 10, 1000) == 90.0

    def test_priority_score_is_capped(self):
        assert self.engine.calculate_priority_score(1000, 1000, 100000) == 180.0
        assert self.engine.calculate_priority_score(0, 0, 0) == 0.0

    @pytest.mark.parametrize("days,expected", [(10, "LOW"), (45, "MEDIUM"), (75, "HIGH"), (120, "CRITICAL")])
    def test_urgency(self, days, expected):
        assert self.engine._classify_urgency(days) == expected


class TestRankVehicleLines:

    def setup_method(self):
        self.engine = RecommendationEngine(Config(max_recommendations=2))

    def test_ranks_by_score_and_joins_incentives(self):
        inventory = _inventory_summary({
            "2024 Honda Civic": {"count": 2, "avg_days": 53, "total_value": 52000},
            "2024 Honda Accord": {"count": 1, "avg_days": 10, "total_value": 30000},
            "2024 Ford F-150": {"count": 4, "avg_days": 95, "total_value": 200000},
        })
        incentives = {"vehicle_lines": {
            "2024 Honda Accord": {"count": 1, "total_value": 300, "max_value": 300, "types": ["Cash Back"]},
        }}
        ranked = self.engine.rank_vehicle_lines(inventory, incentives)

        assert [r["vehicle_line"] for r in ranked] == ["2024 Ford F-150", "2024 Honda Civic"]
        assert [r["rank"] for r in ranked] == [1, 2]
        assert ranked[0]["urgency"] == "CRITICAL"
        assert ranked[0]["incentive_count"] == 0
        assert "no matching OEM incentives" in ranked[0]["rationale"]

    def test_incentive_fields_joined(self):
        inventory = _inventory_summary({"2024 Honda Accord": {"count": 1, "avg_days": 10, "total_value": 30000}})
        incentives = {"vehicle_lines": {
            "2024 Honda Accord": {"count": 2, "total_value": 3500, "max_value": 2500, "types": ["Cash Back", "Lease"]},
        }}
        line = self.engine.rank_vehicle_lines(inventory, incentives)[0]
        assert line["incentive_count"] == 2
        assert line["max_incentive_value"] == 2500
        assert line["incentive_types"] == ["Cash Back", "Lease"]
        assert "$2,500" in line["rationale"]

    def test_incentive_only_lines_are_not_recommended(self):
        incentives = {"vehicle_lines": {"2024 Kia Soul": {"count": 1, "total_value": 9000, "max_value": 9000, "types": []}}}
        assert self.engine.rank_vehicle_lines(_inventory_summary({}), incentives) == []

    def test_explicit_limit(self):
        inventory = _inventory_summary({
            f"2024 Make Model{i}": {"count": 1, "avg_days": i * 10, "total_value": 0} for i in range(5)
        })
        assert len(self.engine.rank_vehicle_lines(inventory, max_recommendations=4)) == 4


class TestPromotionPlan:

    def test_end_to_end(self, write_inventory_csv, write_incentives_json, config):
        received = (NOW - timedelta(days=80)).strftime("%Y-%m-%d")
        inventory_path = write_inventory_csv([
            make_vehicle_row(),
            make_vehicle_row(Model="Pilot", DateReceived=received),
            make_vehicle_row(Model="Pilot", DateReceived=received),
        ])
        incentives_path = write_incentives_json([make_incentive(model="Pilot", value=2500)])

        plan = RecommendationEngine(config).generate_promotion_plan(inventory_path, incentives_path, now=NOW)
        assert plan["status"] == "ok"
        assert plan["recommendations"][0]["vehicle_line"] == "2024 Honda Pilot"
        assert plan["recommendations"][0]["max_incentive_value"] == 2500
        assert plan["parameters"]["max_recommendations"] == 3

    def test_inventory_failure(self, tmp_path, config):
        plan = RecommendationEngine(config).generate_promotion_plan(
            tmp_path / "missing.csv", tmp_path / "missing.json", now=NOW
        )
        assert plan["status"] == "error"
        assert plan["inventory"]["success"] is False
