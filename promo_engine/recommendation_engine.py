"""
Recommendation Engine Module
Ranks vehicle lines for promotion by combining inventory aging with the
incentive money available on each line.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np

from .aggregator import top_n
from .config import Config, default_config
from .data_loader import fetch_incentive_data, ingest_inventory_data
from .records import utc_now

URGENCY_BY_AGING = {
    "Fresh": "LOW",
    "Aging": "MEDIUM",
    "Stale": "HIGH",
    "Critical": "CRITICAL",
}

# Score weights (aging pressure, inventory depth, incentive strength)
AGING_WEIGHT = 50
DEPTH_WEIGHT = 20
INCENTIVE_WEIGHT = 30


class RecommendationEngine:
    """Generate promotion recommendations from inventory and incentive summaries."""

    def __init__(self, config: Config = None):
        self.config = config or default_config

    # =========================================================================
    # SCORING
    # =========================================================================

    def calculate_priority_score(self, avg_days: float, unit_count: int, max_incentive: float) -> float:
        """
        Weighted promotion priority for one vehicle line.

        Formula:
        Score = 50 x clip(avg_days / aging_threshold, 0, 2)
              + 20 x clip(units / high_inventory_threshold, 0, 1)
              + 30 x clip(max_incentive / incentive_value_threshold, 0, 2)
        """
        aging = np.clip(avg_days / max(self.config.aging_threshold_days, 1), 0, 2)
        depth = np.clip(unit_count / max(self.config.high_inventory_threshold, 1), 0, 1)
        incentive = np.clip(max_incentive / max(self.config.incentive_value_threshold, 1), 0, 2)
        score = AGING_WEIGHT * aging + DEPTH_WEIGHT * depth + INCENTIVE_WEIGHT * incentive
        return round(float(score), 1)

    def _classify_urgency(self, avg_days: float) -> str:
        """Classify urgency from the aging bucket of the line's average age."""
        bucket = self.config.get_aging_category(avg_days)
        return URGENCY_BY_AGING.get(bucket, "CRITICAL")

    def _build_rationale(self, line: Dict[str, Any]) -> str:
        parts = [
            f"{line['inventory_count']} unit(s) averaging {line['avg_days_on_lot']} days on lot"
        ]
        if line["avg_days_on_lot"] >= self.config.aging_threshold_days:
            parts.append(f"past the {self.config.aging_threshold_days}-day aging threshold")
        if line["inventory_count"] >= self.config.high_inventory_threshold:
            parts.append("high inventory depth")
        if line["incentive_count"]:
            types = ", ".join(str(t) for t in line["incentive_types"]) or "unspecified"
            parts.append(
                f"{line['incentive_count']} incentive(s) worth up to "
                f"${line['max_incentive_value']:,.0f} ({types})"
            )
        else:
            parts.append("no matching OEM incentives")
        return "; ".join(parts)

    # =========================================================================
    # RANKING
    # =========================================================================

    def rank_vehicle_lines(
        self,
        inventory_summary: Dict[str, Any],
        incentive_summary: Optional[Dict[str, Any]] = None,
        max_recommendations: int = None
    ) -> List[Dict[str, Any]]:
        """
        Rank inventory vehicle lines for promotion.

        Lines without inventory are never recommended. Incentive rollups are
        joined on the vehicle-line key.

        Returns:
            Ranked list of recommendation dicts (rank starts at 1)
        """
        limit = max_recommendations or self.config.max_recommendations
        inventory_lines = (inventory_summary or {}).get("vehicle_lines", {})
        incentive_lines = (incentive_summary or {}).get("vehicle_lines", {})

        candidates = []
        for vehicle_line in sorted(inventory_lines):
            stats = inventory_lines[vehicle_line]
            if not stats.get("count"):
                continue
            incentives = incentive_lines.get(vehicle_line, {})
            line = {
                "vehicle_line": vehicle_line,
                "inventory_count": stats["count"],
                "avg_days_on_lot": stats.get("avg_days", 0),
                "total_msrp_value": stats.get("total_value", 0),
                "incentive_count": incentives.get("count", 0),
                "total_incentive_value": incentives.get("total_value", 0),
                "max_incentive_value": incentives.get("max_value", 0),
                "incentive_types": list(incentives.get("types", [])),
            }
            line["priority_score"] = self.calculate_priority_score(
                line["avg_days_on_lot"], line["inventory_count"], line["max_incentive_value"]
            )
            line["urgency"] = self._classify_urgency(line["avg_days_on_lot"])
            line["rationale"] = self._build_rationale(line)
            candidates.append(line)

        ranked = top_n(candidates, "priority_score", limit)
        for rank, line in enumerate(ranked, 1):
            line["rank"] = rank
        return ranked

    # =========================================================================
    # FULL PLAN
    # =========================================================================

    def generate_promotion_plan(
        self,
        inventory_path=None,
        incentives_path=None,
        filter_active_only: bool = True,
        include_expired: bool = False,
        max_recommendations: int = None,
        now: datetime = None
    ) -> Dict[str, Any]:
        """
        Ingest both data sources and rank vehicle lines.

        Returns dict with status ("ok" or "error"), parameters, inventory and
        incentive envelopes, and recommendations.
        """
        now = now or utc_now()
        inventory_path = inventory_path or self.config.inventory_path
        incentives_path = incentives_path or self.config.incentives_path

        inventory = ingest_inventory_data(inventory_path, now=now, config=self.config)
        if not inventory["success"]:
            return {"status": "error", "message": inventory["error"], "inventory": inventory}

        incentives = fetch_incentive_data(
            incentives_path,
            filter_active_only=filter_active_only,
            include_expired=include_expired,
            now=now,
            config=self.config,
        )
        if not incentives["success"]:
            return {"status": "error", "message": incentives["error"], "incentives": incentives}

        recommendations = self.rank_vehicle_lines(
            inventory["summary"], incentives["summary"], max_recommendations
        )

        return {
            "status": "ok",
            "generated_at": now.isoformat(),
            "parameters": {
                "inventory_path": str(inventory_path),
                "incentives_path": str(incentives_path),
                "filter_active_only": filter_active_only,
                "include_expired": include_expired,
                "max_recommendations": max_recommendations or self.config.max_recommendations,
            },
            "inventory": inventory,
            "incentives": incentives,
            "recommendations": recommendations,
        }
