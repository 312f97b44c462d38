"""
Report Generator Module
Builds the promotional recommendations report and writes it as JSON,
Markdown, or an Excel workbook with one tab per section.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from .aggregator import top_n
from .config import Config, default_config
from .errors import AppError, ErrorSeverity, ErrorTypes
from .records import utc_now
from .response import handle_error, wrap_success
from .schemas import validate_input, validate_output

logger = logging.getLogger(__name__)

REPORT_VERSION = "1.0"
FILE_EXTENSIONS = {"json": "json", "markdown": "md", "xlsx": "xlsx"}
NEXT_STEPS = [
    "Implement promotional campaigns for recommended vehicle lines",
    "Monitor sales performance and adjust strategies",
    "Schedule follow-up analysis in 2 weeks",
]


class ReportGenerator:
    """Generate promotional reports from recommendations and summaries."""

    def __init__(self, config: Config = None):
        self.config = config or default_config
        self.output_path = Path(self.config.output_path)

    # =========================================================================
    # REPORT CONTENT
    # =========================================================================

    def build_report_data(
        self,
        recommendations: List[Dict[str, Any]],
        inventory_summary: Optional[Dict[str, Any]] = None,
        incentive_summary: Optional[Dict[str, Any]] = None,
        now: datetime = None
    ) -> Dict[str, Any]:
        """Assemble the report dictionary (no I/O)."""
        now = now or utc_now()
        ranked = [
            {**rec, "rank": index, "priority": "HIGH" if index == 1 else "MEDIUM"}
            for index, rec in enumerate(recommendations, 1)
        ]

        top_aging_lines = []
        if inventory_summary:
            top_aging_lines = top_n(
                inventory_summary.get("vehicle_lines", {}), "avg_days", 5, name_key="vehicle_line"
            )

        return {
            "report_metadata": {
                "generated_at": now.isoformat(),
                "report_type": "promotional_recommendations",
                "version": REPORT_VERSION,
                "agent": "PromoPilot AI",
            },
            "executive_summary": {
                "overview": (
                    f"PromoPilot AI has identified {len(recommendations)} priority "
                    f"vehicle lines for promotional focus."
                ),
                "top_priority": recommendations[0].get("vehicle_line", "N/A") if recommendations else "N/A",
                "urgency_level": "HIGH" if len(recommendations) >= 3 else "MEDIUM",
                "top_aging_lines": top_aging_lines,
            },
            "recommendations": ranked,
            "supporting_data": {
                "inventory_summary": inventory_summary,
                "incentive_summary": incentive_summary,
            },
            "next_steps": list(NEXT_STEPS),
        }

    # =========================================================================
    # FORMATTERS
    # =========================================================================

    @staticmethod
    def format_json(report_data: Dict[str, Any]) -> str:
        return json.dumps(report_data, indent=2, default=str)

    @staticmethod
    def format_markdown(report_data: Dict[str, Any]) -> str:
        """Render the report as Markdown."""
        meta = report_data["report_metadata"]
        summary = report_data["executive_summary"]
        lines = [
            "# Promotional Recommendations Report",
            "",
            f"_Generated {meta['generated_at']} by {meta['agent']} (v{meta['version']})_",
            "",
            "## Executive Summary",
            "",
            summary["overview"],
            "",
            f"- **Top priority:** {summary['top_priority']}",
            f"- **Urgency level:** {summary['urgency_level']}",
            "",
            "## Recommendations",
            "",
        ]

        recs = report_data["recommendations"]
        if not recs:
            lines.append("No recommendations generated.")
        for rec in recs:
            lines.append(f"### {rec['rank']}. {rec.get('vehicle_line', 'N/A')} ({rec['priority']})")
            lines.append("")
            if "inventory_count" in rec:
                lines.append(f"- Units in stock: {rec['inventory_count']}")
            if "avg_days_on_lot" in rec:
                lines.append(f"- Average days on lot: {rec['avg_days_on_lot']}")
            if rec.get("max_incentive_value"):
                lines.append(f"- Best incentive: ${rec['max_incentive_value']:,.0f}")
            if rec.get("rationale"):
                lines.append(f"- Rationale: {rec['rationale']}")
            lines.append("")

        inventory = report_data["supporting_data"].get("inventory_summary")
        if inventory:
            lines.extend([
                "## Inventory Snapshot",
                "",
                f"- Total vehicles: {inventory.get('total_vehicles', 0)}",
                f"- Average days on lot: {inventory.get('average_days_on_lot', 0)}",
                f"- Total MSRP value: ${inventory.get('total_msrp_value', 0):,.0f}",
                "",
            ])

        incentives = report_data["supporting_data"].get("incentive_summary")
        if incentives:
            lines.extend([
                "## Incentive Snapshot",
                "",
                f"- Total incentives: {incentives.get('total_incentives', 0)}",
                f"- Average value: ${incentives.get('average_value', 0):,.0f}",
                f"- High-value programs: {len(incentives.get('high_value_incentives', []))}",
                f"- Expiring soon: {len(incentives.get('expiring_soon', []))}",
                "",
            ])

        lines.extend(["## Next Steps", ""])
        lines.extend(f"- {step}" for step in report_data["next_steps"])
        return "\n".join(lines) + "\n"

    # =========================================================================
    # EXCEL TABS
    # =========================================================================

    def _write_summary_tab(self, writer: pd.ExcelWriter, report_data: Dict):
        """Write Executive Summary tab."""
        meta = report_data["report_metadata"]
        summary = report_data["executive_summary"]
        rows = [
            ["PROMOTIONAL RECOMMENDATIONS REPORT", ""],
            ["Generated", meta["generated_at"]],
            ["", ""],
            ["Overview", summary["overview"]],
            ["Top Priority", summary["top_priority"]],
            ["Urgency Level", summary["urgency_level"]],
        ]

        inventory = report_data["supporting_data"].get("inventory_summary") or {}
        if inventory:
            rows.append(["", ""])
            rows.append(["INVENTORY", ""])
            rows.append(["Total Vehicles", inventory.get("total_vehicles", 0)])
            rows.append(["Average Days on Lot", inventory.get("average_days_on_lot", 0)])
            rows.append(["Total MSRP Value", f"${inventory.get('total_msrp_value', 0):,.0f}"])
            for category, count in inventory.get("by_aging", {}).items():
                rows.append([f"  {category}", count])

        incentives = report_data["supporting_data"].get("incentive_summary") or {}
        if incentives:
            rows.append(["", ""])
            rows.append(["INCENTIVES", ""])
            rows.append(["Total Incentives", incentives.get("total_incentives", 0)])
            rows.append(["Average Value", f"${incentives.get('average_value', 0):,.0f}"])
            rows.append(["Total Value", f"${incentives.get('total_value', 0):,.0f}"])

        df = pd.DataFrame(rows, columns=["Item", "Value"])
        df.to_excel(writer, sheet_name="Summary", index=False)

    def _write_recommendations_tab(self, writer: pd.ExcelWriter, report_data: Dict):
        """Write Recommendations tab."""
        recs = report_data["recommendations"]
        if not recs:
            df = pd.DataFrame([["No recommendations generated"]], columns=["Message"])
            df.to_excel(writer, sheet_name="Recommendations", index=False)
            return

        df = pd.DataFrame(recs)
        if "incentive_types" in df.columns:
            df["incentive_types"] = df["incentive_types"].apply(
                lambda types: ", ".join(str(t) for t in types) if isinstance(types, list) else types
            )

        columns = [
            "rank", "priority", "vehicle_line", "urgency", "priority_score",
            "inventory_count", "avg_days_on_lot", "total_msrp_value",
            "incentive_count", "max_incentive_value", "total_incentive_value",
            "incentive_types", "rationale"
        ]
        columns = [c for c in columns if c in df.columns]
        df = df[columns].rename(columns=lambda c: c.replace("_", " ").title())
        df.to_excel(writer, sheet_name="Recommendations", index=False)

    def _write_lines_tab(self, writer: pd.ExcelWriter, lines: Dict[str, Dict], sheet_name: str):
        """Write a vehicle-line rollup tab."""
        if not lines:
            df = pd.DataFrame([["No data"]], columns=["Message"])
        else:
            df = pd.DataFrame.from_dict(lines, orient="index")
            df.index.name = "Vehicle Line"
            df = df.reset_index()
            if "types" in df.columns:
                df["types"] = df["types"].apply(lambda types: ", ".join(str(t) for t in types))
            df = df.rename(columns=lambda c: c.replace("_", " ").title())
        df.to_excel(writer, sheet_name=sheet_name, index=False)

    def _write_next_steps_tab(self, writer: pd.ExcelWriter, report_data: Dict):
        df = pd.DataFrame({"Next Steps": report_data["next_steps"]})
        df.to_excel(writer, sheet_name="Next Steps", index=False)

    def write_excel(self, report_data: Dict[str, Any], output_file: Path) -> None:
        """Write the report as an Excel workbook."""
        supporting = report_data["supporting_data"]
        with pd.ExcelWriter(output_file, engine="openpyxl") as writer:
            self._write_summary_tab(writer, report_data)
            self._write_recommendations_tab(writer, report_data)
            self._write_lines_tab(
                writer, (supporting.get("inventory_summary") or {}).get("vehicle_lines", {}), "Inventory Lines"
            )
            self._write_lines_tab(
                writer, (supporting.get("incentive_summary") or {}).get("vehicle_lines", {}), "Incentive Lines"
            )
            self._write_next_steps_tab(writer, report_data)

    # =========================================================================
    # ENTRY POINT
    # =========================================================================

    def generate_promotional_report(
        self,
        recommendations: List[Dict[str, Any]],
        inventory_summary: Optional[Dict[str, Any]] = None,
        incentive_summary: Optional[Dict[str, Any]] = None,
        output_format: str = "json",
        filename: str = None,
        now: datetime = None
    ) -> Dict[str, Any]:
        """
        Build and save the promotional report.

        Args:
            recommendations: Ranked recommendations (agent or engine output)
            inventory_summary: Inventory summary to attach as supporting data
            incentive_summary: Incentive summary to attach as supporting data
            output_format: "json", "markdown" or "xlsx"
            filename: Optional output filename (auto-generated if not provided)

        Returns:
            Envelope with report_data, formatted_report (text formats),
            file_path, format and recommendations_count
        """
        try:
            params = validate_input("report_generator", {
                "recommendations": recommendations,
                "inventory_summary": inventory_summary,
                "incentive_summary": incentive_summary,
                "output_format": output_format,
                "filename": filename,
            })
            output_format = params["output_format"]
            now = now or utc_now()
            logger.info("Generating promotional report in %s format", output_format)

            report_data = self.build_report_data(
                params["recommendations"],
                params["inventory_summary"],
                params["incentive_summary"],
                now=now,
            )

            if not params["filename"]:
                date_str = now.strftime("%Y%m%d_%H%M%S")
                filename = f"promotional_report_{date_str}.{FILE_EXTENSIONS[output_format]}"
            else:
                filename = params["filename"]
            output_file = self.output_path / filename

            formatted_report = None
            try:
                self.output_path.mkdir(parents=True, exist_ok=True)
                if output_format == "xlsx":
                    self.write_excel(report_data, output_file)
                else:
                    if output_format == "markdown":
                        formatted_report = self.format_markdown(report_data)
                    else:
                        formatted_report = self.format_json(report_data)
                    output_file.write_text(formatted_report, encoding="utf-8")
            except OSError as e:
                raise AppError(
                    f"Could not write report: {e}",
                    ErrorTypes.FILE_SYSTEM,
                    ErrorSeverity.HIGH,
                    {"file_path": str(output_file)}
                ) from e

            logger.info("Report saved to: %s", output_file)
            fields = {
                "report_data": report_data,
                "file_path": str(output_file),
                "format": output_format,
                "recommendations_count": len(recommendations),
            }
            if formatted_report is not None:
                fields["formatted_report"] = formatted_report
            return validate_output("report_generator", wrap_success(**fields))

        except Exception as e:
            return handle_error(e, "Report generation", logger)
