"""
Agent Tool Registry
Function-calling definitions for the three pipeline steps, a dispatcher that
routes a tool call to its implementation, and the analysis prompt.
"""

import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Union

from .config import Config, default_config
from .data_loader import fetch_incentive_data, ingest_inventory_data
from .errors import AppError, ErrorSeverity, ErrorTypes
from .report_generator import ReportGenerator
from .response import wrap_failure

logger = logging.getLogger(__name__)

TOOL_DEFINITIONS = [
    {
        "type": "function",
        "function": {
            "name": "ingest_inventory_data",
            "description": (
                "Parse and analyze dealership inventory from CSV file. Returns structured "
                "inventory data with calculated metrics like days on lot and aging category."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "file_path": {
                        "type": "string",
                        "description": "Path to the inventory CSV file",
                    },
                    "calculate_metrics": {
                        "type": "boolean",
                        "description": "Whether to calculate days on lot, aging category and vehicle line",
                        "default": True,
                    },
                },
                "required": ["file_path"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "fetch_incentive_data",
            "description": (
                "Fetch and process OEM incentive data from file. Returns structured incentive "
                "information with values, status and eligibility criteria."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "source_path": {
                        "type": "string",
                        "description": "Path to the incentive data file (JSON format)",
                    },
                    "filter_active_only": {
                        "type": "boolean",
                        "description": "Whether to filter for only currently active incentives",
                        "default": True,
                    },
                    "include_expired": {
                        "type": "boolean",
                        "description": "Whether to include recently expired incentives for reference",
                        "default": False,
                    },
                },
                "required": ["source_path"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "generate_promotional_report",
            "description": (
                "Generate a structured promotional report with vehicle recommendations, "
                "rationales, and supporting data."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "recommendations": {
                        "type": "array",
                        "items": {"type": "object"},
                        "description": "Array of promotional recommendations with rankings and rationales",
                    },
                    "inventory_summary": {
                        "type": "object",
                        "description": "Summary of inventory data",
                    },
                    "incentive_summary": {
                        "type": "object",
                        "description": "Summary of incentive data",
                    },
                    "output_format": {
                        "type": "string",
                        "enum": ["json", "markdown", "xlsx"],
                        "description": "Output format for the report",
                        "default": "json",
                    },
                },
                "required": ["recommendations"],
            },
        },
    },
]

TOOL_NAMES = tuple(tool["function"]["name"] for tool in TOOL_DEFINITIONS)


def _tool_handlers(config: Config, now: datetime) -> Dict[str, Callable[[Mapping], Dict[str, Any]]]:
    # Missing arguments pass through as None and fail input validation.
    return {
        "ingest_inventory_data": lambda args: ingest_inventory_data(
            args.get("file_path"),
            calculate_metrics=args.get("calculate_metrics", True),
            now=now,
            config=config,
        ),
        "fetch_incentive_data": lambda args: fetch_incentive_data(
            args.get("source_path"),
            filter_active_only=args.get("filter_active_only", True),
            include_expired=args.get("include_expired", False),
            now=now,
            config=config,
        ),
        "generate_promotional_report": lambda args: ReportGenerator(config).generate_promotional_report(
            args.get("recommendations"),
            inventory_summary=args.get("inventory_summary"),
            incentive_summary=args.get("incentive_summary"),
            output_format=args.get("output_format", "json"),
            filename=args.get("filename"),
            now=now,
        ),
    }


def _parse_arguments(arguments: Union[str, Mapping, None]) -> Mapping:
    if arguments is None:
        return {}
    if isinstance(arguments, Mapping):
        return arguments
    try:
        parsed = json.loads(arguments)
    except (TypeError, json.JSONDecodeError) as e:
        raise AppError(
            f"Tool arguments are not valid JSON: {e}",
            ErrorTypes.VALIDATION,
            ErrorSeverity.MEDIUM
        ) from e
    if not isinstance(parsed, dict):
        raise AppError(
            "Tool arguments must be a JSON object",
            ErrorTypes.VALIDATION,
            ErrorSeverity.MEDIUM,
            {"received": type(parsed).__name__}
        )
    return parsed


def dispatch_tool_call(
    name: str,
    arguments: Union[str, Mapping, None] = None,
    config: Config = None,
    now: datetime = None
) -> Dict[str, Any]:
    """
    Run one tool call and return its envelope.

    Args:
        name: Tool name from TOOL_DEFINITIONS
        arguments: Dict of arguments, or the JSON string a model emits

    Returns:
        The tool's envelope; unknown tools and malformed arguments give a
        VALIDATION failure envelope
    """
    config = config or default_config
    handlers = _tool_handlers(config, now)

    if name not in handlers:
        logger.warning("Unknown tool requested: %s", name)
        return wrap_failure(AppError(
            f"Unknown tool: {name}",
            ErrorTypes.VALIDATION,
            ErrorSeverity.MEDIUM,
            {"available_tools": list(TOOL_NAMES)}
        ))

    try:
        args = _parse_arguments(arguments)
    except AppError as e:
        logger.warning("Rejected arguments for %s: %s", name, e)
        return wrap_failure(e)

    logger.info("Dispatching tool call: %s", name)
    return handlers[name](args)


def build_analysis_prompt(inventory_path=None, incentives_path=None, config: Config = None) -> str:
    """Render the user prompt that drives a full promotional analysis."""
    config = config or default_config
    inventory_path = inventory_path or config.inventory_path
    incentives_path = incentives_path or config.incentives_path

    return f"""Please analyze the current dealership situation and provide promotional recommendations:

1. First, ingest the inventory data from: {inventory_path}
2. Then, fetch the incentive data from: {incentives_path}
3. Analyze the data to identify the top {config.max_recommendations} vehicle lines for promotion
4. Generate a comprehensive report with your recommendations

Focus on:
- Vehicles with high aging ({config.aging_threshold_days}+ days)
- Strong incentive opportunities (${config.incentive_value_threshold:,.0f}+ value)
- Inventory levels and sales velocity
- Strategic business impact

Provide clear rationales for each recommendation explaining why these vehicles should be prioritized for promotion.
"""
