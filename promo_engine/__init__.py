"""
PromoPilot Promotion Engine
===========================

Ingests dealership inventory and OEM incentive files, summarizes them, and
ranks vehicle lines for promotional focus.

Configuration:
- Edit settings.yaml in the project folder for easy configuration
- Or modify config.py / use Config.with_overrides() for programmatic control
"""

from .config import Config, default_config, config_from_yaml, reload_settings, print_current_settings
from .errors import AppError, ErrorTypes, ErrorSeverity, RecordError, format_error, get_error_description
from .records import Vehicle, Incentive, build_vehicle, build_incentive
from .aggregator import SummarySpec, SumField, aggregate, aggregate_by, top_n
from .summaries import calculate_inventory_summary, calculate_incentive_summary, filter_incentives
from .data_loader import DataLoader, ingest_inventory_data, fetch_incentive_data
from .recommendation_engine import RecommendationEngine
from .report_generator import ReportGenerator
from .agent_tools import TOOL_DEFINITIONS, dispatch_tool_call, build_analysis_prompt

__version__ = "1.0.0"
__all__ = [
    "Config",
    "default_config",
    "config_from_yaml",
    "reload_settings",
    "print_current_settings",
    "AppError",
    "ErrorTypes",
    "ErrorSeverity",
    "RecordError",
    "format_error",
    "get_error_description",
    "Vehicle",
    "Incentive",
    "build_vehicle",
    "build_incentive",
    "SummarySpec",
    "SumField",
    "aggregate",
    "aggregate_by",
    "top_n",
    "calculate_inventory_summary",
    "calculate_incentive_summary",
    "filter_incentives",
    "DataLoader",
    "ingest_inventory_data",
    "fetch_incentive_data",
    "RecommendationEngine",
    "ReportGenerator",
    "TOOL_DEFINITIONS",
    "dispatch_tool_call",
    "build_analysis_prompt",
]
