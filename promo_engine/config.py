"""
Configuration for the PromoPilot promotion engine.

CONFIGURATION OPTIONS:
----------------------
1. EASY WAY (Recommended): Edit settings.yaml in the project folder
   - Human-readable YAML format
   - Just edit values and save

2. PROGRAMMATIC WAY: Modify the Config dataclass or use with_overrides()
   - For tests and automation
   - Full type safety with dataclasses

All paths, thresholds, and agent parameters are configurable via either method.
"""

import logging
from pathlib import Path
from dataclasses import dataclass, field, fields, replace
from typing import Dict, List, Optional, Tuple
import yaml

logger = logging.getLogger(__name__)

# =============================================================================
# DEFAULT PATHS
# =============================================================================

PROJECT_PATH = Path(__file__).resolve().parent.parent
DATA_PATH = PROJECT_PATH / "data"
OUTPUT_PATH = PROJECT_PATH / "output"
SETTINGS_FILE = PROJECT_PATH / "settings.yaml"

INCENTIVE_STATUSES = ("Active", "Upcoming", "Expired")

SYSTEM_INSTRUCTION = """You are PromoPilot AI, an expert automotive marketing analyst specializing in dealership inventory optimization and promotional strategy.

Your primary role is to analyze dealership inventory data and OEM incentive information to provide strategic marketing recommendations.

Key responsibilities:
1. Analyze vehicle inventory for aging, sales velocity, and market positioning
2. Evaluate OEM incentives and their strategic value
3. Identify the top vehicle lines that should be prioritized for promotion
4. Provide clear, actionable rationales for each recommendation
5. Consider business factors like profit margins, inventory turnover, and market demand

Output your recommendations in a structured format with:
- Vehicle line/model
- Priority ranking
- Key metrics (days on lot, inventory count, incentive value)
- Strategic rationale
- Recommended promotional approach"""


@dataclass
class Config:
    """Configuration settings for the promotion engine."""

    # =========================================================================
    # FILE PATHS
    # =========================================================================
    data_path: Path = DATA_PATH
    output_path: Path = OUTPUT_PATH

    # Data files (relative to data_path)
    inventory_file: str = "sample-inventory.csv"
    incentives_file: str = "sample-incentives.json"

    # =========================================================================
    # INGESTION
    # =========================================================================
    csv_chunk_size: int = 500         # Rows per streamed CSV chunk
    csv_encodings: List[str] = field(default_factory=lambda: [
        "utf-8-sig", "cp1252", "latin1"
    ])
    default_vehicle_status: str = "Available"
    default_vehicle_location: str = "Main Lot"
    default_customer_type: str = "All"
    default_region: str = "National"

    # =========================================================================
    # AGE BUCKETS FOR INVENTORY ANALYSIS (upper bound, inclusive)
    # =========================================================================
    aging_buckets: Dict[str, int] = field(default_factory=lambda: {
        "Fresh": 30,
        "Aging": 60,
        "Stale": 90,
    })
    overflow_bucket: str = "Critical"

    # =========================================================================
    # INCENTIVE THRESHOLDS
    # =========================================================================
    high_value_threshold: float = 2000   # Strictly greater-than
    expiring_soon_days: int = 30         # Active and days_remaining <= this

    # =========================================================================
    # BUSINESS RULES (promotion ranking)
    # =========================================================================
    aging_threshold_days: int = 45
    high_inventory_threshold: int = 20
    incentive_value_threshold: float = 1000
    max_recommendations: int = 3

    # =========================================================================
    # AGENT
    # =========================================================================
    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    max_tokens: int = 2000
    system_instruction: str = SYSTEM_INSTRUCTION

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    def get_full_path(self, relative_path: str) -> Path:
        """Get full path for a file relative to data_path."""
        return self.data_path / relative_path

    @property
    def inventory_path(self) -> Path:
        return self.get_full_path(self.inventory_file)

    @property
    def incentives_path(self) -> Path:
        return self.get_full_path(self.incentives_file)

    def get_aging_category(self, days_on_lot: int) -> str:
        """Classify days on lot into an aging bucket."""
        for bucket_name, max_days in self.aging_buckets.items():
            if days_on_lot <= max_days:
                return bucket_name
        return self.overflow_bucket

    @property
    def aging_categories(self) -> Tuple[str, ...]:
        return tuple(self.aging_buckets) + (self.overflow_bucket,)

    def with_overrides(self, **overrides) -> "Config":
        """Return a new config with the given fields replaced."""
        unknown = [name for name in overrides if not hasattr(self, name)]
        if unknown:
            raise ValueError(f"Unknown config fields: {', '.join(sorted(unknown))}")
        return replace(self, **overrides)


# =============================================================================
# SETTINGS LOADER
# =============================================================================

def load_settings_from_yaml(yaml_path: Path = None) -> dict:
    """
    Load settings from YAML file.

    Args:
        yaml_path: Path to settings.yaml (uses default if not provided)

    Returns:
        Dictionary of settings, or empty dict if file not found
    """
    yaml_path = Path(yaml_path) if yaml_path else SETTINGS_FILE
    if not yaml_path.exists():
        return {}

    try:
        with open(yaml_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Could not load settings from %s: %s", yaml_path, e)
        return {}


def _resolve_path(value, base_dir: Path) -> Path:
    """Relative paths in settings.yaml are relative to the file's folder."""
    path = Path(value)
    return path if path.is_absolute() else base_dir / path


def config_from_yaml(yaml_path: Path = None) -> "Config":
    """
    Create a Config object from settings.yaml.

    Missing sections and keys fall back to the dataclass defaults.

    Args:
        yaml_path: Path to settings.yaml (uses default if not provided)

    Returns:
        Config object with settings applied
    """
    settings = load_settings_from_yaml(yaml_path)

    if not settings:
        return Config()

    defaults = Config()
    base_dir = (Path(yaml_path) if yaml_path else SETTINGS_FILE).resolve().parent

    # Extract nested settings
    paths = settings.get('paths', {}) or {}
    files = settings.get('files', {}) or {}
    ingestion = settings.get('ingestion', {}) or {}
    aging_raw = settings.get('aging_buckets', {}) or {}
    incentives = settings.get('incentives', {}) or {}
    rules = settings.get('business_rules', {}) or {}
    agent = settings.get('agent', {}) or {}

    # Build aging buckets (order matters: ascending upper bounds)
    aging_buckets = {}
    for label, max_days in sorted(aging_raw.items(), key=lambda item: item[1]):
        aging_buckets[str(label)] = int(max_days)

    config = Config(
        # Paths
        data_path=_resolve_path(paths.get('data', defaults.data_path), base_dir),
        output_path=_resolve_path(paths.get('output', defaults.output_path), base_dir),

        # Files
        inventory_file=files.get('inventory', defaults.inventory_file),
        incentives_file=files.get('incentives', defaults.incentives_file),

        # Ingestion
        csv_chunk_size=ingestion.get('csv_chunk_size', defaults.csv_chunk_size),
        csv_encodings=ingestion.get('csv_encodings') or defaults.csv_encodings,
        default_vehicle_status=ingestion.get('default_status', defaults.default_vehicle_status),
        default_vehicle_location=ingestion.get('default_location', defaults.default_vehicle_location),
        default_customer_type=ingestion.get('default_customer_type', defaults.default_customer_type),
        default_region=ingestion.get('default_region', defaults.default_region),

        # Aging buckets
        aging_buckets=aging_buckets or defaults.aging_buckets,
        overflow_bucket=settings.get('overflow_bucket', defaults.overflow_bucket),

        # Incentives
        high_value_threshold=incentives.get('high_value_threshold', defaults.high_value_threshold),
        expiring_soon_days=incentives.get('expiring_soon_days', defaults.expiring_soon_days),

        # Business rules
        aging_threshold_days=rules.get('aging_threshold_days', defaults.aging_threshold_days),
        high_inventory_threshold=rules.get('high_inventory_threshold', defaults.high_inventory_threshold),
        incentive_value_threshold=rules.get('incentive_value_threshold', defaults.incentive_value_threshold),
        max_recommendations=rules.get('max_recommendations', defaults.max_recommendations),

        # Agent
        model=agent.get('model', defaults.model),
        temperature=agent.get('temperature', defaults.temperature),
        max_tokens=agent.get('max_tokens', defaults.max_tokens),
        system_instruction=agent.get('system_instruction') or defaults.system_instruction,
    )

    return config


# Create default configuration instance
# First try to load from settings.yaml, fall back to defaults
try:
    default_config = config_from_yaml()
except (TypeError, ValueError) as e:
    logger.warning("Invalid settings.yaml, using defaults: %s", e)
    default_config = Config()


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def print_current_settings(config: Optional[Config] = None):
    """Print current configuration settings for debugging."""
    config = config or default_config
    print("\n" + "="*60)
    print("CURRENT CONFIGURATION SETTINGS")
    print("="*60)
    print(f"\nData Path: {config.data_path}")
    print(f"Output Path: {config.output_path}")
    print(f"Inventory File: {config.inventory_file}")
    print(f"Incentives File: {config.incentives_file}")
    print("\nAging Buckets:")
    for label, max_days in config.aging_buckets.items():
        print(f"  - {label}: <= {max_days} days")
    print(f"  - {config.overflow_bucket}: beyond")
    print(f"\nHigh-Value Incentive: > ${config.high_value_threshold:,.0f}")
    print(f"Expiring Soon Window: {config.expiring_soon_days} days")
    print(f"\nAging Threshold: {config.aging_threshold_days} days")
    print(f"High Inventory Threshold: {config.high_inventory_threshold} units")
    print(f"Incentive Value Threshold: ${config.incentive_value_threshold:,.0f}")
    print(f"Max Recommendations: {config.max_recommendations}")
    print(f"\nAgent Model: {config.model} (temperature {config.temperature})")
    print("="*60 + "\n")


def reload_settings(yaml_path: Path = None):
    """Reload settings from YAML file into default_config.

    The existing object is updated in place so modules that imported
    default_config by name see the new values.
    """
    fresh = config_from_yaml(yaml_path)
    for f in fields(Config):
        setattr(default_config, f.name, getattr(fresh, f.name))
    return default_config
