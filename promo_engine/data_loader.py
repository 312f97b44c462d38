"""
Data Loader Module
Loads dealership inventory (CSV) and OEM incentive (JSON) files into
normalized records, and exposes the two pipeline entry points that wrap the
results in response envelopes.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import pandas as pd

from .config import Config, default_config
from .errors import AppError, ErrorSeverity, ErrorTypes, RecordError
from .records import Incentive, build_incentive, build_vehicle, calculate_days_on_lot, utc_now
from .response import handle_error, wrap_success
from .schemas import validate_input, validate_output
from .summaries import calculate_incentive_summary, calculate_inventory_summary, filter_incentives

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Records built from one file plus the rows that were skipped."""
    records: List[Any] = field(default_factory=list)
    skipped: List[Dict[str, Any]] = field(default_factory=list)
    future_dated: int = 0


class DataLoader:
    """Load and normalize inventory and incentive files."""

    def __init__(self, config: Config = None, now: datetime = None):
        self.config = config or default_config
        self.now = now or utc_now()

    @staticmethod
    def _require_file(file_path: Path, label: str) -> Path:
        path = Path(file_path)
        if not path.is_file():
            raise AppError(
                f"{label} not found: {path}",
                ErrorTypes.FILE_SYSTEM,
                ErrorSeverity.HIGH,
                {"file_path": str(path)}
            )
        return path

    # =========================================================================
    # INVENTORY DATA
    # =========================================================================

    def _iter_csv_rows(self, path: Path, encoding: str) -> Iterator[Tuple[int, Dict[str, Any]]]:
        """Yield (line number, row) pairs, reading the file in chunks."""
        line_number = 1  # header
        try:
            reader = pd.read_csv(
                path,
                dtype=str,
                keep_default_na=False,
                chunksize=self.config.csv_chunk_size,
                encoding=encoding,
            )
        except pd.errors.EmptyDataError:
            return

        with reader:
            for chunk in reader:
                for row in chunk.to_dict(orient="records"):
                    line_number += 1
                    yield line_number, row

    def load_vehicles(self, file_path: Path, calculate_metrics: bool = True) -> LoadResult:
        """
        Stream an inventory CSV into Vehicle records.

        Rows that fail to normalize are skipped and logged. Encodings from
        config are tried in order; a decode failure restarts the read.

        Raises:
            AppError: FILE_SYSTEM when the file is missing or cannot be parsed
        """
        path = self._require_file(file_path, "Inventory file")

        for encoding in self.config.csv_encodings:
            result = LoadResult()
            try:
                for line_number, row in self._iter_csv_rows(path, encoding):
                    try:
                        vehicle = build_vehicle(row, self.now, calculate_metrics, self.config)
                    except RecordError as e:
                        logger.warning("Skipping inventory row %d: %s", line_number, e)
                        result.skipped.append({"row": line_number, "reason": str(e)})
                        continue

                    if calculate_days_on_lot(vehicle.date_received, self.now) < 0:
                        logger.warning(
                            "Inventory row %d has a future date received (%s)",
                            line_number, vehicle.date_received.date().isoformat()
                        )
                        result.future_dated += 1
                    result.records.append(vehicle)
                return result
            except UnicodeDecodeError:
                logger.debug("Could not decode %s as %s, trying next encoding", path, encoding)
                continue
            except (pd.errors.ParserError, OSError) as e:
                raise AppError(
                    f"Failed to parse CSV: {e}",
                    ErrorTypes.FILE_SYSTEM,
                    ErrorSeverity.HIGH,
                    {"file_path": str(path)}
                ) from e

        raise AppError(
            f"Could not read inventory file with any encoding: {path}",
            ErrorTypes.FILE_SYSTEM,
            ErrorSeverity.HIGH,
            {"file_path": str(path), "encodings": list(self.config.csv_encodings)}
        )

    # =========================================================================
    # INCENTIVE DATA
    # =========================================================================

    @staticmethod
    def _extract_incentive_list(payload: Any) -> List[Any]:
        """Accept a top-level array or an object with an ``incentives`` array."""
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict) and isinstance(payload.get("incentives"), list):
            return payload["incentives"]
        raise AppError(
            "Invalid incentive data format. Expected array or object with incentives property.",
            ErrorTypes.VALIDATION,
            ErrorSeverity.HIGH,
            {"received": type(payload).__name__}
        )

    def load_incentives(self, source_path: Path) -> LoadResult:
        """
        Read an incentive JSON file into Incentive records.

        A malformed container fails the whole load; individual malformed
        entries are skipped and logged.

        Raises:
            AppError: FILE_SYSTEM for missing/unreadable files, VALIDATION for
                invalid JSON or an unexpected container shape
        """
        path = self._require_file(source_path, "Incentive file")

        try:
            with open(path, "r", encoding="utf-8-sig") as f:
                payload = json.load(f)
        except json.JSONDecodeError as e:
            raise AppError(
                f"Invalid JSON in incentive file: {e}",
                ErrorTypes.VALIDATION,
                ErrorSeverity.HIGH,
                {"file_path": str(path)}
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            raise AppError(
                f"Could not read incentive file: {e}",
                ErrorTypes.FILE_SYSTEM,
                ErrorSeverity.HIGH,
                {"file_path": str(path)}
            ) from e

        result = LoadResult()
        for index, raw in enumerate(self._extract_incentive_list(payload)):
            try:
                result.records.append(build_incentive(raw, self.now, self.config))
            except RecordError as e:
                logger.warning("Skipping incentive %d: %s", index, e)
                result.skipped.append({"index": index, "reason": str(e)})
        return result

    # =========================================================================
    # DEFAULT FILES
    # =========================================================================

    def load_default_inventory(self, calculate_metrics: bool = True) -> LoadResult:
        """Load the inventory file named in config."""
        return self.load_vehicles(self.config.inventory_path, calculate_metrics)

    def load_default_incentives(self) -> LoadResult:
        """Load the incentives file named in config."""
        return self.load_incentives(self.config.incentives_path)


# =============================================================================
# PIPELINE ENTRY POINTS
# =============================================================================

def _summarize(builder, records, config: Config, label: str) -> Dict[str, Any]:
    try:
        return builder(records, config)
    except (TypeError, ValueError, KeyError, ArithmeticError) as e:
        raise AppError(
            f"Failed to summarize {label}: {e}",
            ErrorTypes.PROCESSING,
            ErrorSeverity.HIGH
        ) from e


def ingest_inventory_data(
    file_path,
    calculate_metrics: bool = True,
    now: Optional[datetime] = None,
    config: Config = None
) -> Dict[str, Any]:
    """
    Parse a dealership inventory CSV and summarize it.

    Returns:
        Envelope with data (vehicle dicts), summary, total_vehicles,
        skipped_rows, future_dated_rows and ingestion_date; or a failure
        envelope
    """
    try:
        params = validate_input("inventory_ingestor", {
            "file_path": file_path,
            "calculate_metrics": calculate_metrics,
        })
        logger.info("Ingesting inventory data from: %s", params["file_path"])

        loader = DataLoader(config=config, now=now)
        result = loader.load_vehicles(params["file_path"], params["calculate_metrics"])
        summary = _summarize(calculate_inventory_summary, result.records, loader.config, "inventory")

        logger.info(
            "Successfully ingested %d vehicles (%d rows skipped)",
            len(result.records), len(result.skipped)
        )
        response = wrap_success(
            data=[vehicle.to_dict() for vehicle in result.records],
            summary=summary,
            total_vehicles=len(result.records),
            skipped_rows=len(result.skipped),
            future_dated_rows=result.future_dated,
            ingestion_date=loader.now.isoformat(),
        )
        return validate_output("inventory_ingestor", response)

    except Exception as e:
        return handle_error(e, "Inventory ingestion", logger)


def fetch_incentive_data(
    source_path,
    filter_active_only: bool = True,
    include_expired: bool = False,
    now: Optional[datetime] = None,
    config: Config = None
) -> Dict[str, Any]:
    """
    Read OEM incentives, filter them by status and summarize them.

    Returns:
        Envelope with data (incentive dicts), summary, total_incentives,
        skipped_rows and fetch_date; or a failure envelope
    """
    try:
        params = validate_input("incentive_fetcher", {
            "source_path": source_path,
            "filter_active_only": filter_active_only,
            "include_expired": include_expired,
        })
        logger.info("Fetching incentive data from: %s", params["source_path"])

        loader = DataLoader(config=config, now=now)
        result = loader.load_incentives(params["source_path"])
        incentives: List[Incentive] = filter_incentives(
            result.records,
            filter_active_only=params["filter_active_only"],
            include_expired=params["include_expired"],
        )
        summary = _summarize(calculate_incentive_summary, incentives, loader.config, "incentives")

        logger.info("Successfully processed %d incentives", len(incentives))
        response = wrap_success(
            data=[incentive.to_dict() for incentive in incentives],
            summary=summary,
            total_incentives=len(incentives),
            skipped_rows=len(result.skipped),
            fetch_date=loader.now.isoformat(),
        )
        return validate_output("incentive_fetcher", response)

    except Exception as e:
        return handle_error(e, "Incentive fetch", logger)
