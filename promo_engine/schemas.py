"""Input/output shape validation for the pipeline entry points.

Inputs are validated (and defaulted) before a step runs; envelopes are
checked after it. Failures raise AppError(VALIDATION) with the individual
messages in ``details["errors"]``.
"""

from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
    model_validator,
)

from .errors import AppError, ErrorSeverity, ErrorTypes


def _clean_path(value: Union[str, Path]) -> str:
    text = str(value).strip()
    if not text:
        raise ValueError("File path must be a non-empty string")
    return text


# =============================================================================
# INPUTS
# =============================================================================

class InventoryIngestParams(BaseModel):
    """Arguments of ingest_inventory_data."""

    model_config = ConfigDict(extra="ignore")

    file_path: Union[StrictStr, Path]
    calculate_metrics: StrictBool = True

    @field_validator("file_path")
    @classmethod
    def check_file_path(cls, value):
        return _clean_path(value)


class IncentiveFetchParams(BaseModel):
    """Arguments of fetch_incentive_data."""

    model_config = ConfigDict(extra="ignore")

    source_path: Union[StrictStr, Path]
    filter_active_only: StrictBool = True
    include_expired: StrictBool = False

    @field_validator("source_path")
    @classmethod
    def check_source_path(cls, value):
        return _clean_path(value)


class ReportParams(BaseModel):
    """Arguments of generate_promotional_report."""

    model_config = ConfigDict(extra="ignore")

    recommendations: List[Dict[str, Any]]
    inventory_summary: Optional[Dict[str, Any]] = None
    incentive_summary: Optional[Dict[str, Any]] = None
    output_format: Literal["json", "markdown", "xlsx"] = "json"
    filename: Optional[StrictStr] = None


# =============================================================================
# OUTPUTS
# =============================================================================

class Envelope(BaseModel):
    """Common envelope shape: success or error, never both."""

    model_config = ConfigDict(extra="allow")

    success: StrictBool
    timestamp: StrictStr
    error: Optional[StrictStr] = None
    errorType: Optional[StrictStr] = None

    @model_validator(mode="after")
    def check_branch(self):
        if self.success and self.error is not None:
            raise ValueError("successful envelope must not carry an error")
        if not self.success and not self.error:
            raise ValueError("failed envelope must carry an error message")
        return self


class InventoryResponse(Envelope):
    data: Optional[List[Dict[str, Any]]] = None
    summary: Optional[Dict[str, Any]] = None
    total_vehicles: Optional[StrictInt] = None
    ingestion_date: Optional[StrictStr] = None

    @model_validator(mode="after")
    def check_payload(self):
        if self.success and (self.data is None or self.summary is None):
            raise ValueError("successful inventory envelope needs data and summary")
        return self


class IncentiveResponse(Envelope):
    data: Optional[List[Dict[str, Any]]] = None
    summary: Optional[Dict[str, Any]] = None
    total_incentives: Optional[StrictInt] = None
    fetch_date: Optional[StrictStr] = None

    @model_validator(mode="after")
    def check_payload(self):
        if self.success and (self.data is None or self.summary is None):
            raise ValueError("successful incentive envelope needs data and summary")
        return self


class ReportResponse(Envelope):
    report_data: Optional[Dict[str, Any]] = None
    file_path: Optional[StrictStr] = None
    format: Optional[Literal["json", "markdown", "xlsx"]] = None
    recommendations_count: Optional[StrictInt] = None

    @model_validator(mode="after")
    def check_payload(self):
        if self.success and (self.report_data is None or self.file_path is None):
            raise ValueError("successful report envelope needs report_data and file_path")
        return self


INPUT_SCHEMAS = {
    "inventory_ingestor": InventoryIngestParams,
    "incentive_fetcher": IncentiveFetchParams,
    "report_generator": ReportParams,
}

OUTPUT_SCHEMAS = {
    "inventory_ingestor": InventoryResponse,
    "incentive_fetcher": IncentiveResponse,
    "report_generator": ReportResponse,
}


def _error_messages(error: ValidationError) -> List[str]:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        messages.append(f"{location}: {item['msg']}" if location else item["msg"])
    return messages


def validate_input(schema_name: str, params: Any) -> Dict[str, Any]:
    """
    Validate tool arguments and apply defaults.

    Returns:
        Dict of validated arguments

    Raises:
        AppError: VALIDATION on unknown schema or invalid arguments
    """
    schema = INPUT_SCHEMAS.get(schema_name)
    if schema is None:
        raise AppError(f"Unknown input schema: {schema_name}", ErrorTypes.VALIDATION)
    if not isinstance(params, Mapping):
        raise AppError(
            "Input validation failed",
            ErrorTypes.VALIDATION,
            ErrorSeverity.MEDIUM,
            {"errors": [f"Input must be an object, got {type(params).__name__}"]}
        )
    try:
        return schema.model_validate(dict(params)).model_dump()
    except ValidationError as e:
        raise AppError(
            "Input validation failed",
            ErrorTypes.VALIDATION,
            ErrorSeverity.MEDIUM,
            {"errors": _error_messages(e)}
        ) from e


def validate_output(schema_name: str, envelope: Mapping[str, Any]) -> Mapping[str, Any]:
    """
    Check an envelope against its output schema.

    Returns:
        The envelope, unchanged

    Raises:
        AppError: VALIDATION (HIGH severity) when the shape is wrong
    """
    schema = OUTPUT_SCHEMAS.get(schema_name)
    if schema is None:
        raise AppError(f"Unknown output schema: {schema_name}", ErrorTypes.VALIDATION)
    try:
        schema.model_validate(dict(envelope))
    except ValidationError as e:
        raise AppError(
            "Output validation failed",
            ErrorTypes.VALIDATION,
            ErrorSeverity.HIGH,
            {"errors": _error_messages(e)}
        ) from e
    return envelope
