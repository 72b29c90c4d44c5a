"""Validation and repair of raw extraction responses.

``parse_extraction_response`` is pure and never raises: a response that
cannot be parsed degrades to an empty result, and a response that parses
but violates the schema goes through a field-level repair pass.
"""

import json
import logging
import math
import re
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from llm_extraction.schema import ExtractedDataPoint, ExtractedMetric, ExtractionResult

logger = logging.getLogger(__name__)

UNKNOWN_METRIC_NAME = "Unknown metric"
UNKNOWN_METRIC_UNIT = "Unknown unit"

# Greedy: first "{" through last "}" so nested objects stay intact.
_JSON_OBJECT_SPAN = re.compile(r"\{[\s\S]*\}")
_LEADING_INT = re.compile(r"^[+-]?\d+")
_LEADING_FLOAT = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def locate_json_object(raw_response: str) -> Optional[str]:
    """Return the outermost ``{...}`` span of the response, if any.

    Models sometimes wrap the JSON in prose or markdown fences despite
    instructions; everything outside the span is discarded.
    """
    if not isinstance(raw_response, str):
        return None
    match = _JSON_OBJECT_SPAN.search(raw_response)
    return match.group(0) if match else None


def parse_extraction_response(raw_response: str) -> ExtractionResult:
    """Turn a raw model response into an ``ExtractionResult``.

    Steps:
        1. Locate the JSON object span; none found -> empty result.
        2. Parse it as JSON; failure -> empty result.
        3. Validate against the strict schema; success -> returned as-is.
        4. Otherwise run the field-level repair pass.

    Args:
        raw_response: Text returned by the completion endpoint.

    Returns:
        A (possibly empty) validated ``ExtractionResult``.
    """
    span = locate_json_object(raw_response)
    if span is None:
        logger.warning("No JSON object found in extraction response")
        return ExtractionResult.empty()

    try:
        payload = json.loads(span)
    except (ValueError, RecursionError) as exc:
        logger.warning("Extraction response is not valid JSON: %s", exc)
        return ExtractionResult.empty()

    try:
        result = ExtractionResult.model_validate(payload)
    except ValidationError as exc:
        logger.warning(
            "Extraction response failed schema validation (%d error(s)); repairing. First: %s",
            exc.error_count(),
            _describe_first_error(exc),
        )
        return repair_extraction_payload(payload)

    logger.info("Extraction response validated metrics=%d", len(result.metrics))
    return result


def repair_extraction_payload(payload: Any) -> ExtractionResult:
    """Salvage whatever is usable from a payload that failed validation.

    Rules:
        - ``metrics`` must be a list, otherwise nothing is salvageable.
        - Non-object metric or data entries are skipped.
        - ``name``/``unit`` fall back to placeholders when missing or
          not representable as text.
        - ``region`` is stringified, ``year`` coerced to int and ``value``
          to float; unusable year/value become 0.
        - A data entry is dropped only when its region is empty or its
          year is <= 0. A malformed value alone never drops an entry.
        - Metrics are kept even when every data entry was dropped.

    Args:
        payload: Parsed JSON of any shape.

    Returns:
        A validated ``ExtractionResult``.
    """
    raw_metrics = payload.get("metrics") if isinstance(payload, dict) else None
    if not isinstance(raw_metrics, list):
        return ExtractionResult.empty()

    metrics: List[ExtractedMetric] = []
    dropped = 0
    for raw_metric in raw_metrics:
        if not isinstance(raw_metric, dict):
            continue

        points, dropped_here = _repair_data_points(raw_metric.get("data"))
        dropped += dropped_here
        metrics.append(
            ExtractedMetric(
                name=_coerce_label(raw_metric.get("name"), UNKNOWN_METRIC_NAME),
                unit=_coerce_label(raw_metric.get("unit"), UNKNOWN_METRIC_UNIT),
                data=points,
            )
        )

    logger.info(
        "Repaired extraction response metrics=%d data_points=%d dropped_data_points=%d",
        len(metrics),
        sum(len(metric.data) for metric in metrics),
        dropped,
    )
    return ExtractionResult(metrics=metrics)


def _repair_data_points(raw_data: Any) -> "tuple[List[ExtractedDataPoint], int]":
    if not isinstance(raw_data, list):
        return [], 0

    points: List[ExtractedDataPoint] = []
    dropped = 0
    for entry in raw_data:
        if not isinstance(entry, dict):
            dropped += 1
            continue
        region = _coerce_label(entry.get("region"), "")
        year = coerce_year(entry.get("year"))
        if not region or year <= 0:
            dropped += 1
            continue
        points.append(
            ExtractedDataPoint(region=region, year=year, value=coerce_value(entry.get("value")))
        )
    return points, dropped


def _coerce_label(value: Any, default: str) -> str:
    """Stringify a scalar; empty, falsy or structured values give ``default``."""
    if value is None or value is False or isinstance(value, (dict, list)):
        return default
    if isinstance(value, str):
        return value or default
    if isinstance(value, int):
        return str(value) if value != 0 else default
    if isinstance(value, float):
        if value == 0 or not math.isfinite(value):
            return default
        return str(int(value)) if value.is_integer() else str(value)
    return default


def coerce_year(value: Any) -> int:
    """Coerce a year to int: numbers are floored, strings use their leading integer."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return math.floor(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        match = _LEADING_INT.match(value.strip())
        if not match:
            return 0
        try:
            return int(match.group(0))
        except ValueError:
            # Digit runs past the interpreter's int conversion limit.
            return 0
    return 0


def coerce_value(value: Any) -> float:
    """Coerce a value to a finite float: strings use their leading number, else 0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        raw: Any = value
    elif isinstance(value, str):
        match = _LEADING_FLOAT.match(value.strip())
        if not match:
            return 0.0
        raw = match.group(0)
    else:
        return 0.0
    try:
        number = float(raw)
    except (ValueError, OverflowError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _describe_first_error(exc: ValidationError) -> str:
    first: Dict[str, Any] = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}"
