import json

import pytest

from llm_extraction.schema import ExtractionResult
from llm_extraction.validator import (
    UNKNOWN_METRIC_NAME,
    UNKNOWN_METRIC_UNIT,
    coerce_value,
    coerce_year,
    locate_json_object,
    parse_extraction_response,
    repair_extraction_payload,
)


def _payload() -> dict:
    return {
        "metrics": [
            {
                "name": "Population",
                "unit": "inhabitants",
                "data": [
                    {"region": "IDF", "year": 2020, "value": 12271794},
                    {"region": "ARA", "year": 2020, "value": 8078652.5},
                ],
            },
            {
                "name": "Unemployment rate",
                "unit": "%",
                "data": [{"region": "OCC", "year": 2021, "value": 9.6}],
            },
        ]
    }


def test_well_formed_response_passes_through_unchanged() -> None:
    expected = ExtractionResult.model_validate(_payload())

    result = parse_extraction_response(json.dumps(_payload()))

    assert result == expected
    assert result.data_points_count == 3


def test_unknown_keys_are_ignored_without_repair() -> None:
    data = _payload()
    data["confidence"] = 0.9
    data["metrics"][0]["source_sheet"] = "Feuil1"

    result = parse_extraction_response(json.dumps(data))

    assert result == ExtractionResult.model_validate(_payload())


def test_json_wrapped_in_prose_and_fences_is_located() -> None:
    raw = "Sure! Here is the data:\n```json\n" + json.dumps(_payload()) + "\n```\nAnything else?"

    result = parse_extraction_response(raw)

    assert [metric.name for metric in result.metrics] == ["Population", "Unemployment rate"]


def test_prose_with_empty_metrics_yields_empty_result() -> None:
    result = parse_extraction_response('Here you go: { "metrics": [] }')

    assert result.metrics == []


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "I could not find any metric in this workbook.",
        "{ not closed",
        "{metrics: [unquoted]}",
        "[1, 2, 3]",
        '{"metrics": "none"}',
        '{"rows": []}',
        "{" * 5000 + "}" * 5000,
    ],
)
def test_unusable_responses_degrade_to_empty_result(raw: str) -> None:
    result = parse_extraction_response(raw)

    assert result == ExtractionResult.empty()


def test_locate_json_object_spans_first_to_last_brace() -> None:
    assert locate_json_object('a {"x": {"y": 1}} b') == '{"x": {"y": 1}}'
    assert locate_json_object("no braces here") is None


def test_string_year_is_coerced_and_kept() -> None:
    raw = json.dumps(
        {"metrics": [{"name": "Density", "unit": "inh/km2", "data": [{"region": "IDF", "year": "2023", "value": 1021}]}]}
    )

    result = parse_extraction_response(raw)

    point = result.metrics[0].data[0]
    assert point.year == 2023
    assert point.value == 1021.0


def test_empty_or_missing_region_drops_only_that_entry() -> None:
    raw = json.dumps(
        {
            "metrics": [
                {
                    "name": "Density",
                    "unit": "inh/km2",
                    "data": [
                        {"region": "", "year": 2020, "value": 1.0},
                        {"year": 2020, "value": 2.0},
                        {"region": "OCC", "year": 2020, "value": 3.0},
                    ],
                }
            ]
        }
    )

    result = parse_extraction_response(raw)

    assert len(result.metrics) == 1
    assert [(point.region, point.value) for point in result.metrics[0].data] == [("OCC", 3.0)]


def test_malformed_value_is_coerced_to_zero_not_dropped() -> None:
    raw = json.dumps(
        {
            "metrics": [
                {
                    "name": "GDP",
                    "unit": "EUR",
                    "data": [
                        {"region": "IDF", "year": 2020, "value": 765.3},
                        {"region": "ARA", "year": 2020, "value": "N/A"},
                    ],
                }
            ]
        }
    )

    result = parse_extraction_response(raw)

    values = {point.region: point.value for point in result.metrics[0].data}
    assert values == {"IDF": 765.3, "ARA": 0.0}


def test_non_positive_or_unparsable_year_drops_entry() -> None:
    raw = json.dumps(
        {
            "metrics": [
                {
                    "name": "GDP",
                    "unit": "EUR",
                    "data": [
                        {"region": "IDF", "year": 0, "value": 1},
                        {"region": "IDF", "year": "-5", "value": 1},
                        {"region": "IDF", "year": "FY", "value": 1},
                        {"region": "IDF", "year": "2019 (est.)", "value": 1},
                    ],
                }
            ]
        }
    )

    result = parse_extraction_response(raw)

    assert [point.year for point in result.metrics[0].data] == [2019]


def test_metric_is_kept_when_every_entry_is_dropped() -> None:
    result = repair_extraction_payload(
        {"metrics": [{"name": "GDP", "unit": "EUR", "data": [{"region": "", "year": 2020, "value": 1}]}]}
    )

    assert len(result.metrics) == 1
    assert result.metrics[0].data == []


def test_missing_labels_fall_back_to_placeholders() -> None:
    result = repair_extraction_payload({"metrics": [{"name": None, "data": "oops"}, "not a metric"]})

    assert len(result.metrics) == 1
    metric = result.metrics[0]
    assert metric.name == UNKNOWN_METRIC_NAME
    assert metric.unit == UNKNOWN_METRIC_UNIT
    assert metric.data == []


def test_numeric_region_codes_are_stringified() -> None:
    result = repair_extraction_payload(
        {"metrics": [{"name": "GDP", "unit": "EUR", "data": [{"region": 75, "year": 2020.0, "value": "3.5%"}]}]}
    )

    point = result.metrics[0].data[0]
    assert (point.region, point.year, point.value) == ("75", 2020, 3.5)


def test_non_finite_values_are_repaired_to_zero() -> None:
    raw = '{"metrics": [{"name": "GDP", "unit": "EUR", "data": [{"region": "IDF", "year": 2020, "value": NaN}]}]}'

    result = parse_extraction_response(raw)

    assert result.metrics[0].data[0].value == 0.0


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(2021, 2021), (2021.9, 2021), ("2022", 2022), (" 2023abc", 2023), (True, 0), (None, 0), ("abc", 0)],
)
def test_coerce_year(raw, expected) -> None:
    assert coerce_year(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(4, 4.0), (2.5, 2.5), ("12.5", 12.5), ("1e3", 1000.0), ("N/A", 0.0), (False, 0.0), ([], 0.0), ("1e999", 0.0)],
)
def test_coerce_value(raw, expected) -> None:
    assert coerce_value(raw) == expected


def test_oversized_json_number_yields_empty_result() -> None:
    raw = '{"metrics": [{"name": "GDP", "unit": "EUR", "data": [{"region": "IDF", "year": 2020, "value": ' + "9" * 5000 + "}]}]}"

    assert parse_extraction_response(raw) == ExtractionResult.empty()


def test_oversized_string_year_drops_the_entry() -> None:
    payload = {
        "metrics": [
            {
                "name": "GDP",
                "unit": "EUR",
                "data": [
                    {"region": "IDF", "year": "9" * 5000, "value": 1},
                    {"region": "ARA", "year": 2020, "value": 2},
                ],
            }
        ]
    }

    result = parse_extraction_response(json.dumps(payload))

    assert [(p.region, p.year) for p in result.metrics[0].data] == [("ARA", 2020)]
    assert coerce_year("9" * 5000) == 0
