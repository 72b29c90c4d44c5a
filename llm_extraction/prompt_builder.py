"""Structured prompt builder for spreadsheet metric extraction."""

import json
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

_OUTPUT_SHAPE = json.dumps(
    {
        "metrics": [
            {
                "name": "Metric name",
                "unit": "Unit of measure",
                "data": [
                    {"region": "REGION_CODE", "year": 2023, "value": 42.5},
                ],
            }
        ]
    },
    indent=2,
)

_SYSTEM_TEMPLATE = """\
You are a data analyst. Your job is to turn the raw content of an Excel
workbook into structured records for a metrics database.

For every sheet of the workbook, identify:
- the metric name (look in the headers or the first rows),
- the unit of the metric (%, EUR, count, ...),
- the data points of the metric, each with:
  * the region (use ONLY the region codes listed below),
  * the year (as an integer),
  * the numeric value (as a number).

STRICT RULES:
- A single sheet may contain several distinct metrics. Emit one entry per metric.
- Region codes must match the provided codes exactly. Do NOT invent codes;
  skip data you cannot attach to a listed region.
- Years are integers (2022, not "2022").
- Values are numbers, not strings.
- Do NOT include any text outside the JSON object.
- Do NOT wrap the JSON in markdown code fences.

# AVAILABLE REGIONS

```json
{regions}
```

# OUTPUT SHAPE

Your response MUST be a JSON object with exactly this structure:

```json
{output_shape}
```

Return nothing but this JSON object.
"""

_USER_TEMPLATE = """\
Raw workbook data, by sheet:
{sheets}
"""


@dataclass(frozen=True)
class ExtractionPrompt:
    """System instructions plus the serialized workbook for one request."""

    system: str
    user: str


class ExtractionPromptBuilder:
    """Builds the extraction request from raw sheet rows and the region vocabulary.

    The full region vocabulary goes into the system instructions so the
    model can only answer with known codes.
    """

    def build(
        self,
        sheets: Mapping[str, Sequence[Mapping[str, Any]]],
        regions: Iterable[Any],
    ) -> ExtractionPrompt:
        """Build the prompt pair.

        Args:
            sheets: Sheet name -> ordered row records (header -> raw cell value).
            regions: Objects exposing ``code`` and ``name``.

        Returns:
            An ``ExtractionPrompt`` ready for the adapter.
        """
        vocabulary = [{"code": region.code, "name": region.name} for region in regions]
        system = _SYSTEM_TEMPLATE.format(
            regions=json.dumps(vocabulary, ensure_ascii=False),
            output_shape=_OUTPUT_SHAPE,
        )
        user = _USER_TEMPLATE.format(sheets=self._serialize_sheets(sheets))
        return ExtractionPrompt(system=system, user=user)

    def _serialize_sheets(self, sheets: Mapping[str, Sequence[Mapping[str, Any]]]) -> str:
        payload = {name: [dict(row) for row in rows] for name, rows in sheets.items()}
        # Dates and other non-JSON cell values are sent in their str() form.
        return json.dumps(payload, indent=2, ensure_ascii=False, default=str)
