"""Structured output contract for spreadsheet metric extraction."""

from pydantic import BaseModel, ConfigDict, Field

# Unknown keys returned by the model are ignored, never rejected.
_CONFIG = ConfigDict(frozen=True, extra="ignore")


class ExtractedDataPoint(BaseModel):
    """One value of a metric for one region and one year."""

    model_config = _CONFIG

    region: str = Field(strict=True)
    year: int = Field(strict=True)
    value: float = Field(strict=True, allow_inf_nan=False)


class ExtractedMetric(BaseModel):
    """A named, unit-bearing series extracted from one or more sheets."""

    model_config = _CONFIG

    name: str = Field(strict=True)
    unit: str = Field(strict=True)
    data: list[ExtractedDataPoint]


class ExtractionResult(BaseModel):
    """Full candidate output of one extraction request."""

    model_config = _CONFIG

    metrics: list[ExtractedMetric]

    @classmethod
    def empty(cls) -> "ExtractionResult":
        return cls(metrics=[])

    @property
    def data_points_count(self) -> int:
        return sum(len(metric.data) for metric in self.metrics)
