"""One-shot extraction request against a completion adapter.

No retry and no timeout policy is applied here: a failed completion is
surfaced as ``ExtractionRequestError`` and callers decide what to do.
"""

import logging
import time
from typing import Any, Iterable, Mapping, Optional, Sequence

from llm_extraction.adapter import BaseLLMAdapter
from llm_extraction.prompt_builder import ExtractionPromptBuilder

logger = logging.getLogger(__name__)

EMPTY_EXTRACTION_RESPONSE = '{"metrics": []}'


class ExtractionRequestError(Exception):
    """Raised when the completion could not be obtained.

    Attributes:
        cause: The underlying adapter exception.
    """

    def __init__(self, message: str, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(message)


class ExtractionRequester:
    """Builds the extraction prompt and obtains one textual completion."""

    def __init__(
        self,
        adapter: BaseLLMAdapter,
        prompt_builder: Optional[ExtractionPromptBuilder] = None,
    ) -> None:
        self._adapter = adapter
        self._prompt_builder = prompt_builder or ExtractionPromptBuilder()

    def request(
        self,
        sheets: Mapping[str, Sequence[Mapping[str, Any]]],
        regions: Iterable[Any],
    ) -> str:
        """Return the raw completion text for the given workbook.

        A workbook without any row is answered locally with an empty
        extraction; the model is not called.

        Raises:
            ExtractionRequestError: If the adapter call fails.
        """
        row_count = sum(len(rows) for rows in sheets.values())
        if row_count == 0:
            logger.info("Workbook has no rows; skipping extraction request")
            return EMPTY_EXTRACTION_RESPONSE

        prompt = self._prompt_builder.build(sheets, regions)
        logger.info(
            "Requesting extraction sheets=%d rows=%d prompt_chars=%d",
            len(sheets),
            row_count,
            len(prompt.system) + len(prompt.user),
        )

        started = time.monotonic()
        try:
            raw = self._adapter.complete(prompt.system, prompt.user)
        except Exception as exc:  # noqa: BLE001
            logger.error("Extraction request failed: %s", exc)
            raise ExtractionRequestError(f"Model completion failed: {exc}", exc) from exc

        logger.info(
            "Extraction response received chars=%d elapsed_seconds=%.2f",
            len(raw or ""),
            time.monotonic() - started,
        )
        return raw or ""
