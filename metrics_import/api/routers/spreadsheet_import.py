"""
metrics_import/api/routers/spreadsheet_import.py

Spreadsheet import HTTP endpoints.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.orm import Session

from db.session import get_db
from metrics_import.errors import SpreadsheetImportError
from metrics_import.schemas.spreadsheet_import import (
    ErrorResponse,
    ProcessSpreadsheetRequest,
    ProcessSpreadsheetResponse,
)
from metrics_import.services.spreadsheet_import_service import (
    SpreadsheetImportService,
    get_spreadsheet_import_service,
    parse_import_request,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["import"])


@router.options("/process-spreadsheet", include_in_schema=False)
def process_spreadsheet_preflight() -> PlainTextResponse:
    return PlainTextResponse("ok")


@router.post(
    "/process-spreadsheet",
    response_model=ProcessSpreadsheetResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
def process_spreadsheet(
    payload: ProcessSpreadsheetRequest,
    db: Session = Depends(get_db),
    import_service: SpreadsheetImportService = Depends(get_spreadsheet_import_service),
) -> ProcessSpreadsheetResponse | JSONResponse:
    """
    Extract metrics from one uploaded spreadsheet and commit them as drafts.
    """

    try:
        request = parse_import_request(payload.to_payload())
        outcome = import_service.process(db=db, request=request)
    except SpreadsheetImportError as exc:
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})
    except Exception as exc:  # noqa: BLE001
        logger.exception("Error processing spreadsheet")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(exc) or "Internal server error"},
        )

    return ProcessSpreadsheetResponse.model_validate(
        {"success": True, "data": outcome.report.to_payload()}
    )
