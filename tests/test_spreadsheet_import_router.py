"""
tests/test_spreadsheet_import_router.py

HTTP contract of the /process-spreadsheet trigger. The database session
and the import service are swapped through dependency overrides.
"""

from __future__ import annotations

import json
import uuid

import pytest
from fastapi.testclient import TestClient

from db.models import FileProcessingStatus
from db.session import get_db
from llm_extraction.adapter import MockLLMAdapter
from metrics_import.config import SpreadsheetImportSettings
from metrics_import.main import create_app
from metrics_import.services.spreadsheet_import_service import (
    SpreadsheetImportService,
    get_spreadsheet_import_service,
)

RESPONSE = json.dumps(
    {
        "metrics": [
            {
                "name": "Unemployment rate",
                "unit": "%",
                "data": [
                    {"region": "OCC", "year": 2022, "value": 9.1},
                    {"region": "OCC", "year": 2023, "value": 8.7},
                ],
            }
        ]
    }
)


@pytest.fixture()
def client(db_session, storage):
    app = create_app()
    service = SpreadsheetImportService(
        settings=SpreadsheetImportSettings(),
        storage=storage,
        llm_adapter=MockLLMAdapter(response=RESPONSE),
    )
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_spreadsheet_import_service] = lambda: service
    return TestClient(app)


def _body(file_record) -> dict:
    return {"fileId": str(file_record.id), "filePath": file_record.path, "fileName": file_record.filename}


def test_successful_import_returns_committed_metrics(client, db_session, regions, file_record, storage, make_workbook) -> None:
    storage.objects[file_record.path] = make_workbook(
        {"Chômage": [["Région", "2022", "2023"], ["OCC", 9.1, 8.7]]}
    )

    response = client.post("/process-spreadsheet", json=_body(file_record))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    (metric,) = body["data"]["metrics"]
    assert uuid.UUID(metric["id"])
    assert metric["name"] == "Unemployment rate"
    assert metric["data"] == [
        {"region": "OCC", "year": 2022, "value": 9.1},
        {"region": "OCC", "year": 2023, "value": 8.7},
    ]
    db_session.expire_all()
    assert db_session.get(type(file_record), file_record.id).processing_status == FileProcessingStatus.COMPLETED


@pytest.mark.parametrize(
    "body",
    [{}, {"fileId": str(uuid.uuid4())}, {"filePath": "uploads/a.xlsx"}, {"fileId": "", "filePath": ""}],
)
def test_missing_identifiers_return_400(client, body) -> None:
    response = client.post("/process-spreadsheet", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "File ID and path are required"}


def test_invalid_uuid_returns_400(client) -> None:
    response = client.post("/process-spreadsheet", json={"fileId": "42", "filePath": "uploads/a.xlsx"})

    assert response.status_code == 400
    assert "UUID" in response.json()["error"]


def test_malformed_body_returns_400(client) -> None:
    response = client.post(
        "/process-spreadsheet",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert "error" in response.json()


def test_unsupported_file_returns_400(client, file_record) -> None:
    body = {"fileId": str(file_record.id), "filePath": "uploads/report.pdf", "fileName": "report.pdf"}

    response = client.post("/process-spreadsheet", json=body)

    assert response.status_code == 400
    assert "Unsupported file type" in response.json()["error"]


def test_corrupt_upload_returns_500(client, db_session, regions, file_record, storage) -> None:
    storage.objects[file_record.path] = b"garbage"

    response = client.post("/process-spreadsheet", json=_body(file_record))

    assert response.status_code == 500
    assert response.json()["error"]
    db_session.expire_all()
    stored = db_session.get(type(file_record), file_record.id)
    assert stored.processing_status == FileProcessingStatus.ERROR


def test_preflight_answers_ok(client) -> None:
    response = client.options("/process-spreadsheet")

    assert response.status_code == 200
    assert response.text == "ok"


def test_cors_preflight_allows_client_headers(client) -> None:
    response = client.options(
        "/process-spreadsheet",
        headers={
            "Origin": "https://dashboard.example.org",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization, x-client-info, apikey, content-type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_cors_headers_on_post(client) -> None:
    response = client.post(
        "/process-spreadsheet",
        json={},
        headers={"Origin": "https://dashboard.example.org"},
    )

    assert response.headers["access-control-allow-origin"] == "*"


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
