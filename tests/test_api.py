from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import api.main as api_main
from api.main import app

INBOX = (
    "You spent $50.00 at Amazon on 2025-08-16\n"
    "Your OTP is 123456\n"
    "You spent $12.50 at Joe's Cafe on 2025-08-20\n"
)


@pytest.fixture
def client(tmp_path, monkeypatch) -> TestClient:
    monkeypatch.setattr(api_main, "REPORTS_DIR", tmp_path / "api_reports")
    return TestClient(app)


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_patterns_lists_builtins(client: TestClient) -> None:
    patterns = client.get("/patterns").json()["patterns"]

    assert [p["name"] for p in patterns] == ["you_spent", "bank_upi", "upi_app", "upi_app_short"]
    assert patterns[0]["enabled"] is True
    assert patterns[1]["enabled"] is False


def test_extract_match(client: TestClient) -> None:
    response = client.post("/extract", json={"text": "You spent $50.00 at Amazon on 2025-08-16"})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "match"
    assert body["record"]["amount"] == "50.00"
    assert body["record"]["merchant"] == "Amazon"
    assert body["record"]["date"] == "2025-08-16"
    assert body["record"]["category"] == "Shopping"


def test_extract_no_match(client: TestClient) -> None:
    body = client.post("/extract", json={"text": "Your OTP is 123456"}).json()

    assert body["status"] == "no_match"
    assert body["record"] is None


def test_extract_with_extra_patterns(client: TestClient) -> None:
    response = client.post(
        "/extract",
        json={
            "text": "You paid ₹200 to Swiggy using UPI. - Google Pay",
            "received_on": "2025-07-24",
            "patterns": ["you_spent", "upi_app"],
        },
    )

    record = response.json()["record"]
    assert record["merchant"] == "Swiggy"
    assert record["date"] == "2025-07-24"
    assert record["bank"] == "GPAY"
    assert record["amount_display"] == "-200.00"


def test_extract_unknown_pattern(client: TestClient) -> None:
    response = client.post("/extract", json={"text": "x", "patterns": ["nope"]})

    assert response.status_code == 400
    assert "Unknown pattern" in response.json()["detail"]


def test_extract_batch_counts(client: TestClient) -> None:
    response = client.post(
        "/extract/batch",
        json={"messages": [{"text": line} for line in INBOX.splitlines()]},
    )

    body = response.json()
    assert body["total"] == 3
    assert body["counts"] == {"match": 2, "no_match": 1, "fault": 0}
    assert body["results"][2]["record"]["merchant"] == "Joe's Cafe"


def test_process_report_lifecycle(client: TestClient) -> None:
    response = client.post(
        "/process",
        files=[("files", ("inbox.txt", INBOX.encode("utf-8"), "text/plain"))],
        data={"report_format": "json", "keywords": "amazon"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["summary"]["matched"] == 2
    assert body["summary"]["after_filters"] == 1

    filename = body["report"]["filename"]
    assert filename.endswith(".json")

    listing = client.get("/reports").json()
    assert [r["filename"] for r in listing["reports"]] == [filename]

    download = client.get(body["report"]["download_url"])
    assert download.status_code == 200
    assert download.json()["transactions"][0]["merchant"] == "Amazon"

    assert client.delete(f"/reports/{filename}").status_code == 200
    assert client.get(f"/reports/{filename}").status_code == 404


def test_process_rejects_unknown_format(client: TestClient) -> None:
    response = client.post(
        "/process",
        files=[("files", ("inbox.txt", INBOX.encode("utf-8"), "text/plain"))],
        data={"report_format": "xlsx"},
    )

    assert response.status_code == 400


def test_process_rejects_bad_file_type(client: TestClient) -> None:
    response = client.post(
        "/process",
        files=[("files", ("statement.pdf", b"%PDF-1.4", "application/pdf"))],
    )

    assert response.status_code == 400
    assert "Invalid file type" in response.json()["detail"]


def test_process_rejects_half_month_range(client: TestClient) -> None:
    response = client.post(
        "/process",
        files=[("files", ("inbox.txt", INBOX.encode("utf-8"), "text/plain"))],
        data={"report_format": "json", "start_month": "2025-08"},
    )

    assert response.status_code == 400
    assert "together" in response.json()["detail"]


def test_missing_report_is_404(client: TestClient) -> None:
    assert client.get("/reports/report_missing.pdf").status_code == 404
