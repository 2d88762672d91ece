"""Integration tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def export_rows():
    """Rows as they appear in the bookings export"""
    return [
        {
            "S no": 1,
            "Slot Date": "15/04/2024",
            "Slot Time": "07:00 PM",
            "Location": "Court A",
            "Sport": "Badminton",
            "Status": "Confirmed",
            "Source": "Online",
            "Customer ID": "C1",
            "Customer Name": "Asha",
            "Phone": "98765 43210",
            "Cash": "₹500",
            "Total Paid": "₹500",
            "Number of slots": 1,
        },
        {
            "S no": 2,
            "Slot Date": "25/05/2024",
            "Slot Time": "10:00 AM",
            "Location": "Court B",
            "Sport": "Football",
            "Status": "Cancelled",
            "Source": "Offline",
            "Customer ID": "C2",
            "Phone": "9123456780",
            "UPI": 300,
            "Bank Transfer": 200,
            "Total Paid": 500,
            "Number of slots": 2,
        },
        {
            "S no": 3,
            "Slot Date": "10/01/2025",
            "Slot Time": "08:30 PM",
            "Location": "Court A",
            "Sport": "Badminton",
            "Status": "Confirmed",
            "Source": "Online",
            "Customer ID": "C1",
            "Phone": "9876543210",
            "Hudle App": "1,000",
            "Total Paid": "1000",
            "Number of slots": 2,
        },
    ]


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "booking_stats_cache_evictions_total" in response.text


def test_summary_endpoint(client: TestClient, export_rows):
    response = client.post("/v1/stats/summary", json={"records": export_rows, "scope": "2024-25"})

    assert response.status_code == 200
    data = response.json()
    assert data["scope"] == "2024-25"
    stats = data["stats"]
    assert stats["total_bookings"] == 3
    assert stats["total_collection"] == 2000.0
    assert stats["unique_customers"] == 2
    assert stats["payments"]["hudle_amount"] == 1000.0
    assert [m["key"] for m in stats["monthly"]] == ["April 2024", "May 2024", "January 2024"]
    assert "X-Request-ID" in response.headers


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_summary_endpoint_empty_records(client: TestClient):
    """No bookings yields zeroed statistics, not an error"""
    response = client.post("/v1/stats/summary", json={"records": []})

    assert response.status_code == 200
    assert response.json()["stats"]["total_bookings"] == 0


def test_summary_endpoint_applies_filters(client: TestClient, export_rows):
    response = client.post("/v1/stats/summary", json={"records": export_rows, "filters": {"location": "court a"}})

    assert response.status_code == 200
    assert response.json()["stats"]["total_bookings"] == 2


def test_summary_endpoint_unknown_filter(client: TestClient, export_rows):
    response = client.post("/v1/stats/summary", json={"records": export_rows, "filters": {"weather": "sunny"}})

    assert response.status_code == 400


def test_category_endpoint(client: TestClient, export_rows):
    response = client.post("/v1/stats/category/status/Confirmed", json={"records": export_rows})

    assert response.status_code == 200
    data = response.json()
    assert data["category"] == "status"
    assert data["key"] == "Confirmed"
    assert data["stats"]["total_bookings"] == 2
    assert data["stats"]["extra_stats"]["Top Customer"]["phone"] == "98765 43210"


def test_category_endpoint_unknown_category(client: TestClient, export_rows):
    response = client.post("/v1/stats/category/weather/sunny", json={"records": export_rows})

    assert response.status_code == 400


def test_categories_endpoint(client: TestClient):
    response = client.get("/v1/stats/categories")

    assert response.status_code == 200
    views = {c["name"]: c for c in response.json()}
    assert views["status"]["extra_stats"] == ["Top Location", "Top Customer"]
    assert views["months"]["category"] == "Month"


def test_groups_endpoint_month_order(client: TestClient, export_rows):
    response = client.post("/v1/groups/month", json={"records": export_rows})

    assert response.status_code == 200
    data = response.json()
    assert data["dimension"] == "month"
    assert data["dropped"] == 0
    assert [g["key"] for g in data["groups"]] == ["April 2024", "May 2024", "January 2024"]


def test_groups_endpoint_payment_explodes(client: TestClient, export_rows):
    rows = export_rows + [{"S no": 4, "Slot Date": "16/04/2024", "Cash": 200, "Hudle Wallet": 100, "Total Paid": 300}]

    response = client.post("/v1/groups/payment", json={"records": rows})

    counts = {g["key"]: g["count"] for g in response.json()["groups"]}
    assert counts == {"cash": 2, "bank": 1, "hudle": 2}


def test_groups_endpoint_unknown_dimension(client: TestClient, export_rows):
    response = client.post("/v1/groups/weather", json={"records": export_rows})

    assert response.status_code == 400


def test_monthly_payments_endpoint(client: TestClient, export_rows):
    response = client.post("/v1/payments/monthly", json={"records": export_rows})

    assert response.status_code == 200
    months = response.json()
    assert len(months) == 12
    assert months[0]["month"] == "April"
    assert months[0]["cash_amount"] == 500.0
    assert months[-1]["month"] == "March"
    assert months[-1]["total_amount"] == 0.0


def test_daily_payments_endpoint(client: TestClient, export_rows):
    response = client.post("/v1/payments/daily/202425", json={"records": export_rows})

    assert response.status_code == 200
    days = response.json()["days"]
    assert list(days.keys()) == ["15/04/2024", "25/05/2024", "10/01/2025"]
    assert days["25/05/2024"] == {"cash": 0.0, "bank": 500.0, "hudle": 0.0, "total": 500.0}


def test_daily_payments_endpoint_invalid_year(client: TestClient, export_rows):
    response = client.post("/v1/payments/daily/someday", json={"records": export_rows})

    assert response.status_code == 400


def test_payment_methods_endpoint(client: TestClient, export_rows):
    response = client.post("/v1/payments/methods", json={"records": export_rows})

    assert response.status_code == 200
    assert response.json()["UPI"] == 300.0
    assert response.json()["Hudle App"] == 1000.0


def test_cache_clear_endpoints(client: TestClient, export_rows):
    client.post("/v1/stats/summary", json={"records": export_rows, "scope": "2024-25"})
    client.post("/v1/stats/summary", json={"records": export_rows, "scope": "2023-24"})

    response = client.delete("/v1/cache/2024-25")
    assert response.status_code == 200
    assert response.json() == {"scope": "2024-25", "entries_removed": 1}

    response = client.delete("/v1/cache")
    assert response.status_code == 200
