"""Pytest fixtures for testing"""

import pytest
from fastapi.testclient import TestClient

from booking_stats.api.dependencies import get_stats_engine
from booking_stats.api.main import create_app
from booking_stats.domain.models import BookingRecord
from booking_stats.domain.stats import StatsEngine
from booking_stats.infrastructure.cache import ResultCache


@pytest.fixture
def engine() -> StatsEngine:
    """Engine with its own empty cache"""
    return StatsEngine(cache=ResultCache(max_entries=20))


@pytest.fixture
def client(engine: StatsEngine) -> TestClient:
    """Create FastAPI test client with an isolated stats engine"""
    app = create_app()
    app.dependency_overrides[get_stats_engine] = lambda: engine
    return TestClient(app)


@pytest.fixture
def sample_records() -> list[BookingRecord]:
    """Small season of bookings across two venues, Apr 2024 - Jan 2025"""
    return [
        BookingRecord(
            s_no=1,
            slot_date="15/04/2024",
            slot_time="07:00 PM",
            location="Court A",
            sport="Badminton",
            status="Confirmed",
            source="Online",
            customer_id="C1",
            customer_name="Asha",
            phone="98765 43210",
            booking_reference="HUD123",
            cash=500.0,
            total_paid=500.0,
            number_of_slots=1,
        ),
        BookingRecord(
            s_no=2,
            slot_date="25/05/2024",
            slot_time="10:00 AM",
            location="Court B",
            sport="Football",
            status="Cancelled",
            source="Offline",
            customer_id="C2",
            customer_name="Ravi",
            phone="9123456780",
            booking_reference="HUD456",
            upi=300.0,
            bank_transfer=200.0,
            total_paid=500.0,
            balance=100.0,
            number_of_slots=2,
        ),
        BookingRecord(
            s_no=3,
            slot_date="10/01/2025",
            slot_time="08:30 PM",
            location="Court A",
            sport="Badminton",
            status="Confirmed",
            source="online",
            customer_id="C1",
            customer_name="Asha",
            phone="9876543210",
            booking_reference="HUD789",
            hudle_app=1000.0,
            total_paid=1000.0,
            number_of_slots=2,
        ),
        BookingRecord(
            s_no=4,
            slot_date="16/04/2024",
            location="Court A",
            sport="Badminton",
            status="Partially Cancelled",
            source="Online",
            customer_name="Walk-in",
            cash=200.0,
            hudle_wallet=100.0,
            total_paid=300.0,
            number_of_slots=1,
        ),
    ]
