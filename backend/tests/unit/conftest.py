# backend/tests/unit/conftest.py
"""
Fixtures for the repository tests.

One in-memory SQLite schema is built per session; each test gets a session
whose writes are rolled back afterwards. `indore_geo` and `add_vendor` seed
the Indore/Dewas rows most repository tests query against.
"""

from typing import Any, Callable, Dict, Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from vendor_search.core.constants import APPROVAL_APPROVED
from vendor_search.database import Base
from vendor_search.models import Area, City, Vendor


@pytest.fixture(scope="session")
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def unit_db(sqlite_engine: Engine) -> Iterator[Session]:
    """Session inside an outer transaction that is rolled back after the test."""
    connection = sqlite_engine.connect()
    transaction = connection.begin()
    session = Session(bind=connection, join_transaction_mode="create_savepoint")
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


def _area(area_id: str, name: str, city: City, latitude: float, longitude: float) -> Area:
    return Area(
        id=area_id,
        name=name,
        normalized_name=name.lower(),
        city_id=city.id,
        city_name=city.name,
        latitude=latitude,
        longitude=longitude,
    )


@pytest.fixture
def indore_geo(unit_db: Session) -> Dict[str, City]:
    """Indore with three areas, Dewas with one, and an inactive city next to Indore."""
    indore = City(id="CITY_IDR", name="Indore", state="MP", latitude=22.7196, longitude=75.8577)
    dewas = City(id="CITY_DWS", name="Dewas", state="MP", latitude=22.9676, longitude=76.0534)
    closed = City(
        id="CITY_OLD", name="Oldtown", latitude=22.7200, longitude=75.8580, is_active=False
    )
    unit_db.add_all([indore, dewas, closed])
    unit_db.flush()

    unit_db.add_all(
        [
            _area("AREA_VN", "Vijay Nagar", indore, 22.7533, 75.8937),
            _area("AREA_VNS", "Vijay Nagar Scheme 54", indore, 22.7560, 75.8960),
            _area("AREA_NP", "New Palasia", indore, 22.7244, 75.8839),
            _area("AREA_CL", "Civil Lines", dewas, 22.9660, 76.0550),
        ]
    )
    unit_db.flush()
    return {"indore": indore, "dewas": dewas}


@pytest.fixture
def add_vendor(unit_db: Session) -> Callable[..., Vendor]:
    """Add an approved Vijay Nagar photographer; keyword arguments override columns."""

    def _add(**kw: Any) -> Vendor:
        values: Dict[str, Any] = {
            "id": "V01",
            "name": "Lens Craft Studio",
            "service_type": "photographer",
            "city": "Indore",
            "area": "Vijay Nagar",
            "latitude": 22.7533,
            "longitude": 75.8937,
            "rating": 4.0,
            "review_count": 0,
            "approval_status": APPROVAL_APPROVED,
        }
        values.update(kw)
        vendor = Vendor(**values)
        unit_db.add(vendor)
        return vendor

    return _add
