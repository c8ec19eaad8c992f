# backend/tests/integration/conftest.py
"""
Integration fixtures: a file-backed SQLite database seeded with two cities'
worth of areas, vendors and the shared taxonomy.

A file (not :memory:) database is used because the search façade runs its
tier queries on worker threads, each with its own session.
"""

from contextlib import contextmanager
from types import SimpleNamespace
from typing import Any, Callable, Dict, Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from vendor_search.core.constants import APPROVAL_APPROVED, APPROVAL_PENDING
from vendor_search.database import Base
import vendor_search.models  # noqa: F401
from vendor_search.models import Area, City, TaxonomyEntry, Vendor

INDORE = {"id": "CITY_IDR", "name": "Indore", "latitude": 22.7196, "longitude": 75.8577}
DEWAS = {"id": "CITY_DWS", "name": "Dewas", "latitude": 22.9676, "longitude": 76.0534}
BHOPAL = {"id": "CITY_BPL", "name": "Bhopal", "latitude": 23.2599, "longitude": 77.4126}

AREAS = [
    ("AREA_VN", "Vijay Nagar", "CITY_IDR", "Indore", 22.7533, 75.8937),
    ("AREA_PAL", "Palasia", "CITY_IDR", "Indore", 22.7244, 75.8839),
    ("AREA_RAJ", "Rajwada", "CITY_IDR", "Indore", 22.7187, 75.8553),
    ("AREA_RAU", "Rau", "CITY_IDR", "Indore", 22.6350, 75.8110),
    ("AREA_CL", "Civil Lines", "CITY_DWS", "Dewas", 22.9660, 76.0550),
]


def _vendor(**kw: Any) -> Vendor:
    defaults: Dict[str, Any] = {
        "service_type": "photographer",
        "city": "Indore",
        "area": "Vijay Nagar",
        "latitude": 22.7533,
        "longitude": 75.8937,
        "rating": 4.0,
        "review_count": 10,
        "approval_status": APPROVAL_APPROVED,
    }
    defaults.update(kw)
    return Vendor(**defaults)


VENDORS = [
    dict(
        id="V_VN_LENS",
        name="Lens Craft Studio",
        latitude=22.7540,
        longitude=75.8940,
        price_min=8000,
        price_max=14000,
        rating=4.8,
        verified=True,
        attributes={"style": ["candid", "traditional"], "drone": True},
    ),
    dict(
        id="V_VN_CLICK",
        name="Click Moments",
        latitude=22.7525,
        longitude=75.8925,
        price_min=16000,
        price_max=25000,
        rating=4.2,
        attributes={"style": "candid"},
    ),
    dict(
        id="V_PAL",
        name="Palasia Pictures",
        area="Palasia",
        latitude=22.7244,
        longitude=75.8839,
        price_min=10000,
        price_max=15000,
        rating=4.5,
    ),
    dict(
        id="V_RAJ",
        name="Rajwada Frames",
        area="Rajwada",
        latitude=22.7187,
        longitude=75.8553,
        price_min=6000,
        price_max=9000,
        rating=3.9,
    ),
    dict(
        id="V_RAU_FILMS",
        name="Rau Wedding Films",
        service_type="videographer",
        area="Rau",
        latitude=22.6350,
        longitude=75.8110,
        price_min=16000,
        price_max=20000,
        rating=4.1,
    ),
    dict(
        id="V_VN_CATER",
        name="Annapurna",
        business_name="Annapurna Caterers",
        service_type="caterer",
        price_min=300,
        price_max=800,
        rating=4.6,
    ),
    dict(
        id="V_DEWAS",
        name="Dewas Photo House",
        city="Dewas",
        area="Civil Lines",
        latitude=22.9660,
        longitude=76.0550,
        price_min=7000,
        price_max=12000,
    ),
    dict(
        id="V_BHOPAL",
        name="Bhopal Lens",
        city="Bhopal",
        area="MP Nagar",
        latitude=23.2331,
        longitude=77.4343,
        price_min=9000,
        price_max=11000,
    ),
    dict(id="V_VN_PENDING", name="Pending Photos", approval_status=APPROVAL_PENDING),
    dict(id="V_VN_INACTIVE", name="Closed Photos", is_active=False),
]


@pytest.fixture
def search_engine(tmp_path):
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'vendor_search.db'}",
        future=True,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(search_engine) -> Callable[[], Any]:
    """Drop-in replacement for get_db_session bound to the test database."""
    TestSession = sessionmaker(bind=search_engine, expire_on_commit=False, future=True)

    @contextmanager
    def _session() -> Iterator[Session]:
        db = TestSession()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    return _session


@pytest.fixture
def seeded(session_factory, taxonomy_rows) -> SimpleNamespace:
    with session_factory() as db:
        db.add_all(City(state="Madhya Pradesh", **city) for city in (INDORE, DEWAS, BHOPAL))
        db.flush()
        db.add_all(
            Area(
                id=area_id,
                name=name,
                normalized_name=name.lower(),
                city_id=city_id,
                city_name=city_name,
                latitude=lat,
                longitude=lng,
            )
            for area_id, name, city_id, city_name, lat, lng in AREAS
        )
        db.add_all(TaxonomyEntry(**row) for row in taxonomy_rows)
        db.add_all(_vendor(**row) for row in VENDORS)
    return SimpleNamespace(session_factory=session_factory, cities=(INDORE, DEWAS, BHOPAL))
