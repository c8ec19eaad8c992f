"""
Repository layer for the vendor search backend.

Repositories own all SQLAlchemy access; services receive plain models or
value objects and never build queries themselves.
"""

from .base_repository import BaseRepository, IRepository
from .geo_repository import AreaRepository, CityRepository, normalize_area_name
from .taxonomy_repository import TaxonomyRepository
from .vendor_repository import VendorPredicates, VendorRepository

__all__ = [
    "AreaRepository",
    "BaseRepository",
    "CityRepository",
    "IRepository",
    "TaxonomyRepository",
    "VendorPredicates",
    "VendorRepository",
    "normalize_area_name",
]
