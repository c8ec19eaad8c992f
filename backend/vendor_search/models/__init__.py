"""
Database models for the vendor search backend.

- Geo store: City, Area
- Vendor read model
- Service taxonomy tree
"""

from .geo import Area, City
from .taxonomy import TaxonomyEntry
from .vendor import Vendor

__all__ = ["Area", "City", "TaxonomyEntry", "Vendor"]
