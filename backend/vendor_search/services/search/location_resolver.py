# backend/vendor_search/services/search/location_resolver.py
"""
Location resolver for vendor search.

Turns a heterogeneous location input into one canonical coordinate plus the
area/city identity behind it. First success wins:

1) Direct coordinates (annotated with the nearest known area and city)
2) Area id
3) City + area name (area miss degrades to the city centroid)
4) City only
5) Otherwise LocationRequired

Lookups are deterministic reads, so a miss is terminal for its path and is
never retried or substituted with a different city.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from vendor_search.core.exceptions import (
    AreaNotFoundException,
    CityNotFoundException,
    LocationRequiredException,
)
from vendor_search.models.geo import Area, City
from vendor_search.repositories.geo_repository import AreaRepository, CityRepository
from vendor_search.services.search.config import SearchConfig, get_search_config
from vendor_search.services.search.geo import GeoPoint, is_valid_coordinate
from vendor_search.services.search.types import (
    AreaRef,
    CityRef,
    LocationSource,
    LocationSpec,
    ResolvedLocation,
)

logger = logging.getLogger(__name__)


class LocationResolver:
    """Resolves a LocationSpec against the geo store."""

    def __init__(
        self,
        db: Optional[Session] = None,
        *,
        city_repository: Optional[CityRepository] = None,
        area_repository: Optional[AreaRepository] = None,
        config: Optional[SearchConfig] = None,
    ) -> None:
        if db is None and (city_repository is None or area_repository is None):
            raise ValueError("LocationResolver needs a session or both repositories")
        self.city_repository = city_repository or CityRepository(db)  # type: ignore[arg-type]
        self.area_repository = area_repository or AreaRepository(db)  # type: ignore[arg-type]
        self.config = config or get_search_config()

    def resolve(self, spec: LocationSpec) -> ResolvedLocation:
        """
        Resolve `spec` to a ResolvedLocation.

        Raises:
            AreaNotFoundException: area id given but unknown
            CityNotFoundException: city name given but unknown
            LocationRequiredException: nothing usable was supplied
        """
        if spec.has_coordinates and is_valid_coordinate(spec.latitude, spec.longitude):
            return self._from_coordinates(
                GeoPoint(float(spec.latitude), float(spec.longitude))  # type: ignore[arg-type]
            )

        area_id = (spec.area_id or "").strip()
        if area_id:
            return self._from_area_id(area_id)

        city_name = (spec.city or "").strip()
        area_name = (spec.area or "").strip()
        if city_name and area_name:
            return self._from_city_and_area(city_name, area_name)
        if city_name:
            city = self._require_city(city_name)
            logger.info("Resolved location from city '%s' centroid", city.name)
            return ResolvedLocation(
                coordinates=GeoPoint(float(city.latitude), float(city.longitude)),
                source=LocationSource.CITY_ONLY,
                city=CityRef.from_model(city),
            )

        raise LocationRequiredException()

    # ── Resolution paths ──────────────────────────────────────────

    def _from_coordinates(self, point: GeoPoint) -> ResolvedLocation:
        area: Optional[Area] = None
        city: Optional[City] = None

        nearest_area = self.area_repository.find_near(point, self.config.nearest_area_max_km)
        if nearest_area is not None:
            area = nearest_area[0]
            city = self.city_repository.get_by_id(str(area.city_id))

        if city is None:
            nearest_city = self.city_repository.find_near(point, self.config.nearest_city_max_km)
            if nearest_city is not None:
                city = nearest_city[0]

        logger.info(
            "Resolved direct coordinates (%.5f, %.5f) near area=%s city=%s",
            point.latitude,
            point.longitude,
            area.name if area is not None else None,
            city.name if city is not None else None,
        )
        return ResolvedLocation(
            coordinates=point,
            source=LocationSource.DIRECT_COORDINATES,
            area=AreaRef.from_model(area) if area is not None else None,
            city=CityRef.from_model(city) if city is not None else None,
        )

    def _from_area_id(self, area_id: str) -> ResolvedLocation:
        area = self.area_repository.get_by_id(area_id)
        if area is None:
            logger.info("Area id %s not found", area_id)
            raise AreaNotFoundException(area_id)

        city = self.city_repository.get_by_id(str(area.city_id))
        logger.info("Resolved location from area id %s (%s)", area_id, area.name)
        return ResolvedLocation(
            coordinates=GeoPoint(float(area.latitude), float(area.longitude)),
            source=LocationSource.AREA_ID,
            area=AreaRef.from_model(area),
            city=CityRef.from_model(city) if city is not None else None,
        )

    def _from_city_and_area(self, city_name: str, area_name: str) -> ResolvedLocation:
        city = self._require_city(city_name)
        area = self.area_repository.find_by_city_and_name(str(city.id), area_name)

        if area is None:
            logger.warning(
                "Area '%s' not found in %s; falling back to city centroid", area_name, city.name
            )
            return ResolvedLocation(
                coordinates=GeoPoint(float(city.latitude), float(city.longitude)),
                source=LocationSource.CITY_ONLY,
                city=CityRef.from_model(city),
                fallback=True,
            )

        logger.info("Resolved location '%s, %s'", area.name, city.name)
        return ResolvedLocation(
            coordinates=GeoPoint(float(area.latitude), float(area.longitude)),
            source=LocationSource.CITY_AREA_NAME,
            area=AreaRef.from_model(area),
            city=CityRef.from_model(city),
        )

    def _require_city(self, city_name: str) -> City:
        city = self.city_repository.find_by_name(city_name)
        if city is None:
            logger.info("City '%s' not found", city_name)
            raise CityNotFoundException(city_name)
        return city
