# backend/vendor_search/services/search/__init__.py
"""
Tiered vendor search services.

- location_resolver: heterogeneous location input -> ResolvedLocation
- taxonomy_normalizer: free text -> scored taxonomy matches
- tier_ranker: four strictly ordered proximity tiers
- facet_service: filter facets derived from a result page
- vendor_search_service: the façade composing all of the above

Submodules are imported directly; this package keeps no re-exports so the
repository layer can depend on geo/types without import cycles.
"""
