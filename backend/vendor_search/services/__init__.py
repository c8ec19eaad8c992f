"""Service layer for the vendor search backend."""
