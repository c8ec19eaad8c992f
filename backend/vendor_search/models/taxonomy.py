# backend/vendor_search/models/taxonomy.py
"""
Service taxonomy: a three-level tree of categories, subcategories and services.

- category     (e.g. "Wedding")       parent_id = None
- subcategory  (e.g. "Photography")   parent_id -> category.taxonomy_id
- service      (e.g. "Photographer")  parent_id -> subcategory.taxonomy_id

`keywords` holds search synonyms used by the query normalizer.
"""

from sqlalchemy import Boolean, Column, Index, Integer, String, Text
import ulid

from ..database import Base
from .types import KeywordArrayType


class TaxonomyEntry(Base):
    __tablename__ = "taxonomy_entries"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    taxonomy_id = Column(String(100), nullable=False, unique=True, index=True)
    entry_type = Column(String(20), nullable=False, index=True)
    name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    parent_id = Column(String(100), nullable=True, index=True)
    keywords = Column(KeywordArrayType(), nullable=False, default=lambda: [])
    icon = Column(String(16), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (Index("ix_taxonomy_type_active", "entry_type", "is_active", "sort_order"),)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<TaxonomyEntry {self.entry_type}:{self.taxonomy_id}>"
