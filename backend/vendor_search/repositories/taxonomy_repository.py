# backend/vendor_search/repositories/taxonomy_repository.py
"""Repository for the category → subcategory → service taxonomy."""

import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.taxonomy import TaxonomyEntry
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class TaxonomyRepository(BaseRepository[TaxonomyEntry]):
    """Repository for TaxonomyEntry queries."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, TaxonomyEntry)

    def list_active(self) -> List[TaxonomyEntry]:
        """All active entries, ordered for stable index construction."""
        try:
            return (
                self.active()
                .order_by(
                    TaxonomyEntry.entry_type,
                    TaxonomyEntry.sort_order,
                    TaxonomyEntry.taxonomy_id,
                )
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error("Error listing taxonomy entries: %s", e)
            raise RepositoryException(f"Failed to list taxonomy: {e}") from e
