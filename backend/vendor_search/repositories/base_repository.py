# backend/vendor_search/repositories/base_repository.py
"""
Base repository for the read-only search stores.

The search core never writes: cities, areas, vendors and the taxonomy are
owned by other systems and only queried here. Subclasses add their own
finders and translate SQLAlchemyError into RepositoryException so services
can degrade without knowing about the ORM.
"""

from abc import ABC, abstractmethod
import logging
from typing import Generic, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

# Type variable for generic model support
T = TypeVar("T")

logger = logging.getLogger(__name__)


class IRepository(ABC, Generic[T]):
    """Minimal read interface shared by every search store."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Entity with primary key `id`, or None."""


class BaseRepository(IRepository[T]):
    """
    Shared plumbing for the geo, vendor and taxonomy repositories.

    Attributes:
        db: SQLAlchemy session (one per executor task, owned by the caller)
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    def query(self) -> Query:
        return self.db.query(self.model)

    def active(self) -> Query:
        """Query restricted to rows flagged `is_active`."""
        return self.query().filter(self.model.is_active.is_(True))  # type: ignore[attr-defined]

    def get_by_id(self, id: str) -> Optional[T]:
        try:
            return self.query().filter(self.model.id == id).first()  # type: ignore[attr-defined]
        except SQLAlchemyError as e:
            self.logger.error("Error getting %s by id %s: %s", self.model.__name__, id, e)
            raise RepositoryException(f"Failed to retrieve {self.model.__name__}: {e}") from e

