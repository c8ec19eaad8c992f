# backend/vendor_search/models/types.py
"""
Column types shared by the search models.

KeywordArrayType stores taxonomy synonyms as a native ARRAY on PostgreSQL and
as a JSON-encoded string elsewhere (SQLite in tests). Keywords are trimmed
and de-duplicated on write so the normalizer can compare them directly.
"""

import json
from typing import TYPE_CHECKING, Any, Iterable, List, Optional

from sqlalchemy import String, TypeDecorator
from sqlalchemy.dialects.postgresql import ARRAY

if TYPE_CHECKING:
    from sqlalchemy.sql.type_api import TypeDecorator as _TypeDecorator

    TypeDecoratorProtocol = _TypeDecorator[Any]
else:
    TypeDecoratorProtocol = TypeDecorator


def clean_keywords(value: Any) -> List[str]:
    """Trim, drop blanks and de-duplicate (case-insensitively) while keeping order."""
    items: Iterable[Any] = value if isinstance(value, (list, tuple, set)) else [value]
    seen = set()
    cleaned: List[str] = []
    for item in items:
        text = str(item).strip() if item is not None else ""
        if not text or text.lower() in seen:
            continue
        seen.add(text.lower())
        cleaned.append(text)
    return cleaned


class KeywordArrayType(TypeDecoratorProtocol):
    impl = String
    cache_ok = True

    def load_dialect_impl(self, dialect: Any) -> Any:
        if dialect.name == "postgresql":
            return dialect.type_descriptor(ARRAY(String(100)))
        return dialect.type_descriptor(String(4096))

    def process_bind_param(self, value: Any, dialect: Any) -> Optional[Any]:
        if value is None:
            return None
        keywords = clean_keywords(value)
        if dialect.name == "postgresql":
            return keywords
        return json.dumps(keywords, ensure_ascii=False)

    def process_result_value(self, value: Any, dialect: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return list(json.loads(value))
        return list(value)
