"""Fluent filter expressions translated to MongoDB filter documents.

Build predicates from fields and combine them with ``&``, ``|`` and ``~``::

    where("total") > 10
    (where("status") == "open") & where("tags").in_(["rush", "gift"])

The entity ``id`` field is stored as ``_id`` and translated automatically.
"""

from __future__ import annotations

import re
from typing import Any, Iterable

from bson import json_util
from bson.errors import BSONError

from docstore.exceptions import InvalidQueryError

ID_FIELD = "id"
DOCUMENT_ID_FIELD = "_id"


def field_path(name: str) -> str:
    """Translate an entity field name to its stored path."""
    return DOCUMENT_ID_FIELD if name == ID_FIELD else name


class Filter:
    """An immutable filter document plus the field paths it references."""

    __slots__ = ("_document", "_fields")

    def __init__(self, document: dict[str, Any], fields: Iterable[str] = ()):
        self._document = document
        self._fields = frozenset(fields)

    def to_mongo(self) -> dict[str, Any]:
        """Return the filter as a MongoDB query document."""
        return dict(self._document)

    def fields(self) -> list[str]:
        """Stored field paths the filter references."""
        return sorted(self._fields)

    def __and__(self, other: Filter) -> Filter:
        return Filter({"$and": [self._document, other._document]}, self._fields | other._fields)

    def __or__(self, other: Filter) -> Filter:
        return Filter({"$or": [self._document, other._document]}, self._fields | other._fields)

    def __invert__(self) -> Filter:
        return Filter({"$nor": [self._document]}, self._fields)

    def __bool__(self) -> bool:
        raise TypeError("Combine filters with '&', '|' and '~' instead of 'and', 'or' and 'not'")

    def __repr__(self) -> str:
        return f"Filter({self._document!r})"


class Field:
    """A document field used to build filters."""

    __slots__ = ("name", "path")

    def __init__(self, name: str):
        if not name:
            raise ValueError("Field name cannot be empty")
        self.name = name
        self.path = field_path(name)

    def _compare(self, operator: str, value: Any) -> Filter:
        return Filter({self.path: {operator: value}}, (self.path,))

    def __eq__(self, value: Any) -> Filter:  # type: ignore[override]
        return self._compare("$eq", value)

    def __ne__(self, value: Any) -> Filter:  # type: ignore[override]
        return self._compare("$ne", value)

    def __lt__(self, value: Any) -> Filter:
        return self._compare("$lt", value)

    def __le__(self, value: Any) -> Filter:
        return self._compare("$lte", value)

    def __gt__(self, value: Any) -> Filter:
        return self._compare("$gt", value)

    def __ge__(self, value: Any) -> Filter:
        return self._compare("$gte", value)

    def in_(self, values: Iterable[Any]) -> Filter:
        return self._compare("$in", list(values))

    def not_in(self, values: Iterable[Any]) -> Filter:
        return self._compare("$nin", list(values))

    def exists(self, present: bool = True) -> Filter:
        return self._compare("$exists", present)

    def startswith(self, prefix: str) -> Filter:
        return self._compare("$regex", f"^{re.escape(prefix)}")

    def contains(self, text: str) -> Filter:
        """Substring match on a string field."""
        return self._compare("$regex", re.escape(text))

    def __repr__(self) -> str:
        return f"Field({self.name!r})"


def where(name: str) -> Field:
    """Start a filter on ``name``."""
    return Field(name)


def match_all() -> Filter:
    """Filter matching every document."""
    return Filter({})


def parse_raw_query(expression: str) -> dict[str, Any]:
    """Parse a raw query string (MongoDB extended JSON) into a filter document.

    Raw queries are passed through untouched, so the entity id must be
    addressed as ``_id``.
    """
    if not isinstance(expression, str) or not expression.strip():
        raise InvalidQueryError("Raw query expression must be a non-empty string")

    try:
        parsed = json_util.loads(expression)
    except (ValueError, TypeError, BSONError) as e:
        raise InvalidQueryError(f"Malformed query expression {expression!r}: {e}") from e

    if not isinstance(parsed, dict):
        raise InvalidQueryError(f"Query expression must be a JSON object, got {type(parsed).__name__}")
    return parsed
