"""Document store repository: lazy provisioning, queries and writes."""

from docstore.exceptions import (
    ConfigurationError,
    DocumentNotFoundError,
    DocumentStoreError,
    InvalidQueryError,
    MissingConfigurationError,
    PreconditionFailedError,
    ScanNotAllowedError,
)

from .config import (
    DEFAULT_INDEXING_POLICY,
    DEFAULT_QUERY_OPTIONS,
    IncludedPath,
    IndexingPolicy,
    QueryOptions,
    RangeIndex,
)
from .models import Entity, from_document, to_document
from .query import Field, Filter, match_all, parse_raw_query, where
from .repository import DocumentRepository

__all__ = [
    "DocumentRepository",
    "Entity",
    "from_document",
    "to_document",
    "Field",
    "Filter",
    "where",
    "match_all",
    "parse_raw_query",
    "QueryOptions",
    "DEFAULT_QUERY_OPTIONS",
    "IndexingPolicy",
    "IncludedPath",
    "RangeIndex",
    "DEFAULT_INDEXING_POLICY",
    "DocumentStoreError",
    "ConfigurationError",
    "MissingConfigurationError",
    "InvalidQueryError",
    "ScanNotAllowedError",
    "DocumentNotFoundError",
    "PreconditionFailedError",
]
