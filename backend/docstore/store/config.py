"""Query options and indexing policy for the document store."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QueryOptions(BaseModel):
    """Execution options for a single query."""

    model_config = ConfigDict(frozen=True)

    # Allow filtering on fields no index covers
    enable_scan: bool = False
    limit: int | None = Field(default=None, ge=1)
    sort: list[tuple[str, Literal[1, -1]]] | None = None
    batch_size: int | None = Field(default=None, ge=1)
    max_time_ms: int | None = Field(default=None, ge=1)


# Predicate queries without caller options may scan
DEFAULT_QUERY_OPTIONS = QueryOptions(enable_scan=True)


class RangeIndex(BaseModel):
    """Range index on a path for one data type."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["Range"] = "Range"
    data_type: Literal["Number", "String"] = "Number"
    precision: int = Field(default=-1, ge=-1, le=8)


class IncludedPath(BaseModel):
    """A document path covered by the indexing policy.

    Paths use the ``/a/b/*`` notation: ``/*`` is every field, ``/a/?`` is the
    scalar value at ``a``.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    indexes: tuple[RangeIndex, ...] = ()

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Ensure the path is rooted and non-empty."""
        parts = [p for p in v.strip("/").split("/") if p]
        if not v.startswith("/") or not parts or parts == ["?"]:
            raise ValueError(f"Included path must start with '/' and name a field: {v!r}")
        return v

    @property
    def index_key(self) -> str:
        """MongoDB index key for this path."""
        parts = [p for p in self.path.strip("/").split("/") if p]
        if parts[-1] == "*":
            return ".".join(parts[:-1] + ["$**"])
        if parts[-1] == "?":
            parts = parts[:-1]
        return ".".join(parts)

    @property
    def index_name(self) -> str:
        """Index name recording the range kinds and precisions."""
        suffix = [f"{idx.data_type.lower()}{idx.precision}" for idx in self.indexes]
        return "_".join([self.index_key, "range", *suffix])


class IndexingPolicy(BaseModel):
    """Indexes applied to a collection when it is created."""

    model_config = ConfigDict(frozen=True)

    included_paths: tuple[IncludedPath, ...] = ()


DEFAULT_INDEXING_POLICY = IndexingPolicy(
    included_paths=(
        IncludedPath(
            path="/*",
            indexes=(RangeIndex(data_type="Number", precision=7),),
        ),
    )
)
