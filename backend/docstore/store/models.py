"""Entity base model and document (de)serialization."""

from collections.abc import Mapping
from typing import Any, TypeVar

from bson import ObjectId
from pydantic import BaseModel, ConfigDict

from .query import DOCUMENT_ID_FIELD, ID_FIELD

# Write token stored on every document written through the repository
ETAG_FIELD = "_etag"
ENTITY_ETAG_FIELD = "etag"


class Entity(BaseModel):
    """Base class for stored entities.

    Subclasses that want the write token on read declare
    ``etag: str | None = None``.
    """

    model_config = ConfigDict(extra="ignore")

    id: str


T = TypeVar("T")


def to_document(item: BaseModel | Mapping[str, Any], document_id: str | None = None) -> dict[str, Any]:
    """Serialize an entity to a JSON-compatible document keyed by ``_id``.

    ``document_id`` fills in a missing entity id and must match a present one.
    """
    if isinstance(item, BaseModel):
        data = item.model_dump(mode="json")
    elif isinstance(item, Mapping):
        data = dict(item)
    else:
        raise TypeError(f"Cannot store {type(item).__name__}; expected a pydantic model or mapping")

    data.pop(ENTITY_ETAG_FIELD, None)
    data.pop(ETAG_FIELD, None)

    item_id = data.pop(ID_FIELD, None)
    stored_id = data.pop(DOCUMENT_ID_FIELD, None)
    if item_id is None:
        item_id = stored_id

    if item_id in (None, ""):
        item_id = document_id
    elif document_id is not None and item_id != document_id:
        raise ValueError(f"Entity id '{item_id}' does not match document id '{document_id}'")

    if item_id in (None, ""):
        raise ValueError("Entity must have a non-empty 'id'")

    return {DOCUMENT_ID_FIELD: item_id, **data}


def from_document(model: type[T], document: Mapping[str, Any]) -> T:
    """Build an entity of type ``model`` from a stored document."""
    data = dict(document)

    if DOCUMENT_ID_FIELD in data:
        document_id = data.pop(DOCUMENT_ID_FIELD)
        data[ID_FIELD] = str(document_id) if isinstance(document_id, ObjectId) else document_id
    if ETAG_FIELD in data:
        data[ENTITY_ETAG_FIELD] = data.pop(ETAG_FIELD)

    if isinstance(model, type) and issubclass(model, BaseModel):
        return model.model_validate(data)
    return model(data)  # type: ignore[call-arg]
