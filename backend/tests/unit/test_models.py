"""Unit tests for entity (de)serialization."""

from datetime import datetime, timezone

import pytest
from bson import ObjectId

from docstore.store.models import Entity, from_document, to_document


class Order(Entity):
    total: int
    placed_at: datetime | None = None


class VersionedOrder(Entity):
    total: int
    etag: str | None = None


def test_to_document_moves_id_and_dumps_json() -> None:
    placed = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    document = to_document(Order(id="o1", total=42, placed_at=placed))

    assert document["_id"] == "o1"
    assert "id" not in document
    assert document["total"] == 42
    assert isinstance(document["placed_at"], str)


def test_to_document_copies_mappings() -> None:
    item = {"id": "o1", "total": 42}

    document = to_document(item)

    assert document == {"_id": "o1", "total": 42}
    assert item == {"id": "o1", "total": 42}


def test_to_document_drops_etag() -> None:
    document = to_document(VersionedOrder(id="o1", total=1, etag="abc"))

    assert "etag" not in document
    assert "_etag" not in document


def test_to_document_fills_missing_id() -> None:
    assert to_document({"total": 3}, document_id="o9") == {"_id": "o9", "total": 3}


def test_to_document_rejects_mismatched_id() -> None:
    with pytest.raises(ValueError):
        to_document({"id": "o1", "total": 3}, document_id="o2")


@pytest.mark.parametrize("item", [{"total": 1}, {"id": "", "total": 1}])
def test_to_document_requires_id(item: dict) -> None:
    with pytest.raises(ValueError):
        to_document(item)


def test_to_document_rejects_unsupported_types() -> None:
    with pytest.raises(TypeError):
        to_document(["o1", 42])  # type: ignore[arg-type]


def test_from_document_restores_model() -> None:
    order = from_document(Order, {"_id": "o1", "total": 42, "_etag": "abc"})

    assert order == Order(id="o1", total=42)


def test_from_document_surfaces_etag_when_declared() -> None:
    order = from_document(VersionedOrder, {"_id": "o1", "total": 42, "_etag": "abc"})

    assert order.etag == "abc"


def test_from_document_stringifies_object_ids() -> None:
    object_id = ObjectId()

    document = from_document(dict, {"_id": object_id, "total": 1})

    assert document == {"id": str(object_id), "total": 1}
