"""Tests d'intégration du stockage documentaire en mémoire."""

import pytest

from shopify_tickets.store.connectors.memory import MemoryDocumentStore
from shopify_tickets.store.errors import (
    DocumentConflictError,
    DocumentNotFoundError,
    PreconditionFailedError,
)
from shopify_tickets.store.models import BatchOperation, QueryFilter


class TestReadWrite:
    """Tests de lecture, création et remplacement."""

    async def test_read_missing_returns_none(self, store: MemoryDocumentStore) -> None:
        assert await store.read("items", "a", "p1") is None

    async def test_create_then_read(self, store: MemoryDocumentStore) -> None:
        created = await store.create("items", "p1", {"id": "a", "sku": "X"})
        stored = await store.read("items", "a", "p1")
        assert stored is not None
        assert stored.data == {"id": "a", "sku": "X"}
        assert stored.etag == created.etag

    async def test_partitions_are_isolated(self, store: MemoryDocumentStore) -> None:
        await store.create("items", "p1", {"id": "a"})
        assert await store.read("items", "a", "p2") is None
        await store.create("items", "p2", {"id": "a"})

    async def test_create_existing_id_conflicts(self, store: MemoryDocumentStore) -> None:
        await store.create("items", "p1", {"id": "a"})
        with pytest.raises(DocumentConflictError) as exc_info:
            await store.create("items", "p1", {"id": "a"})
        assert exc_info.value.document_id == "a"

    async def test_replace_with_current_token(self, store: MemoryDocumentStore) -> None:
        created = await store.create("items", "p1", {"id": "a", "n": 1})
        replaced = await store.replace("items", "p1", {"id": "a", "n": 2}, created.etag)
        assert replaced.etag != created.etag
        stored = await store.read("items", "a", "p1")
        assert stored.data["n"] == 2

    async def test_replace_with_stale_token(self, store: MemoryDocumentStore) -> None:
        created = await store.create("items", "p1", {"id": "a", "n": 1})
        await store.replace("items", "p1", {"id": "a", "n": 2}, created.etag)
        with pytest.raises(PreconditionFailedError):
            await store.replace("items", "p1", {"id": "a", "n": 3}, created.etag)

    async def test_replace_missing_document(self, store: MemoryDocumentStore) -> None:
        with pytest.raises(DocumentNotFoundError):
            await store.replace("items", "p1", {"id": "a"}, 1)

    async def test_upsert_creates_then_overwrites(self, store: MemoryDocumentStore) -> None:
        await store.upsert("items", "p1", {"id": "a", "n": 1})
        await store.upsert("items", "p1", {"id": "a", "n": 2})
        stored = await store.read("items", "a", "p1")
        assert stored.data["n"] == 2

    async def test_returned_documents_are_copies(self, store: MemoryDocumentStore) -> None:
        await store.create("items", "p1", {"id": "a", "tags": ["x"]})
        stored = await store.read("items", "a", "p1")
        stored.data["tags"].append("y")
        again = await store.read("items", "a", "p1")
        assert again.data["tags"] == ["x"]


class TestUniqueKeys:
    """Tests des clés d'unicité par partition."""

    async def test_duplicate_unique_key_conflicts(self, store: MemoryDocumentStore) -> None:
        await store.create("items", "p1", {"id": "a", "sku": "X", "kind": "order"})
        with pytest.raises(DocumentConflictError, match="unicité"):
            await store.create("items", "p1", {"id": "b", "sku": "X", "kind": "order"})

    async def test_unique_key_scoped_to_partition(self, store: MemoryDocumentStore) -> None:
        await store.create("items", "p1", {"id": "a", "sku": "X", "kind": "order"})
        await store.create("items", "p2", {"id": "b", "sku": "X", "kind": "order"})

    async def test_documents_without_key_fields_never_collide(
        self, store: MemoryDocumentStore
    ) -> None:
        """Les compteurs partagent le conteneur sans porter la clé d'unicité."""
        await store.create("items", "p1", {"id": "counter-a"})
        await store.create("items", "p1", {"id": "counter-b"})

    async def test_other_containers_unconstrained(self, store: MemoryDocumentStore) -> None:
        await store.create("others", "p1", {"id": "a", "sku": "X", "kind": "order"})
        await store.create("others", "p1", {"id": "b", "sku": "X", "kind": "order"})


class TestBatch:
    """Tests de l'atomicité des lots."""

    async def test_batch_applies_all_operations(self, store: MemoryDocumentStore) -> None:
        counter = await store.create("items", "p1", {"id": "counter", "value": 0})
        results = await store.execute_batch(
            "items",
            "p1",
            [
                BatchOperation.replace({"id": "counter", "value": 1}, if_match=counter.etag),
                BatchOperation.create({"id": "T-1", "sku": "X", "kind": "order"}),
            ],
        )
        assert [r.id for r in results] == ["counter", "T-1"]
        assert (await store.read("items", "counter", "p1")).data["value"] == 1

    async def test_failed_batch_writes_nothing(self, store: MemoryDocumentStore) -> None:
        counter = await store.create("items", "p1", {"id": "counter", "value": 0})
        await store.create("items", "p1", {"id": "T-1", "sku": "X", "kind": "order"})
        with pytest.raises(DocumentConflictError):
            await store.execute_batch(
                "items",
                "p1",
                [
                    BatchOperation.replace({"id": "counter", "value": 1}, if_match=counter.etag),
                    BatchOperation.create({"id": "T-2", "sku": "X", "kind": "order"}),
                ],
            )
        stored = await store.read("items", "counter", "p1")
        assert stored.data["value"] == 0
        assert stored.etag == counter.etag
        assert await store.read("items", "T-2", "p1") is None

    async def test_stale_token_rejects_whole_batch(self, store: MemoryDocumentStore) -> None:
        counter = await store.create("items", "p1", {"id": "counter", "value": 0})
        await store.replace("items", "p1", {"id": "counter", "value": 5}, counter.etag)
        with pytest.raises(PreconditionFailedError):
            await store.execute_batch(
                "items",
                "p1",
                [
                    BatchOperation.replace({"id": "counter", "value": 1}, if_match=counter.etag),
                    BatchOperation.create({"id": "T-1", "sku": "Y", "kind": "order"}),
                ],
            )
        assert await store.read("items", "T-1", "p1") is None

    async def test_empty_batch(self, store: MemoryDocumentStore) -> None:
        assert await store.execute_batch("items", "p1", []) == []
        assert store.batch_count == 0


class TestQuery:
    """Tests des requêtes filtrées et paginées."""

    @pytest.fixture
    async def populated(self, store: MemoryDocumentStore) -> MemoryDocumentStore:
        for index in range(5):
            await store.create(
                "items",
                "p1",
                {"id": f"doc-{index}", "rank": 10 - index, "group": "even" if index % 2 == 0 else "odd"},
            )
        await store.create("items", "p2", {"id": "other", "rank": 0, "group": "even"})
        return store

    async def test_filter_within_partition(self, populated: MemoryDocumentStore) -> None:
        page = await populated.query_page(
            "items", [QueryFilter(field="group", value="even")], partition_key="p1"
        )
        assert [d.id for d in page.documents] == ["doc-0", "doc-2", "doc-4"]
        assert page.continuation is None

    async def test_cross_partition_query(self, populated: MemoryDocumentStore) -> None:
        page = await populated.query_page("items", [QueryFilter(field="group", value="even")])
        assert {d.id for d in page.documents} == {"doc-0", "doc-2", "doc-4", "other"}

    async def test_range_filters_and_order(self, populated: MemoryDocumentStore) -> None:
        page = await populated.query_page(
            "items",
            [QueryFilter(field="rank", op=">=", value=7), QueryFilter(field="rank", op="<=", value=9)],
            partition_key="p1",
            order_by="rank",
        )
        assert [d.data["rank"] for d in page.documents] == [7, 8, 9]

    async def test_pagination_visits_every_document_once(
        self, populated: MemoryDocumentStore
    ) -> None:
        first = await populated.query_page("items", partition_key="p1", page_size=2)
        assert len(first.documents) == 2
        assert first.continuation is not None
        seen = [d.id async for d in populated.query("items", partition_key="p1", page_size=2)]
        assert seen == [f"doc-{i}" for i in range(5)]

    async def test_query_first(self, populated: MemoryDocumentStore) -> None:
        found = await populated.query_first(
            "items", [QueryFilter(field="group", value="odd")], partition_key="p1"
        )
        assert found.id == "doc-1"

    async def test_query_first_no_match(self, populated: MemoryDocumentStore) -> None:
        found = await populated.query_first("items", [QueryFilter(field="group", value="none")])
        assert found is None

    async def test_none_never_matches_range(self, populated: MemoryDocumentStore) -> None:
        await populated.create("items", "p1", {"id": "no-rank"})
        ids = [
            d.id
            async for d in populated.query(
                "items", [QueryFilter(field="rank", op=">", value=-1)], partition_key="p1"
            )
        ]
        assert "no-rank" not in ids
