"""Tests for collection API endpoints."""

import pytest
from httpx import AsyncClient

from cardledger.models.card import ProviderCardData
from cardledger.services.card_cache import CardCache


@pytest.fixture
async def collection_id(client: AsyncClient) -> str:
    response = await client.post("/collections", json={"name": "Binder"})
    assert response.status_code == 201
    return response.json()["id"]


class TestCollectionCrud:
    async def test_requires_user_header(self, client: AsyncClient) -> None:
        response = await client.get("/collections", headers={"X-User-Id": ""})

        assert response.status_code == 401

    async def test_create_and_list(self, client: AsyncClient) -> None:
        response = await client.post(
            "/collections", json={"name": "  Trade binder ", "tcg_type": "pokemon"}
        )

        assert response.status_code == 201
        created = response.json()
        assert created["name"] == "Trade binder"
        assert created["tcg_type"] == "pokemon"

        listed = (await client.get("/collections")).json()["collections"]
        assert [c["id"] for c in listed] == [created["id"]]

    async def test_create_rejects_unknown_game(self, client: AsyncClient) -> None:
        response = await client.post("/collections", json={"name": "x", "tcg_type": "chess"})

        assert response.status_code == 422

    async def test_collections_scoped_to_user(
        self, client: AsyncClient, collection_id: str
    ) -> None:
        other = {"X-User-Id": "user-2"}

        assert (await client.get("/collections", headers=other)).json()["collections"] == []
        response = await client.get(f"/collections/{collection_id}", headers=other)
        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"

    async def test_update(self, client: AsyncClient, collection_id: str) -> None:
        response = await client.patch(f"/collections/{collection_id}", json={"name": "Main"})

        assert response.status_code == 200
        assert response.json()["name"] == "Main"

    async def test_update_without_fields(self, client: AsyncClient, collection_id: str) -> None:
        response = await client.patch(f"/collections/{collection_id}", json={})

        assert response.status_code == 400
        assert response.json()["kind"] == "invalid_input"

    async def test_delete(self, client: AsyncClient, collection_id: str) -> None:
        response = await client.delete(f"/collections/{collection_id}")

        assert response.status_code == 200
        assert response.json() == {"id": collection_id, "deleted": True}
        assert (await client.get(f"/collections/{collection_id}")).status_code == 404

    async def test_delete_missing(self, client: AsyncClient) -> None:
        assert (await client.delete("/collections/missing")).status_code == 404


class TestAddCard:
    async def test_adds_verified_card(
        self,
        client: AsyncClient,
        collection_id: str,
        bolt: ProviderCardData,
        card_cache: CardCache,
    ) -> None:
        response = await client.post(
            f"/collections/{collection_id}/cards",
            json={"scryfall_id": bolt.id, "owner_name": "Alice", "quantity": 4},
        )

        assert response.status_code == 201
        card = response.json()
        assert card["scryfall_id"] == bolt.id
        assert card["quantity"] == 4
        assert card["set_code"] == "leb"
        assert card["set_name"] == "Limited Edition Beta"
        assert card["unit_price"] == "1.50"
        assert card["scryfall_data"]["name"] == "Lightning Bolt"
        assert card_cache.stats().size == 1

    async def test_card_stored_under_canonical_id(
        self,
        client: AsyncClient,
        collection_id: str,
        bolt: ProviderCardData,
        fake_client,
    ) -> None:
        """An id Scryfall resolves to another form is stored as Scryfall's id."""
        fake_client.by_id[bolt.id.upper()] = bolt

        response = await client.post(
            f"/collections/{collection_id}/cards",
            json={"scryfall_id": bolt.id.upper(), "owner_name": "Alice"},
        )

        assert response.json()["scryfall_id"] == bolt.id
        fake_client.calls.clear()
        listing = (await client.get(f"/collections/{collection_id}/cards")).json()
        assert listing["cards"][0]["scryfall_id"] == bolt.id
        assert fake_client.calls == []

    async def test_unknown_scryfall_id_is_404(
        self, client: AsyncClient, collection_id: str
    ) -> None:
        response = await client.post(
            f"/collections/{collection_id}/cards",
            json={"scryfall_id": "not-a-real-id", "owner_name": "Alice"},
        )

        assert response.status_code == 404
        body = response.json()
        assert body["kind"] == "not_found"
        assert "not-a-real-id" in body["message"]

        cards = (await client.get(f"/collections/{collection_id}/cards")).json()
        assert cards["cards"] == []

    async def test_provider_down_is_502(
        self,
        client: AsyncClient,
        collection_id: str,
        fake_client,
        bolt: ProviderCardData,
    ) -> None:
        fake_client.unavailable.add(bolt.id)

        response = await client.post(
            f"/collections/{collection_id}/cards",
            json={"scryfall_id": bolt.id, "owner_name": "Alice"},
        )

        assert response.status_code == 502
        assert response.json()["kind"] == "service_unavailable"

    async def test_rejects_zero_quantity(
        self, client: AsyncClient, collection_id: str, bolt: ProviderCardData
    ) -> None:
        response = await client.post(
            f"/collections/{collection_id}/cards",
            json={"scryfall_id": bolt.id, "owner_name": "Alice", "quantity": 0},
        )

        assert response.status_code == 422

    async def test_missing_collection(self, client: AsyncClient, bolt: ProviderCardData) -> None:
        response = await client.post(
            "/collections/missing/cards",
            json={"scryfall_id": bolt.id, "owner_name": "Alice"},
        )

        assert response.status_code == 404


class TestListCollectionCards:
    async def test_enriched_listing_with_value(
        self,
        client: AsyncClient,
        collection_id: str,
        bolt: ProviderCardData,
        counterspell: ProviderCardData,
        fake_client,
    ) -> None:
        for scryfall_id, quantity in ((bolt.id, 4), (counterspell.id, 2)):
            await client.post(
                f"/collections/{collection_id}/cards",
                json={"scryfall_id": scryfall_id, "owner_name": "Alice", "quantity": quantity},
            )
        fake_client.calls.clear()

        response = await client.get(f"/collections/{collection_id}/cards")

        assert response.status_code == 200
        body = response.json()
        assert body["total_cards"] == 6
        assert body["total_value"] == "30.00"
        assert body["priced_cards"] == 2
        assert body["unenriched_cards"] == 0
        assert {c["scryfall_data"]["name"] for c in body["cards"]} == {
            "Lightning Bolt",
            "Counterspell",
        }
        # Both cards were cached when added
        assert fake_client.calls == []

    async def test_provider_outage_degrades_cards(
        self,
        client: AsyncClient,
        collection_id: str,
        bolt: ProviderCardData,
        counterspell: ProviderCardData,
        fake_client,
        card_cache: CardCache,
    ) -> None:
        """Cards whose data cannot be fetched are listed without it."""
        for scryfall_id in (bolt.id, counterspell.id):
            await client.post(
                f"/collections/{collection_id}/cards",
                json={"scryfall_id": scryfall_id, "owner_name": "Alice"},
            )
        card_cache.clear()
        fake_client.unavailable.add(counterspell.id)

        response = await client.get(f"/collections/{collection_id}/cards")

        assert response.status_code == 200
        body = response.json()
        assert len(body["cards"]) == 2
        assert body["unenriched_cards"] == 1
        assert body["total_value"] == "1.50"
        degraded = next(c for c in body["cards"] if c["scryfall_id"] == counterspell.id)
        assert degraded["scryfall_data"] is None
        assert degraded["unit_price"] == "0"
        assert degraded["owner_name"] == "Alice"

    async def test_empty_collection(self, client: AsyncClient, collection_id: str) -> None:
        body = (await client.get(f"/collections/{collection_id}/cards")).json()

        assert body["cards"] == []
        assert body["total_value"] == "0"


class TestCollectionStats:
    async def test_counts(
        self, client: AsyncClient, collection_id: str, bolt: ProviderCardData
    ) -> None:
        await client.post(
            f"/collections/{collection_id}/cards",
            json={"scryfall_id": bolt.id, "owner_name": "Alice", "quantity": 3},
        )
        await client.post(
            f"/collections/{collection_id}/cards",
            json={"scryfall_id": bolt.id, "owner_name": "Bob", "is_borrowed": True},
        )

        body = (await client.get(f"/collections/{collection_id}/stats")).json()

        assert body == {
            "collection_id": collection_id,
            "total_cards": 4,
            "unique_cards": 1,
            "borrowed_cards": 1,
        }


class TestDeckImport:
    async def test_import_text(self, client: AsyncClient, collection_id: str) -> None:
        response = await client.post(
            f"/collections/{collection_id}/import",
            json={"owner_name": "Alice", "text": "4 Lightning Bolt\n1 Not A Real Card"},
        )

        assert response.status_code == 200
        body = response.json()
        assert len(body["imported"]) == 1
        assert body["imported"][0]["quantity"] == 4
        assert body["imported"][0]["owner_name"] == "Alice"
        assert body["failed"] == [
            {"name": "Not A Real Card", "reason": "Card not found on Scryfall: Not A Real Card"}
        ]

        stats = (await client.get(f"/collections/{collection_id}/stats")).json()
        assert stats["total_cards"] == 4

    async def test_entries_win_over_text(self, client: AsyncClient, collection_id: str) -> None:
        response = await client.post(
            f"/collections/{collection_id}/import",
            json={
                "owner_name": "Alice",
                "text": "4 Lightning Bolt",
                "entries": [{"name": "Counterspell", "quantity": 2}],
            },
        )

        imported = response.json()["imported"]
        assert [card["scryfall_data"]["name"] for card in imported] == ["Counterspell"]
        assert imported[0]["quantity"] == 2

    async def test_empty_list_is_400(self, client: AsyncClient, collection_id: str) -> None:
        response = await client.post(
            f"/collections/{collection_id}/import",
            json={"owner_name": "Alice", "text": "// nothing here\n"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Deck list is empty"

    async def test_missing_collection(self, client: AsyncClient) -> None:
        response = await client.post(
            "/collections/missing/import",
            json={"owner_name": "Alice", "text": "1 Lightning Bolt"},
        )

        assert response.status_code == 404
