from cardledger.db.database import get_session, init_db
from cardledger.db.operations import (
    CollectionStats,
    card_to_record,
    create_card,
    create_collection,
    delete_card,
    delete_collection,
    get_card,
    get_cards_by_collection,
    get_collection,
    get_collection_stats,
    get_collections_by_user,
    update_card,
    update_collection,
)

__all__ = [
    "CollectionStats",
    "card_to_record",
    "create_card",
    "create_collection",
    "delete_card",
    "delete_collection",
    "get_card",
    "get_cards_by_collection",
    "get_collection",
    "get_collection_stats",
    "get_collections_by_user",
    "get_session",
    "init_db",
    "update_card",
    "update_collection",
]
