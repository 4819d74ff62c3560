from cardledger.api.cards import router as cards_router
from cardledger.api.collections import router as collections_router
from cardledger.api.health import router as health_router

__all__ = [
    "cards_router",
    "collections_router",
    "health_router",
]
