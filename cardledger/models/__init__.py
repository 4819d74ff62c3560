from cardledger.models.card import (
    CardPrices,
    DeckListEntry,
    EnrichedCard,
    ImageUris,
    LocalCardRecord,
    ProviderCardData,
    SearchResult,
)
from cardledger.models.failure import (
    CardNotFoundError,
    FailureDetail,
    FailureKind,
    ImportFailure,
    InvalidInputError,
    KnownError,
    ProviderUnavailableError,
    ResourceNotFoundError,
)

__all__ = [
    "CardNotFoundError",
    "CardPrices",
    "DeckListEntry",
    "EnrichedCard",
    "FailureDetail",
    "FailureKind",
    "ImageUris",
    "ImportFailure",
    "InvalidInputError",
    "KnownError",
    "LocalCardRecord",
    "ProviderCardData",
    "ProviderUnavailableError",
    "ResourceNotFoundError",
    "SearchResult",
]
