from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class LocalCardRecord:
    """
    A card entry owned by a user, as stored in a collection.

    Attributes:
        id: Record identity (UUID string)
        collection_id: Collection this card belongs to
        scryfall_id: Scryfall card ID; fixed for the lifetime of the record
        owner_name: Who physically owns the card
        current_deck: Deck the card is currently sleeved in, if any
        is_borrowed: Whether the card is lent out
        is_foil: Whether this copy is foil
        quantity: Number of copies (at least 1)
        set_code: Set code override (e.g., "LEB")
        set_name: Set name override
        added_at: When the record was created
    """

    id: str
    collection_id: str
    scryfall_id: str
    owner_name: str
    current_deck: str | None = None
    is_borrowed: bool = False
    is_foil: bool = False
    quantity: int = 1
    set_code: str | None = None
    set_name: str | None = None
    added_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.scryfall_id:
            raise ValueError("scryfall_id must not be empty")
        if self.quantity < 1:
            raise ValueError(f"quantity must be positive, got {self.quantity}")


@dataclass(frozen=True, slots=True)
class ImageUris:
    small: str | None = None
    normal: str | None = None
    large: str | None = None


@dataclass(frozen=True, slots=True)
class CardPrices:
    """Provider prices as decimal strings; None when the provider has no price."""

    usd: str | None = None
    usd_foil: str | None = None
    eur: str | None = None
    eur_foil: str | None = None


@dataclass(frozen=True, slots=True)
class ProviderCardData:
    """
    Descriptive card data from Scryfall.

    Identity fields never change for a given id; prices drift over time.
    """

    id: str
    name: str
    set_code: str
    set_name: str
    rarity: str
    mana_cost: str | None = None
    type_line: str | None = None
    image_uris: ImageUris | None = None
    prices: CardPrices = field(default_factory=CardPrices)
    legalities: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class EnrichedCard:
    """
    A local record merged with provider data.

    `provider` is None when enrichment failed for this call; the local
    fields are always present.
    """

    local: LocalCardRecord
    provider: ProviderCardData | None = None

    @property
    def is_enriched(self) -> bool:
        return self.provider is not None


@dataclass(frozen=True, slots=True)
class SearchResult:
    """One page of provider search results."""

    cards: list[ProviderCardData] = field(default_factory=list)
    total_cards: int = 0
    has_more: bool = False


@dataclass(frozen=True, slots=True)
class DeckListEntry:
    """A single "quantity + card name" line of a deck list."""

    name: str
    quantity: int = 1
