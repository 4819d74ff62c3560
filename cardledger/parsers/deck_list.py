"""
Parser for plain-text deck lists.

Accepts one card per line:
- "4 Lightning Bolt", "4x Lightning Bolt", "4X Lightning Bolt"
- "Lightning Bolt" (quantity 1)

Blank lines and comment lines ("//" or "#") are skipped.
"""

import re

from cardledger.models.card import DeckListEntry

# Pattern: "4 Lightning Bolt" or "4x Lightning Bolt" or "4 x Lightning Bolt"
# Groups: (quantity, card_name)
QUANTITY_PATTERN = re.compile(r"^(\d+)\s*x?\s+(.+)$", re.IGNORECASE)

COMMENT_PREFIXES = ("//", "#")


def parse_deck_list(text: str) -> list[DeckListEntry]:
    """
    Parse deck list text into entries, in line order.

    Duplicate names are kept as separate entries. Lines with a zero
    quantity are dropped.
    """
    entries: list[DeckListEntry] = []

    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith(COMMENT_PREFIXES):
            continue

        match = QUANTITY_PATTERN.match(line)
        if match:
            quantity = int(match.group(1))
            name = match.group(2).strip()
            if name and quantity > 0:
                entries.append(DeckListEntry(name=name, quantity=quantity))
        else:
            entries.append(DeckListEntry(name=line, quantity=1))

    return entries
