"""Sportsbook registry — every sportsbook the service knows about, in one place.

Nowhere else in the codebase should sportsbook identifiers or their display
names be hard-coded.  The registry does two jobs:

* it is the allowlist the evaluator uses to decide which quotes are eligible;
* its identifiers, comma-joined, are sent as ``bookmakerID`` so the provider
  only returns quotes we can use.

Typical usage::

    from ev_backend.core.sportsbooks import SportsbookRegistry

    registry = SportsbookRegistry.default()
    registry.bookmaker_ids()      # "fanduel,fanatics,betmgm,..."
    registry.display_name("espnbet")  # "ESPN Bet"

The registry is built once at startup and treated as read-only afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Iterator, Mapping, Optional, Tuple

#: Provider identifier of the sharp book used by the ``/pinny-bets`` route.
PINNACLE: Final[str] = "pinnacle"

#: Default registry contents, in request order.
DEFAULT_SPORTSBOOKS: Final[Tuple[Tuple[str, str], ...]] = (
    ("fanduel", "FanDuel"),
    ("fanatics", "Fanatics"),
    ("betmgm", "BetMGM"),
    ("fliff", "Fliff"),
    ("espnbet", "ESPN Bet"),
    ("caesars", "Caesars"),
    (PINNACLE, "Pinnacle"),
)


@dataclass(frozen=True)
class SportsbookRegistry:
    """Immutable, ordered identifier → display-name mapping.

    Stored as a tuple of pairs rather than a dict so the instance is
    hashable and cannot be mutated after construction.
    """

    entries: Tuple[Tuple[str, str], ...] = DEFAULT_SPORTSBOOKS

    def __post_init__(self) -> None:
        ids = [book_id for book_id, _ in self.entries]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate sportsbook ids in registry: {ids}")

    @classmethod
    def default(cls) -> "SportsbookRegistry":
        return cls(DEFAULT_SPORTSBOOKS)

    @classmethod
    def from_mapping(cls, books: Mapping[str, str]) -> "SportsbookRegistry":
        return cls(tuple(books.items()))

    def __contains__(self, book_id: object) -> bool:
        return any(book_id == known for known, _ in self.entries)

    def __iter__(self) -> Iterator[str]:
        return (book_id for book_id, _ in self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def display_name(self, book_id: str) -> Optional[str]:
        for known, name in self.entries:
            if known == book_id:
                return name
        return None

    def bookmaker_ids(self) -> str:
        """Comma-joined identifiers, as expected by the provider's ``bookmakerID``."""
        return ",".join(self)
