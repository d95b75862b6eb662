"""Domain models for the Pokédex list browser.

All models are immutable (frozen dataclasses) so that every emitted view
state is a safe snapshot for observers.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Union

PAGE_SIZE = 50

ARTWORK_URL = (
    "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/"
    "pokemon/other/official-artwork/{id}.png"
)


class SortOrder(Enum):
    """Direction of the browse ordering."""

    ASC = "asc"
    DESC = "desc"


class SortKey(Enum):
    """Field the browse list is ordered by."""

    ID = "id"
    NAME = "name"


@dataclass(frozen=True, slots=True)
class Entity:
    """Lightweight list item.

    Holds only what a list card needs; full details are fetched
    elsewhere by id.
    """

    id: int
    display_name: str
    category_tags: tuple[str, ...] = ()
    group_id: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate entity data."""
        if self.id <= 0:
            raise ValueError("Entity id must be positive")

        if not self.display_name.strip():
            raise ValueError("Display name cannot be empty")

    @property
    def image_url(self) -> str:
        """Official artwork URL for this entity."""
        return ARTWORK_URL.format(id=self.id)

    @property
    def tags_label(self) -> str:
        """Category tags joined for display, e.g. ``"grass, poison"``."""
        return ", ".join(self.category_tags)


@dataclass(frozen=True, slots=True)
class ListFilters:
    """Browse criteria. ``None`` means the criterion is not applied."""

    type: Optional[str] = None
    generation: Optional[int] = None
    ability: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.type and self.generation is None and not self.ability

    def with_updates(self, **changes) -> "ListFilters":
        """Create new instance with updated fields.

        Example:
            >>> ListFilters(type="fire").with_updates(generation=1)
            ListFilters(type='fire', generation=1, ability=None)
        """
        return replace(self, **changes)


# Intents


@dataclass(frozen=True)
class LoadList:
    """(Re)start browsing from page 1 with the given criteria."""

    filters: ListFilters = field(default_factory=ListFilters)
    sort_order: SortOrder = SortOrder.ASC
    sort_by: SortKey = SortKey.ID
    focus_id: int = 1


@dataclass(frozen=True)
class LoadMore:
    """Fetch the next page in whichever mode is active."""


@dataclass(frozen=True)
class Search:
    """Switch to (or leave, with an empty query) search mode."""

    query: str


@dataclass(frozen=True)
class UpdateFilters:
    """Same as LoadList, issued from the filter dialog."""

    filters: ListFilters = field(default_factory=ListFilters)
    sort_order: SortOrder = SortOrder.ASC
    sort_by: SortKey = SortKey.ID


Intent = Union[LoadList, LoadMore, Search, UpdateFilters]


# View states


@dataclass(frozen=True)
class Idle:
    """Nothing requested yet."""


@dataclass(frozen=True)
class Fetching:
    """A replacing request (load or search) is in flight."""


@dataclass(frozen=True)
class Ready:
    """Accumulated list for the current mode and criteria.

    ``load_more_error`` carries user-facing wording for a failed append; the
    list stays visible and the message is meant for a transient banner.
    """

    items: tuple[Entity, ...] = ()
    active_focus_id: int = 1
    search_query: str = ""
    filters: ListFilters = field(default_factory=ListFilters)
    sort_order: SortOrder = SortOrder.ASC
    sort_by: SortKey = SortKey.ID
    exhausted: bool = False
    search_page_cursor: int = 0
    load_more_error: Optional[str] = None

    @property
    def is_search_mode(self) -> bool:
        return bool(self.search_query)

    def with_updates(self, **changes) -> "Ready":
        """Create new instance with updated fields."""
        return replace(self, **changes)


@dataclass(frozen=True)
class Failed:
    """A replacing request failed; no list is retained."""

    message: str


ViewState = Union[Idle, Fetching, Ready, Failed]
