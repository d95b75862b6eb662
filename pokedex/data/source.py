"""Abstract data source interface for list pages.

The list engine only talks to this interface, so the remote API
(GraphQL today) can be swapped or faked without touching the engine.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pokedex.domain.models import Entity, ListFilters, SortKey, SortOrder


class DataSourceError(Exception):
    """Raised when a page cannot be fetched."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.details = details


class TransportError(DataSourceError):
    """Network failure or unsuccessful HTTP status."""

    def __init__(self, message: str, details: Optional[str] = None,
                 status_code: Optional[int] = None):
        super().__init__(message, details)
        self.status_code = status_code


class MalformedResponseError(DataSourceError):
    """Response payload could not be validated."""


class DataSource(ABC):
    """Abstract interface for paged entity lookups."""

    @abstractmethod
    async def fetch_page(
        self,
        filters: ListFilters,
        sort_order: SortOrder,
        sort_by: SortKey,
        page: int,
    ) -> list[Entity]:
        """Get one page of the browse list.

        Args:
            filters: Browse criteria
            sort_order: Ascending or descending
            sort_by: Field to order by
            page: 1-based page index

        Returns:
            At most one page of entities

        Raises:
            DataSourceError: If the page cannot be fetched
        """
        ...

    @abstractmethod
    async def search_page(self, query: str, page: int) -> list[Entity]:
        """Get one page of entities whose name matches ``query``.

        Args:
            query: Normalized, non-empty search text
            page: 1-based page index

        Returns:
            At most one page of entities

        Raises:
            DataSourceError: If the page cannot be fetched
        """
        ...

    async def close(self) -> None:
        """Release any held resources."""
