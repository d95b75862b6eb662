"""PokeAPI GraphQL data source.

Builds list and search queries with GraphQL variables, posts them with an
injected ``httpx.AsyncClient`` and validates each returned row into an
``Entity`` before it leaves this module.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from pokedex.data.resilience import with_retry
from pokedex.data.source import (
    DataSource,
    DataSourceError,
    MalformedResponseError,
    TransportError,
)
from pokedex.domain.models import PAGE_SIZE, Entity, ListFilters, SortKey, SortOrder
from pokedex.domain.settings import ApiSettings

logger = logging.getLogger(__name__)


LIST_FIELDS = """
    id
    name
    pokemon_v2_pokemontypes {
      pokemon_v2_type {
        name
      }
    }
    pokemon_v2_pokemonspecy {
      generation_id
    }
"""

LIST_QUERY = """
query PokemonList(
  $where: pokemon_v2_pokemon_bool_exp!,
  $limit: Int!,
  $offset: Int!,
  $orderBy: [pokemon_v2_pokemon_order_by!]
) {
  pokemon_v2_pokemon(where: $where, limit: $limit, offset: $offset, order_by: $orderBy) {%s}
}
""" % LIST_FIELDS

SEARCH_QUERY = """
query SearchPokemonByName($pattern: String!, $limit: Int!, $offset: Int!) {
  pokemon_v2_pokemon(
    where: {name: {_ilike: $pattern}},
    limit: $limit,
    offset: $offset,
    order_by: {id: asc}
  ) {%s}
}
""" % LIST_FIELDS


class _TypeName(BaseModel):
    name: str


class _TypeSlot(BaseModel):
    type: _TypeName = Field(alias="pokemon_v2_type")


class _Species(BaseModel):
    generation_id: Optional[int] = None


class PokemonRow(BaseModel):
    """One row of ``pokemon_v2_pokemon`` as returned by the list queries."""

    id: int
    name: str
    types: list[_TypeSlot] = Field(default_factory=list, alias="pokemon_v2_pokemontypes")
    species: Optional[_Species] = Field(default=None, alias="pokemon_v2_pokemonspecy")

    def to_entity(self) -> Entity:
        return Entity(
            id=self.id,
            display_name=self.name,
            category_tags=tuple(slot.type.name for slot in self.types),
            group_id=self.species.generation_id if self.species else None,
        )


_ROWS = TypeAdapter(list[PokemonRow])


def build_where(filters: ListFilters) -> dict[str, Any]:
    """Translate browse filters into a Hasura ``bool_exp``.

    Args:
        filters: Browse criteria

    Returns:
        Where expression; empty dict matches everything

    Example:
        >>> build_where(ListFilters(generation=1))
        {'pokemon_v2_pokemonspecy': {'generation_id': {'_eq': 1}}}
    """
    where: dict[str, Any] = {}

    if filters.type:
        where["pokemon_v2_pokemontypes"] = {
            "pokemon_v2_type": {"name": {"_eq": filters.type}}
        }

    if filters.generation is not None:
        where["pokemon_v2_pokemonspecy"] = {
            "generation_id": {"_eq": filters.generation}
        }

    if filters.ability:
        where["pokemon_v2_pokemonabilities"] = {
            "pokemon_v2_ability": {"name": {"_ilike": f"%{filters.ability}%"}}
        }

    return where


def parse_rows(payload: Any) -> list[Entity]:
    """Validate a GraphQL response body into entities.

    Args:
        payload: Decoded JSON response

    Returns:
        Entities in response order

    Raises:
        MalformedResponseError: If the payload has errors or an unexpected shape
    """
    if not isinstance(payload, dict):
        raise MalformedResponseError("Response is not a JSON object")

    if payload.get("errors"):
        messages = "; ".join(
            str(error.get("message", error)) if isinstance(error, dict) else str(error)
            for error in payload["errors"]
        )
        raise MalformedResponseError("Query rejected by server", messages)

    data = payload.get("data")
    if not isinstance(data, dict):
        raise MalformedResponseError("Response has no data")

    rows = data.get("pokemon_v2_pokemon")
    if rows is None:
        return []

    try:
        return [row.to_entity() for row in _ROWS.validate_python(rows)]
    except (ValidationError, ValueError) as e:
        raise MalformedResponseError("Unexpected list item shape", str(e)) from e


class GraphQLDataSource(DataSource):
    """Data source backed by the PokeAPI GraphQL endpoint.

    Example:
        >>> async with httpx.AsyncClient() as client:
        ...     source = GraphQLDataSource(client, "https://beta.pokeapi.co/graphql/v1beta")
        ...     first_page = await source.fetch_page(ListFilters(), SortOrder.ASC, SortKey.ID, 1)
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoint: str,
        page_size: int = PAGE_SIZE,
        max_retries: int = 2,
        initial_retry_delay: float = 0.5,
        max_retry_delay: float = 5.0,
        owns_client: bool = False,
    ):
        """Initialize data source.

        Args:
            client: HTTP client used for every request
            endpoint: GraphQL endpoint URL
            page_size: Rows per page
            max_retries: Retry attempts for transient failures
            initial_retry_delay: First backoff delay in seconds
            max_retry_delay: Backoff cap in seconds
            owns_client: Close ``client`` in ``close()``
        """
        self._client = client
        self._endpoint = endpoint
        self._page_size = page_size
        self._max_retries = max_retries
        self._initial_retry_delay = initial_retry_delay
        self._max_retry_delay = max_retry_delay
        self._owns_client = owns_client

    @classmethod
    def from_settings(cls, settings: ApiSettings, page_size: int = PAGE_SIZE) -> "GraphQLDataSource":
        """Create a data source with its own HTTP client.

        Args:
            settings: API settings
            page_size: Rows per page

        Returns:
            Data source that closes its client on ``close()``
        """
        client = httpx.AsyncClient(timeout=settings.timeout_seconds)
        return cls(
            client,
            settings.endpoint,
            page_size=page_size,
            max_retries=settings.max_retries,
            initial_retry_delay=settings.initial_retry_delay,
            max_retry_delay=settings.max_retry_delay,
            owns_client=True,
        )

    @property
    def page_size(self) -> int:
        return self._page_size

    def _offset(self, page: int) -> int:
        return (max(page, 1) - 1) * self._page_size

    async def fetch_page(
        self,
        filters: ListFilters,
        sort_order: SortOrder,
        sort_by: SortKey,
        page: int,
    ) -> list[Entity]:
        variables = {
            "where": build_where(filters),
            "limit": self._page_size,
            "offset": self._offset(page),
            "orderBy": [{sort_by.value: sort_order.value}],
        }
        logger.debug(f"Fetching browse page {page} ({filters}, {sort_by.value} {sort_order.value})")
        return await self._query(LIST_QUERY, variables)

    async def search_page(self, query: str, page: int) -> list[Entity]:
        variables = {
            "pattern": f"%{query}%",
            "limit": self._page_size,
            "offset": self._offset(page),
        }
        logger.debug(f"Fetching search page {page} for {query!r}")
        return await self._query(SEARCH_QUERY, variables)

    async def _post(self, body: dict[str, Any]) -> Any:
        response = await self._client.post(self._endpoint, json=body)
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError("Response is not valid JSON", str(e)) from e

    async def _query(self, document: str, variables: dict[str, Any]) -> list[Entity]:
        body = {"query": document, "variables": variables}

        try:
            payload = await with_retry(
                lambda: self._post(body),
                max_retries=self._max_retries,
                initial_delay=self._initial_retry_delay,
                max_delay=self._max_retry_delay,
            )
        except DataSourceError:
            raise
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise TransportError(
                f"Server returned HTTP {status}", e.response.text, status_code=status
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(str(e) or type(e).__name__) from e

        entities = parse_rows(payload)
        logger.debug(f"Received {len(entities)} entities")
        return entities

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
