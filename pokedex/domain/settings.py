"""Application settings with Pydantic validation.

Settings are stored as JSON and validated using Pydantic models.
"""

from pydantic import BaseModel, Field

from pokedex.domain.models import PAGE_SIZE


class ApiSettings(BaseModel):
    """Remote query API configuration."""

    endpoint: str = "https://beta.pokeapi.co/graphql/v1beta"
    timeout_seconds: float = Field(default=15.0, gt=0, le=120)

    # Retry policy for transient transport failures
    max_retries: int = Field(default=2, ge=0, le=10)
    initial_retry_delay: float = Field(default=0.5, ge=0)
    max_retry_delay: float = Field(default=5.0, ge=0)

    model_config = {"validate_assignment": True}


class PagingSettings(BaseModel):
    """List pagination configuration."""

    page_size: int = Field(default=PAGE_SIZE, ge=1, le=200)

    model_config = {"validate_assignment": True}


class SearchSettings(BaseModel):
    """Live search configuration."""

    debounce_ms: int = Field(default=500, ge=0, le=5000)

    model_config = {"validate_assignment": True}


class ScrollSettings(BaseModel):
    """Infinite scroll configuration."""

    # Fraction of the maximum scroll extent that triggers "load more"
    threshold: float = Field(default=0.9, ge=0.5, le=1.0)

    model_config = {"validate_assignment": True}


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")


class AppSettings(BaseModel):
    """Application settings with validation.

    All settings are validated using Pydantic. Invalid values will raise
    validation errors when loading from JSON.

    Example:
        >>> settings = AppSettings()
        >>> settings.search.debounce_ms = 300
        >>> settings.paging.page_size
        50
    """

    api: ApiSettings = Field(default_factory=ApiSettings)
    paging: PagingSettings = Field(default_factory=PagingSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    scroll: ScrollSettings = Field(default_factory=ScrollSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = {"validate_assignment": True}
