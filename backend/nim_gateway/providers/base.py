from abc import ABC, abstractmethod
from typing import Any

from nim_gateway.models.request import ChatCompletionRequest


class BaseProvider(ABC):
    """Abstract base class for upstream completion providers."""

    provider_name: str = ""

    @property
    @abstractmethod
    def configured(self) -> bool:
        """True when credentials for the upstream are available."""
        ...

    @abstractmethod
    def ensure_configured(self) -> None:
        """Raise ConfigurationError when the provider cannot be called."""
        ...

    @abstractmethod
    async def fetch_completion(self, request: ChatCompletionRequest) -> Any:
        """Non-streaming completion. Returns the raw upstream JSON body."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Returns True if the provider is reachable."""
        ...

    async def aclose(self) -> None:
        return None
