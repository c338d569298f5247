"""Base connector interface for the NPS protection API.

A connector performs the HTTP calls for the protection service and reports
what came back as an NpsResponse. It never raises for HTTP or network
failures; the service decides what a failed call means for the client.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from lta_protections.retry import RetryConfig

# NPS endpoint paths, formatted with the NINO without its suffix
APPLY_PATH = "/pensions/individual/{nino}/protection"
READ_PATH = "/pensions/individual/{nino}/protections"


@dataclass
class ConnectorConfig:
    """Configuration for an NPS connector.

    Attributes:
        base_url: Base URL of the NPS API, without a trailing slash
        auth_token: Bearer token sent in the Authorization header (optional)
        environment: Value of the Environment header NPS routes on
        timeout_seconds: Per-request timeout
        retry: Retry behavior for transient failures
    """

    base_url: str
    auth_token: str | None = None
    environment: str = ""
    timeout_seconds: float = 30
    retry: RetryConfig = field(default_factory=RetryConfig)

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url is required")
        self.base_url = self.base_url.rstrip("/")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")


@dataclass
class NpsResponse:
    """Outcome of one NPS call.

    Attributes:
        status: HTTP status code, or None when no response was received
        body: Parsed JSON object body, or None when absent or not an object
        error_message: Description of the failure when status is None
        raw_text: Unparsed body text, kept for audit when body is None
    """

    status: int | None
    body: dict[str, Any] | None = None
    error_message: str | None = None
    raw_text: str | None = None

    @property
    def received(self) -> bool:
        return self.status is not None

    @property
    def succeeded(self) -> bool:
        return self.status is not None and 200 <= self.status < 300


class ProtectionConnector(ABC):
    """Abstract base class for connectors to the NPS protection API."""

    def __init__(self, config: ConnectorConfig):
        self.config: ConnectorConfig = config

    @abstractmethod
    def apply_for_protection(
        self, nino_without_suffix: str, body: dict[str, Any]
    ) -> NpsResponse:
        """Submit a protection application.

        Args:
            nino_without_suffix: The NINO with its suffix dropped
            body: NPS application request body

        Returns:
            NpsResponse describing the outcome
        """

    @abstractmethod
    def read_existing_protections(self, nino_without_suffix: str) -> NpsResponse:
        """Read the protections already held by an individual."""
