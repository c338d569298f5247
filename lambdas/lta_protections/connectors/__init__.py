"""Connectors to the NPS protection API.

Example:
    >>> from lta_protections.connectors import NpsConnector, ConnectorConfig
    >>> connector = NpsConnector(ConnectorConfig(base_url="https://nps.example.com"))
"""

from lta_protections.connectors.base import (
    ConnectorConfig,
    NpsResponse,
    ProtectionConnector,
)
from lta_protections.connectors.nps import NpsConnector

__all__ = [
    "ConnectorConfig",
    "NpsConnector",
    "NpsResponse",
    "ProtectionConnector",
]
