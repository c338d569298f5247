"""
Protection service: client requests -> NPS calls -> client responses.

Each operation splits the NINO, transforms the client request into the NPS
wire format, calls NPS through the connector, audits the exchange and
transforms the NPS response back. Outcomes are returned as
HttpResponseDetails; the service does not raise for bad input or NPS
failures.

Failure classes:
    bad_request: The client request could not be transformed (400)
    response_transformation: NPS accepted the call but its response could not
        be transformed (500)
    downstream_rejection: NPS answered with a non-2xx status (passed through)
    downstream_unavailable: No response from NPS (502)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Callable

from aws_lambda_powertools import Logger

from lta_protections.audit import (
    AuditPublisher,
    NpsLtaAuditEvent,
    create_allowance_event,
    read_allowances_event,
)
from lta_protections.connectors import ConnectorConfig, NpsConnector
from lta_protections.connectors.base import (
    APPLY_PATH,
    READ_PATH,
    NpsResponse,
    ProtectionConnector,
)
from lta_protections.nino import NinoError, SplitNino, split_nino
from lta_protections.retry import RetryConfig
from lta_protections.transformers import (
    ApplicationRequestTransformer,
    ApplicationResponseTransformer,
    ReadResponseTransformer,
    TransformResult,
    Vocabularies,
)
from lta_protections.transformers.config_loader import get_vocabularies

logger = Logger()


class FailureClass:
    """Classification of a failed operation, reported to the client."""

    BAD_REQUEST = "bad_request"
    RESPONSE_TRANSFORMATION = "response_transformation"
    DOWNSTREAM_REJECTION = "downstream_rejection"
    DOWNSTREAM_UNAVAILABLE = "downstream_unavailable"


@dataclass
class ServiceConfig:
    """Configuration for the protection service.

    Attributes:
        nps_base_url: Base URL of the NPS API
        nps_auth_token: Bearer token for NPS (optional)
        nps_environment: Environment header value for NPS
        timeout_seconds: Per-request timeout for NPS calls
        max_retries: Maximum retry attempts for transient NPS failures
        initial_backoff_seconds: Initial backoff delay for retries
        audit_event_bus_name: EventBridge bus for audit events (optional)
    """

    nps_base_url: str
    nps_auth_token: str | None = None
    nps_environment: str = ""
    timeout_seconds: float = 30
    max_retries: int = 3
    initial_backoff_seconds: float = 1.0
    audit_event_bus_name: str | None = None

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> ServiceConfig:
        """Create ServiceConfig from a dictionary.

        Raises:
            ValueError: If required fields are missing or values are invalid
        """
        required_fields = ["nps_base_url"]
        missing = [f for f in required_fields if not config.get(f)]
        if missing:
            raise ValueError(f"Missing required configuration fields: {missing}")

        try:
            timeout_seconds = float(config.get("timeout_seconds", 30))
            max_retries = int(config.get("max_retries", 3))
            initial_backoff_seconds = float(config.get("initial_backoff_seconds", 1.0))
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid numeric configuration value: {e}") from e

        return cls(
            nps_base_url=config["nps_base_url"],
            nps_auth_token=config.get("nps_auth_token") or None,
            nps_environment=config.get("nps_environment", ""),
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
            initial_backoff_seconds=initial_backoff_seconds,
            audit_event_bus_name=config.get("audit_event_bus_name") or None,
        )

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> ServiceConfig:
        """Create ServiceConfig from environment variables."""
        env = os.environ if environ is None else environ
        config: dict[str, Any] = {
            "nps_base_url": env.get("NPS_BASE_URL", ""),
            "nps_auth_token": env.get("NPS_AUTH_TOKEN"),
            "nps_environment": env.get("NPS_ENVIRONMENT", ""),
            "audit_event_bus_name": env.get("AUDIT_EVENT_BUS_NAME"),
        }
        # Only override defaults for variables that are set
        for key, var in (
            ("timeout_seconds", "NPS_TIMEOUT_SECONDS"),
            ("max_retries", "MAX_RETRIES"),
            ("initial_backoff_seconds", "INITIAL_BACKOFF_SECONDS"),
        ):
            if env.get(var):
                config[key] = env[var]
        return cls.from_dict(config)

    def to_connector_config(self) -> ConnectorConfig:
        return ConnectorConfig(
            base_url=self.nps_base_url,
            auth_token=self.nps_auth_token,
            environment=self.nps_environment,
            timeout_seconds=self.timeout_seconds,
            retry=RetryConfig(
                max_retries=self.max_retries,
                initial_backoff_seconds=self.initial_backoff_seconds,
            ),
        )


@dataclass
class HttpResponseDetails:
    """Status and body to return to the client.

    Attributes:
        status: HTTP status code
        body: Client record (or NPS body for a rejection), if any
        failure_class: One of FailureClass, None on success
        message: Description of the failure
        errors: Serialized issues explaining the failure
    """

    status: int
    body: dict[str, Any] | None = None
    failure_class: str | None = None
    message: str | None = None
    errors: list[dict[str, Any]] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.failure_class is None

    def to_response_body(self) -> dict[str, Any]:
        """Body sent to the client.

        Successes and NPS rejections carrying a body return that body; every
        other failure returns a description of what went wrong.
        """
        if self.succeeded or (
            self.failure_class == FailureClass.DOWNSTREAM_REJECTION
            and self.body is not None
        ):
            return self.body or {}
        return {
            "message": self.message,
            "failure_class": self.failure_class,
            "errors": self.errors,
        }


def _bad_request(message: str, errors: list[dict[str, Any]]) -> HttpResponseDetails:
    return HttpResponseDetails(
        status=400,
        failure_class=FailureClass.BAD_REQUEST,
        message=message,
        errors=errors,
    )


def _issue_dicts(result: TransformResult) -> list[dict[str, Any]]:
    return [issue.to_dict() for issue in result.issues]


class ProtectionService:
    """Applies for and reads lifetime allowance protections through NPS."""

    def __init__(
        self,
        connector: ProtectionConnector,
        audit_publisher: AuditPublisher | None = None,
        vocabularies: Vocabularies | None = None,
    ):
        vocabularies = vocabularies or get_vocabularies()
        self.connector = connector
        self.audit_publisher = audit_publisher or AuditPublisher()
        self.request_transformer = ApplicationRequestTransformer(vocabularies)
        self.response_transformer = ApplicationResponseTransformer(vocabularies)
        self.read_transformer = ReadResponseTransformer(vocabularies)

    @classmethod
    def from_config(cls, config: ServiceConfig) -> ProtectionService:
        connector = NpsConnector(config.to_connector_config())
        return cls(
            connector=connector,
            audit_publisher=AuditPublisher(config.audit_event_bus_name),
        )

    def apply_for_protection(self, nino: str, application: Any) -> HttpResponseDetails:
        """Submit a client protection application to NPS.

        Args:
            nino: NINO including its suffix
            application: Client request body

        Returns:
            HttpResponseDetails for the client
        """
        split = self._split_nino(nino)
        if isinstance(split, HttpResponseDetails):
            return split

        request = self.request_transformer.transform(split.nino_without_suffix, application)
        if not request.success:
            logger.warning(
                "Rejected protection application",
                extra={"issue_count": len(request.issues)},
            )
            return _bad_request("Invalid protection application", _issue_dicts(request))

        response = self.connector.apply_for_protection(
            split.nino_without_suffix, request.unwrap()
        )

        protection_type = application.get("protectionType")
        self._audit(
            create_allowance_event(
                nino=split.nino_without_suffix,
                path=APPLY_PATH.format(nino=split.nino_without_suffix),
                status_code=response.status,
                request_body=request.record,
                response_body=response.body,
                response_text=response.raw_text,
                protection_type=protection_type if isinstance(protection_type, str) else None,
            )
        )

        suffix = split.suffix or ""
        return self._build_response(
            response,
            lambda body: self.response_transformer.transform(suffix, body),
        )

    def read_existing_protections(self, nino: str) -> HttpResponseDetails:
        """Read the protections held by an individual from NPS."""
        split = self._split_nino(nino)
        if isinstance(split, HttpResponseDetails):
            return split

        response = self.connector.read_existing_protections(split.nino_without_suffix)

        self._audit(
            read_allowances_event(
                nino=split.nino_without_suffix,
                path=READ_PATH.format(nino=split.nino_without_suffix),
                status_code=response.status,
                response_body=response.body,
                response_text=response.raw_text,
            )
        )

        suffix = split.suffix or ""
        return self._build_response(
            response,
            lambda body: self.read_transformer.transform(suffix, body),
        )

    def _split_nino(self, nino: str) -> SplitNino | HttpResponseDetails:
        try:
            split = split_nino(nino)
        except NinoError as e:
            return _bad_request(
                "Invalid NINO", [{"field_path": "nino", "message": str(e)}]
            )
        if not split.has_suffix:
            return _bad_request(
                "Invalid NINO",
                [{"field_path": "nino", "message": "NINO suffix is required"}],
            )
        return split

    def _audit(self, event: NpsLtaAuditEvent) -> None:
        self.audit_publisher.publish(event)

    def _build_response(
        self,
        response: NpsResponse,
        transform: Callable[[Any], TransformResult],
    ) -> HttpResponseDetails:
        if not response.received:
            logger.error(
                "NPS unavailable",
                extra={"error": response.error_message},
            )
            return HttpResponseDetails(
                status=502,
                failure_class=FailureClass.DOWNSTREAM_UNAVAILABLE,
                message=response.error_message or "No response from NPS",
            )

        status = response.status or 502

        if response.succeeded:
            result = transform(response.body)
            if not result.success:
                logger.error(
                    "Unable to transform NPS response",
                    extra={"status_code": status, "issue_count": len(result.issues)},
                )
                return HttpResponseDetails(
                    status=500,
                    failure_class=FailureClass.RESPONSE_TRANSFORMATION,
                    message="NPS response could not be transformed",
                    errors=_issue_dicts(result),
                )
            return HttpResponseDetails(status=status, body=result.record)

        logger.warning("NPS rejected the request", extra={"status_code": status})
        body = response.body
        if body is not None:
            result = transform(body)
            if result.success:
                body = result.record
        return HttpResponseDetails(
            status=status,
            body=body,
            failure_class=FailureClass.DOWNSTREAM_REJECTION,
            message=f"NPS returned status {status}",
        )
