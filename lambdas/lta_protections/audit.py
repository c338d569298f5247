"""Audit events for NPS lifetime allowance calls.

Every call to NPS is audited with the request and response bodies exchanged,
the HTTP status and the NPS path. Events are published to EventBridge; a
failed publish is logged and never fails the client request.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import boto3
from aws_lambda_powertools import Logger

logger = Logger()

AUDIT_SOURCE = "lta-protections"

CREATE_ALLOWANCE_AUDIT_TYPE = "CreateAllowance"
CREATE_ALLOWANCE_TRANSACTION = "create-pensions-lifetime-allowance"
READ_ALLOWANCES_AUDIT_TYPE = "ReadAllowances"
READ_ALLOWANCES_TRANSACTION = "read-pensions-lifetime-allowances"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class NpsLtaAuditEvent:
    """One audited NPS call.

    Attributes:
        audit_type: Event type, also used as the EventBridge DetailType
        transaction_name: Business transaction the call belongs to
        nino: NINO as sent to NPS
        path: NPS request path
        status_code: HTTP status returned by NPS (None if no response)
        request_body: Body sent to NPS
        response_body: Body returned by NPS
        response_text: Raw NPS response text when the body was not a JSON object
        extra_detail: Additional string details
    """

    audit_type: str
    transaction_name: str
    nino: str
    path: str
    status_code: int | None
    request_body: dict[str, Any] | None = None
    response_body: dict[str, Any] | None = None
    response_text: str | None = None
    extra_detail: dict[str, str] = field(default_factory=dict)
    generated_at: str = field(default_factory=_utc_now)

    def to_detail(self) -> dict[str, Any]:
        detail: dict[str, Any] = {
            "auditType": self.audit_type,
            "transactionName": self.transaction_name,
            "generatedAt": self.generated_at,
            "nino": self.nino,
            "path": self.path,
            "statusCode": self.status_code,
            "npsRequestBody": self.request_body or {},
            "npsResponseBody": self.response_body or {},
        }
        if self.response_text is not None:
            detail["npsResponseText"] = self.response_text
        detail.update(self.extra_detail)
        return detail


def create_allowance_event(
    nino: str,
    path: str,
    status_code: int | None,
    request_body: dict[str, Any] | None,
    response_body: dict[str, Any] | None,
    protection_type: str | None = None,
    response_text: str | None = None,
) -> NpsLtaAuditEvent:
    """Audit event for a protection application."""
    extra = {"protectionType": protection_type} if protection_type else {}
    return NpsLtaAuditEvent(
        audit_type=CREATE_ALLOWANCE_AUDIT_TYPE,
        transaction_name=CREATE_ALLOWANCE_TRANSACTION,
        nino=nino,
        path=path,
        status_code=status_code,
        request_body=request_body,
        response_body=response_body,
        response_text=response_text,
        extra_detail=extra,
    )


def read_allowances_event(
    nino: str,
    path: str,
    status_code: int | None,
    response_body: dict[str, Any] | None,
    response_text: str | None = None,
) -> NpsLtaAuditEvent:
    """Audit event for a read of existing protections."""
    return NpsLtaAuditEvent(
        audit_type=READ_ALLOWANCES_AUDIT_TYPE,
        transaction_name=READ_ALLOWANCES_TRANSACTION,
        nino=nino,
        path=path,
        status_code=status_code,
        response_body=response_body,
        response_text=response_text,
    )


class AuditPublisher:
    """Publishes audit events to an EventBridge bus.

    With no bus name the publisher is disabled and only logs that an event
    was produced.
    """

    def __init__(self, event_bus_name: str | None = None, events_client: Any = None):
        self.event_bus_name = event_bus_name
        self._events_client = events_client

    @property
    def enabled(self) -> bool:
        return bool(self.event_bus_name)

    @property
    def events_client(self) -> Any:
        if self._events_client is None:
            self._events_client = boto3.client("events")
        return self._events_client

    def publish(self, event: NpsLtaAuditEvent) -> bool:
        """Publish event; returns False if it was not delivered."""
        log_extra = {
            "audit_type": event.audit_type,
            "path": event.path,
            "status_code": event.status_code,
        }

        if not self.enabled:
            logger.debug("Audit publishing disabled, event not sent", extra=log_extra)
            return False

        try:
            response = self.events_client.put_events(
                Entries=[
                    {
                        "Source": AUDIT_SOURCE,
                        "DetailType": event.audit_type,
                        "Detail": json.dumps(event.to_detail(), default=str),
                        "EventBusName": self.event_bus_name,
                    }
                ]
            )
        except Exception as e:  # noqa: BLE001
            logger.error(f"Audit event publish failed: {e}", extra=log_extra)
            return False

        if response.get("FailedEntryCount", 0):
            logger.error("Audit event rejected by EventBridge", extra=log_extra)
            return False

        logger.info("Published audit event", extra=log_extra)
        return True
