"""
Lifetime allowance protections API Lambda.

Routes:
    POST /individuals/<nino>/protections   apply for a protection
    GET  /individuals/<nino>/protections   read existing protections

Environment Variables:
    NPS_BASE_URL: Base URL of the NPS API (required)
    NPS_AUTH_TOKEN: Bearer token for NPS
    NPS_ENVIRONMENT: Environment header value for NPS
    NPS_TIMEOUT_SECONDS: Per-request timeout (default 30)
    MAX_RETRIES: Retry attempts for transient NPS failures (default 3)
    INITIAL_BACKOFF_SECONDS: Initial retry backoff (default 1.0)
    AUDIT_EVENT_BUS_NAME: EventBridge bus for audit events
    VOCABULARY_CONFIG_S3_PATH / CONFIG_BUCKET: Vocabulary override in S3
"""

import json
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.event_handler import (
    APIGatewayRestResolver,
    Response,
    content_types,
)
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import TypeAdapter, ValidationError

from lta_protections.service import (
    FailureClass,
    HttpResponseDetails,
    ProtectionService,
    ServiceConfig,
)

logger = Logger()
tracer = Tracer()
metrics = Metrics(namespace="LtaProtections")

app = APIGatewayRestResolver(serializer=lambda x: json.dumps(x, default=str))

_protection_service: ProtectionService | None = None

TRANSFORMATION_FAILURE_CLASSES = frozenset(
    {FailureClass.BAD_REQUEST, FailureClass.RESPONSE_TRANSFORMATION}
)

# POST bodies must decode to a JSON object
APPLICATION_BODY: TypeAdapter[dict[str, Any]] = TypeAdapter(dict[str, Any])


def get_protection_service() -> ProtectionService:
    """Return the service, building it from the environment on first use."""
    global _protection_service
    if _protection_service is None:
        _protection_service = ProtectionService.from_config(ServiceConfig.from_env())
    return _protection_service


def set_protection_service(service: ProtectionService | None) -> None:
    """Replace the service (None rebuilds it from the environment on next use)."""
    global _protection_service
    _protection_service = service


def _record_metrics(details: HttpResponseDetails) -> None:
    if details.failure_class in TRANSFORMATION_FAILURE_CLASSES:
        metrics.add_metric(name="TransformationFailures", unit=MetricUnit.Count, value=1)
    elif details.failure_class == FailureClass.DOWNSTREAM_REJECTION:
        metrics.add_metric(name="DownstreamRejections", unit=MetricUnit.Count, value=1)
    elif details.failure_class == FailureClass.DOWNSTREAM_UNAVAILABLE:
        metrics.add_metric(name="DownstreamUnavailable", unit=MetricUnit.Count, value=1)


def to_response(details: HttpResponseDetails) -> Response:
    _record_metrics(details)
    return Response(
        status_code=details.status,
        content_type=content_types.APPLICATION_JSON,
        body=json.dumps(details.to_response_body(), default=str),
    )


def _invalid_body(message: str) -> Response:
    return to_response(
        HttpResponseDetails(
            status=400,
            failure_class=FailureClass.BAD_REQUEST,
            message=message,
        )
    )


@app.post("/individuals/<nino>/protections")
@tracer.capture_method
def apply_for_protection(nino: str) -> Response:
    if not app.current_event.body:
        return _invalid_body("Request body is required")
    try:
        application = APPLICATION_BODY.validate_json(app.current_event.decoded_body)
    except ValidationError as e:
        if any(error["type"] == "json_invalid" for error in e.errors()):
            logger.warning("Protection application body is not valid JSON")
            return _invalid_body("Request body must be valid JSON")
        logger.warning("Protection application body is not a JSON object")
        return _invalid_body("Request body must be a JSON object")

    details = get_protection_service().apply_for_protection(nino, application)
    logger.info(
        "Protection application processed",
        extra={"status_code": details.status, "failure_class": details.failure_class},
    )
    return to_response(details)


@app.get("/individuals/<nino>/protections")
@tracer.capture_method
def read_existing_protections(nino: str) -> Response:
    details = get_protection_service().read_existing_protections(nino)
    logger.info(
        "Existing protections read",
        extra={"status_code": details.status, "failure_class": details.failure_class},
    )
    return to_response(details)


@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Main Lambda handler

    Args:
        event: API Gateway event
        context: Lambda context

    Returns:
        API Gateway response
    """
    try:
        return app.resolve(event, context)
    except ValueError:
        logger.exception("Invalid service configuration")
        return {
            "statusCode": 500,
            "headers": {"Content-Type": content_types.APPLICATION_JSON},
            "body": json.dumps(
                {"message": "Service misconfigured", "failure_class": None, "errors": []}
            ),
        }
