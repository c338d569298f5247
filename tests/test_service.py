"""
Unit tests for the protection service.
"""

import pytest

from lta_protections.connectors import NpsConnector
from lta_protections.connectors.base import NpsResponse
from lta_protections.service import (
    FailureClass,
    HttpResponseDetails,
    ProtectionService,
    ServiceConfig,
)


@pytest.fixture
def make_service(fake_connector_class, recording_publisher):
    def build(**responses):
        connector = fake_connector_class(**responses)
        service = ProtectionService(connector, audit_publisher=recording_publisher)
        return service, connector

    return build


class TestServiceConfig:
    """Tests for ServiceConfig."""

    def test_from_dict_defaults(self):
        """Test defaults for optional settings."""
        config = ServiceConfig.from_dict({"nps_base_url": "https://nps.example.com"})
        assert config.timeout_seconds == 30
        assert config.max_retries == 3
        assert config.initial_backoff_seconds == 1.0
        assert config.audit_event_bus_name is None

    def test_base_url_required(self):
        """Test that the NPS base URL is required."""
        with pytest.raises(ValueError, match="nps_base_url"):
            ServiceConfig.from_dict({})

    def test_invalid_number(self):
        """Test that a non-numeric retry count is rejected."""
        with pytest.raises(ValueError):
            ServiceConfig.from_dict({"nps_base_url": "https://nps", "max_retries": "lots"})

    def test_from_env(self):
        """Test reading settings from environment variables."""
        config = ServiceConfig.from_env(
            {
                "NPS_BASE_URL": "https://nps.example.com",
                "NPS_AUTH_TOKEN": "token",
                "NPS_ENVIRONMENT": "ist0",
                "NPS_TIMEOUT_SECONDS": "10",
                "MAX_RETRIES": "1",
                "AUDIT_EVENT_BUS_NAME": "audit-bus",
            }
        )
        assert config.timeout_seconds == 10.0
        assert config.max_retries == 1
        connector_config = config.to_connector_config()
        assert connector_config.retry.max_retries == 1
        assert connector_config.auth_token == "token"

    def test_from_config_builds_nps_connector(self):
        """Test that the service talks to NPS through an NpsConnector."""
        config = ServiceConfig.from_dict(
            {"nps_base_url": "https://nps.example.com/", "audit_event_bus_name": "audit-bus"}
        )
        service = ProtectionService.from_config(config)
        assert isinstance(service.connector, NpsConnector)
        assert service.connector.config.base_url == "https://nps.example.com"
        assert service.audit_publisher.event_bus_name == "audit-bus"


class TestApplyForProtection:
    """Tests for ProtectionService.apply_for_protection."""

    def test_success(self, make_service, nps_application_response, recording_publisher):
        """Test the full round trip."""
        service, connector = make_service(
            apply_response=NpsResponse(status=200, body=nps_application_response)
        )

        details = service.apply_for_protection("AB123456A", {"protectionType": "FP2016"})

        assert details.succeeded
        assert details.status == 200
        assert details.body["nino"] == "AB123456A"
        assert details.body["protectionType"] == "FP2016"
        assert connector.apply_calls == [
            ("AB123456", {"nino": "AB123456", "protection": {"type": 1}})
        ]
        event = recording_publisher.events[0]
        assert event.audit_type == "CreateAllowance"
        assert event.status_code == 200
        assert event.path == "/pensions/individual/AB123456/protection"

    def test_bad_request_makes_no_call(self, make_service, recording_publisher):
        """Test that an untransformable application never reaches NPS."""
        service, connector = make_service()

        details = service.apply_for_protection("AB123456A", {"protectionType": "Bogus"})

        assert details.status == 400
        assert details.failure_class == FailureClass.BAD_REQUEST
        assert details.errors[0]["kind"] == "UnknownVocabularyValue"
        assert connector.apply_calls == []
        assert recording_publisher.events == []

    def test_nino_without_suffix_rejected(self, make_service):
        """Test that the suffix is required."""
        service, connector = make_service()
        details = service.apply_for_protection("AB123456", {"protectionType": "FP2016"})
        assert details.status == 400
        assert connector.apply_calls == []

    def test_invalid_nino(self, make_service):
        """Test that a malformed NINO is a bad request."""
        service, _ = make_service()
        details = service.apply_for_protection("AB1", {"protectionType": "FP2016"})
        assert details.failure_class == FailureClass.BAD_REQUEST
        assert details.errors[0]["field_path"] == "nino"

    def test_response_transformation_failure(self, make_service):
        """Test that an untransformable 2xx body is a 500."""
        service, _ = make_service(
            apply_response=NpsResponse(status=200, body={"nino": "AB123456", "protection": {"type": 99}})
        )
        details = service.apply_for_protection("AB123456A", {"protectionType": "FP2016"})
        assert details.status == 500
        assert details.failure_class == FailureClass.RESPONSE_TRANSFORMATION
        assert details.errors[0]["kind"] == "IndexOutOfRange"

    def test_success_without_body(self, make_service):
        """Test that a 2xx with no JSON object body is a transformation failure."""
        service, _ = make_service(apply_response=NpsResponse(status=200))
        details = service.apply_for_protection("AB123456A", {"protectionType": "FP2016"})
        assert details.failure_class == FailureClass.RESPONSE_TRANSFORMATION

    def test_downstream_rejection_passes_status(self, make_service, recording_publisher):
        """Test that a 409 is passed through with the raw body."""
        service, _ = make_service(
            apply_response=NpsResponse(status=409, body={"message": "duplicate"})
        )
        details = service.apply_for_protection("AB123456A", {"protectionType": "FP2016"})
        assert details.status == 409
        assert details.failure_class == FailureClass.DOWNSTREAM_REJECTION
        assert details.body == {"message": "duplicate"}
        assert details.to_response_body() == {"message": "duplicate"}
        assert recording_publisher.events[0].status_code == 409

    def test_downstream_rejection_with_transformable_body(
        self, make_service, nps_application_response
    ):
        """Test that a rejected but well-formed body is transformed."""
        service, _ = make_service(
            apply_response=NpsResponse(status=422, body=nps_application_response)
        )
        details = service.apply_for_protection("AB123456A", {"protectionType": "FP2016"})
        assert details.status == 422
        assert details.body["nino"] == "AB123456A"

    def test_non_json_response_text_is_audited(self, make_service, recording_publisher):
        """Test that an HTML error page from NPS reaches the audit event."""
        service, _ = make_service(
            apply_response=NpsResponse(status=503, raw_text="<html>Service down</html>")
        )
        details = service.apply_for_protection("AB123456A", {"protectionType": "FP2016"})
        assert details.status == 503
        detail = recording_publisher.events[0].to_detail()
        assert detail["statusCode"] == 503
        assert detail["npsResponseText"] == "<html>Service down</html>"
        assert detail["npsResponseBody"] == {}

    def test_downstream_unavailable(self, make_service, recording_publisher):
        """Test that no response is a 502."""
        service, _ = make_service(
            apply_response=NpsResponse(status=None, error_message="ConnectionError: refused")
        )
        details = service.apply_for_protection("AB123456A", {"protectionType": "FP2016"})
        assert details.status == 502
        assert details.failure_class == FailureClass.DOWNSTREAM_UNAVAILABLE
        assert details.to_response_body()["message"] == "ConnectionError: refused"
        assert recording_publisher.events[0].status_code is None


class TestReadExistingProtections:
    """Tests for ProtectionService.read_existing_protections."""

    def test_success(self, make_service, recording_publisher):
        """Test reading and reshaping protections."""
        service, connector = make_service(
            read_response=NpsResponse(
                status=200,
                body={"nino": "AB123456", "protections": [{"id": 1, "type": 2, "status": 2}]},
            )
        )

        details = service.read_existing_protections("ab123456b")

        assert details.status == 200
        assert details.body == {
            "nino": "AB123456B",
            "protections": [{"protectionID": 1, "protectionType": "IP2014", "status": "Dormant"}],
        }
        assert connector.read_calls == ["AB123456"]
        assert recording_publisher.events[0].audit_type == "ReadAllowances"

    def test_not_found(self, make_service):
        """Test that a 404 is passed through."""
        service, _ = make_service(read_response=NpsResponse(status=404))
        details = service.read_existing_protections("AB123456A")
        assert details.status == 404
        assert details.failure_class == FailureClass.DOWNSTREAM_REJECTION
        assert details.to_response_body()["failure_class"] == "downstream_rejection"

    def test_non_json_read_response_is_audited(self, make_service, recording_publisher):
        """Test that a plain-text read failure is audited by its raw text."""
        service, _ = make_service(
            read_response=NpsResponse(status=502, raw_text="Bad Gateway")
        )
        service.read_existing_protections("AB123456A")
        detail = recording_publisher.events[0].to_detail()
        assert detail["npsResponseText"] == "Bad Gateway"


class TestHttpResponseDetails:
    """Tests for HttpResponseDetails.to_response_body."""

    def test_success_body(self):
        """Test that a success returns its body."""
        assert HttpResponseDetails(status=200, body={"a": 1}).to_response_body() == {"a": 1}

    def test_failure_body(self):
        """Test the failure description shape."""
        details = HttpResponseDetails(
            status=400,
            failure_class=FailureClass.BAD_REQUEST,
            message="Invalid",
            errors=[{"kind": "TypeMismatch"}],
        )
        assert details.to_response_body() == {
            "message": "Invalid",
            "failure_class": "bad_request",
            "errors": [{"kind": "TypeMismatch"}],
        }
