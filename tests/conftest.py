"""
Shared fixtures for the lifetime allowance protections tests.
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path

import pytest

# Powertools settings must be in place before any handler module is imported
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "1")
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "lta-protections")
os.environ.setdefault("POWERTOOLS_METRICS_NAMESPACE", "LtaProtections")
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-2")

LAMBDAS_DIR = Path(__file__).resolve().parent.parent / "lambdas"
if str(LAMBDAS_DIR) not in sys.path:
    sys.path.insert(0, str(LAMBDAS_DIR))

from lta_protections.connectors.base import NpsResponse, ProtectionConnector  # noqa: E402
from lta_protections.transformers.config_loader import clear_config_cache  # noqa: E402


@dataclass
class FakeLambdaContext:
    function_name: str = "lta-protections"
    memory_limit_in_mb: int = 128
    invoked_function_arn: str = (
        "arn:aws:lambda:eu-west-2:123456789012:function:lta-protections"
    )
    aws_request_id: str = "52fdfc07-2182-154f-163f-5f0f9a621d72"


class FakeConnector(ProtectionConnector):
    """Connector returning canned responses and recording its calls."""

    def __init__(self, apply_response=None, read_response=None):
        self.apply_response = apply_response or NpsResponse(status=200, body={})
        self.read_response = read_response or NpsResponse(status=200, body={})
        self.apply_calls = []
        self.read_calls = []

    def apply_for_protection(self, nino_without_suffix, body):
        self.apply_calls.append((nino_without_suffix, body))
        return self.apply_response

    def read_existing_protections(self, nino_without_suffix):
        self.read_calls.append(nino_without_suffix)
        return self.read_response


class RecordingPublisher:
    """Audit publisher keeping events in memory."""

    def __init__(self):
        self.events = []

    def publish(self, event):
        self.events.append(event)
        return True


@pytest.fixture(autouse=True)
def _reset_vocabulary_cache(monkeypatch):
    monkeypatch.delenv("VOCABULARY_CONFIG_S3_PATH", raising=False)
    monkeypatch.delenv("CONFIG_BUCKET", raising=False)
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def lambda_context():
    return FakeLambdaContext()


@pytest.fixture
def nps_application_response():
    """NPS body returned for a successful FP2016 application."""
    return {
        "nino": "AB123456",
        "pensionSchemeAdministratorCheckReference": "PSA123456789",
        "protection": {
            "id": 1,
            "version": 1,
            "type": 1,
            "status": 1,
            "certificateDate": "2015-06-01",
            "certificateTime": "14:30:00",
            "notificationID": 3,
            "protectionReference": "FP161234567890A",
        },
    }


@pytest.fixture
def fake_connector_class():
    return FakeConnector


@pytest.fixture
def recording_publisher():
    return RecordingPublisher()
