"""HTTP connector for the NPS lifetime allowance protection API.

Endpoints:
    POST {base_url}/pensions/individual/{nino}/protection    apply
    GET  {base_url}/pensions/individual/{nino}/protections   read existing
"""

from typing import Any, override

import requests
from aws_lambda_powertools import Logger

from lta_protections.connectors.base import (
    APPLY_PATH,
    READ_PATH,
    ConnectorConfig,
    NpsResponse,
    ProtectionConnector,
)
from lta_protections.retry import send_with_retry

logger = Logger()


class NpsConnector(ProtectionConnector):
    """Connector calling the NPS protection endpoints with requests.

    Example:
        >>> connector = NpsConnector(ConnectorConfig(base_url="https://nps.example.com"))
        >>> response = connector.read_existing_protections("AB123456")
        >>> response.status
        200
    """

    def __init__(self, config: ConnectorConfig, session: requests.Session | None = None):
        super().__init__(config)
        self.session: requests.Session = session or requests.Session()

    def build_headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Environment": self.config.environment,
        }
        if self.config.auth_token:
            headers["Authorization"] = f"Bearer {self.config.auth_token}"
        return headers

    def url_for(self, path_template: str, nino_without_suffix: str) -> str:
        return self.config.base_url + path_template.format(nino=nino_without_suffix)

    @override
    def apply_for_protection(
        self, nino_without_suffix: str, body: dict[str, Any]
    ) -> NpsResponse:
        url = self.url_for(APPLY_PATH, nino_without_suffix)
        return self._call("POST", url, "nps_apply_for_protection", json_body=body)

    @override
    def read_existing_protections(self, nino_without_suffix: str) -> NpsResponse:
        url = self.url_for(READ_PATH, nino_without_suffix)
        return self._call("GET", url, "nps_read_existing_protections")

    def _call(
        self,
        method: str,
        url: str,
        operation_name: str,
        json_body: dict[str, Any] | None = None,
    ) -> NpsResponse:
        headers = self.build_headers()

        def send() -> requests.Response:
            return self.session.request(
                method,
                url,
                headers=headers,
                json=json_body,
                timeout=self.config.timeout_seconds,
            )

        outcome = send_with_retry(
            send,
            config=self.config.retry,
            operation_name=operation_name,
        )

        if outcome.response is None:
            return NpsResponse(
                status=None,
                error_message=outcome.error_message or "No response from NPS",
            )

        return self._to_nps_response(outcome.response)

    @staticmethod
    def _to_nps_response(response: requests.Response) -> NpsResponse:
        try:
            parsed = response.json()
        except ValueError:
            parsed = None

        if not isinstance(parsed, dict):
            if response.text:
                logger.warning(
                    "NPS response body is not a JSON object",
                    extra={"status_code": response.status_code},
                )
            return NpsResponse(status=response.status_code, raw_text=response.text or None)

        return NpsResponse(status=response.status_code, body=parsed)
