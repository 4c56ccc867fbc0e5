"""Client for the wizard query service.

A query sends a natural-language instruction together with the JSON schema
of the expected answer. The answer is validated against the same pydantic
model before it is handed back; a payload that does not fit is rejected as
a whole.
"""

from typing import Any

import httpx
from pydantic import ValidationError

from raindrop_wizard.config import Settings, get_settings
from raindrop_wizard.errors import InvalidResponseShape, RateLimited, TransportError
from raindrop_wizard.models import QueryRequest, ResponseT
from raindrop_wizard.utils.analytics import TRACE_ID, Analytics, analytics
from raindrop_wizard.utils.logging import get_logger

logger = get_logger(__name__)

TRACE_ID_HEADER = "X-Raindrop-Trace-Id"
FIXTURE_HEADER = "X-Raindrop-Wizard-Fixture-Generation"
SCHEMA_NAME = "schema"


def build_json_schema(output_schema: type[ResponseT]) -> dict[str, Any]:
    """Structured output descriptor for ``output_schema``."""
    return {
        "name": SCHEMA_NAME,
        "strict": True,
        "schema": output_schema.model_json_schema(),
    }


class RemoteQueryClient:
    """Sends structured queries to the wizard query service."""

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        telemetry: Analytics | None = None,
    ):
        self._settings = settings or get_settings()
        self._transport = transport
        self._analytics = telemetry or analytics

    def _headers(self, access_token: str) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {access_token}",
            TRACE_ID_HEADER: TRACE_ID,
        }
        if self._settings.record_fixtures:
            headers[FIXTURE_HEADER] = "true"
        return headers

    def build_body(self, request: QueryRequest[ResponseT]) -> dict[str, Any]:
        return {
            "message": request.message,
            "model": self._settings.model,
            "json_schema": build_json_schema(request.output_schema),
        }

    async def query(self, request: QueryRequest[ResponseT]) -> ResponseT:
        """Send ``request`` and return the validated answer.

        Args:
            request: Message, output schema and credentials

        Returns:
            Instance of ``request.output_schema``

        Raises:
            RateLimited: If the service answers 429
            TransportError: On any other HTTP or network failure
            InvalidResponseShape: If the payload does not fit the schema
        """
        url = self._settings.query_url(request.region)
        body = self.build_body(request)

        logger.debug(
            f"Query request to {url}",
            extra={
                "extra_data": {
                    "message": request.message[:100] + "...",
                    "json_schema": body["json_schema"],
                }
            },
        )

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.query_timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    url,
                    json=body,
                    headers=self._headers(request.access_token),
                )
                response.raise_for_status()

        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.debug(f"Query error: status {status_code}")
            self._capture(e, body, status_code)

            if status_code == 429:
                raise RateLimited("Wizard usage limit reached. Please try again later.")
            raise TransportError(
                f"Query service returned HTTP {status_code}",
                status_code=status_code,
            )

        except httpx.HTTPError as e:
            logger.debug(f"Query error: {e}")
            self._capture(e, body, None)
            raise TransportError(f"Query service request failed: {e}")

        logger.debug(f"Query response: status {response.status_code}")
        return self._validate(response, request.output_schema, body)

    def _validate(
        self,
        response: httpx.Response,
        output_schema: type[ResponseT],
        body: dict[str, Any],
    ) -> ResponseT:
        try:
            payload = response.json()
        except ValueError as e:
            self._capture(e, body, response.status_code)
            raise InvalidResponseShape("Invalid response from wizard: body is not JSON")

        if not isinstance(payload, dict) or "data" not in payload:
            error = InvalidResponseShape("Invalid response from wizard: missing data")
            self._capture(error, body, response.status_code)
            raise error

        try:
            return output_schema.model_validate(payload["data"], strict=True)
        except ValidationError as e:
            logger.debug(f"Validation error: {e}")
            self._capture(e, body, response.status_code)
            raise InvalidResponseShape(f"Invalid response from wizard: {e}")

    def _capture(
        self,
        error: BaseException,
        body: dict[str, Any],
        status_code: int | None,
    ) -> None:
        self._analytics.capture_exception(
            error,
            {
                "response_status_code": status_code,
                "message": body["message"],
                "model": body["model"],
                "json_schema": body["json_schema"],
                "type": "wizard_query_error",
            },
        )
