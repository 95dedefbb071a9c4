from typing import Optional

import httpx
from pydantic import ValidationError

from intake_api.logging_config import get_logger
from intake_api.schemas.reasoning import ReasoningRequest, ReasoningResult

logger = get_logger("reasoning_client")


class ReasoningServiceError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ReasoningClient:
    """Client for the triage conversation service.

    The service is a black box: it receives the whole conversation and returns
    the reply plus whichever patient fields it managed to extract.
    """

    def __init__(self, url: str, api_key: Optional[str] = None, timeout_seconds: float = 60.0):
        self.url = url
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

    def converse(self, request: ReasoningRequest) -> ReasoningResult:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        logger.debug(
            f"Reasoning request: conversation={request.conversation_id}, turns={len(request.transcript)}"
        )
        with httpx.Client(timeout=self.timeout_seconds) as client:
            response = client.post(
                self.url,
                headers=headers,
                json=request.model_dump(mode="json", by_alias=True),
            )

        if not response.is_success:
            logger.error(f"Reasoning service error: status={response.status_code}, body={response.text[:200]}")
            raise ReasoningServiceError(
                f"Reasoning service error: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ReasoningServiceError("Reasoning service returned non-JSON response") from exc

        if not isinstance(data, dict):
            raise ReasoningServiceError("Reasoning service returned unexpected payload")

        try:
            result = ReasoningResult.model_validate(data)
        except ValidationError as exc:
            raise ReasoningServiceError(f"Invalid reasoning response: {exc.error_count()} field error(s)") from exc

        logger.info(
            "Reasoning response received",
            extra={
                "context": {
                    "conversation_id": str(request.conversation_id),
                    "new_state": result.new_state,
                    "triage_level": result.triage_level,
                    "create_appointment": result.create_appointment,
                }
            },
        )
        return result
