from unittest.mock import MagicMock, Mock, patch
from uuid import uuid4

import pytest

from intake_api.schemas.reasoning import ReasoningRequest, ReasoningResult
from intake_api.services.reasoning_client import ReasoningClient, ReasoningServiceError


@pytest.fixture
def reasoning_request():
    return ReasoningRequest(
        conversation_id=uuid4(),
        patient_phone="15551234567",
        hospital_id=uuid4(),
        hospital_name="St. Mary Hospital",
        message="I have a fever",
        transcript=[{"role": "patient", "content": "I have a fever"}],
        conversation_state="greeting",
    )


def mock_response(status_code=200, json_data=None, json_error=None):
    response = Mock()
    response.status_code = status_code
    response.is_success = 200 <= status_code < 300
    response.text = ""
    if json_error:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_data
    return response


class TestReasoningClient:
    @patch("intake_api.services.reasoning_client.httpx.Client")
    def test_parses_camel_case_reply(self, mock_client_class, reasoning_request):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_client.post.return_value = mock_response(
            json_data={
                "response": "How long have you had the fever?",
                "newState": "collecting",
                "symptoms": ["fever"],
                "triageLevel": "LOW",
                "createAppointment": False,
            }
        )

        result = ReasoningClient("http://reasoning", api_key="test-key").converse(reasoning_request)

        assert result.response == "How long have you had the fever?"
        assert result.new_state == "collecting"
        assert result.symptoms == ["fever"]
        assert result.triage_level == "LOW"
        assert result.create_appointment is False
        assert result.patient_name is None

    @patch("intake_api.services.reasoning_client.httpx.Client")
    def test_sends_full_context(self, mock_client_class, reasoning_request):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_client.post.return_value = mock_response(json_data={"response": "ok"})

        ReasoningClient("http://reasoning", api_key="test-key").converse(reasoning_request)

        call_args = mock_client.post.call_args
        payload = call_args[1]["json"]
        assert call_args[1]["headers"]["Authorization"] == "Bearer test-key"
        assert payload["conversationId"] == str(reasoning_request.conversation_id)
        assert payload["hospitalName"] == "St. Mary Hospital"
        assert payload["conversationState"] == "greeting"
        assert payload["transcript"] == reasoning_request.transcript
        assert payload["existingSymptoms"] is None

    @patch("intake_api.services.reasoning_client.httpx.Client")
    def test_non_200_raises(self, mock_client_class, reasoning_request):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_client.post.return_value = mock_response(status_code=502)

        with pytest.raises(ReasoningServiceError) as exc:
            ReasoningClient("http://reasoning").converse(reasoning_request)
        assert exc.value.status_code == 502

    @patch("intake_api.services.reasoning_client.httpx.Client")
    def test_non_json_raises(self, mock_client_class, reasoning_request):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_client.post.return_value = mock_response(json_error=ValueError("no json"))

        with pytest.raises(ReasoningServiceError):
            ReasoningClient("http://reasoning").converse(reasoning_request)

    @patch("intake_api.services.reasoning_client.httpx.Client")
    def test_non_object_payload_raises(self, mock_client_class, reasoning_request):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_client.post.return_value = mock_response(json_data=["not", "an", "object"])

        with pytest.raises(ReasoningServiceError):
            ReasoningClient("http://reasoning").converse(reasoning_request)

    @patch("intake_api.services.reasoning_client.httpx.Client")
    def test_invalid_field_types_raise(self, mock_client_class, reasoning_request):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_client.post.return_value = mock_response(json_data={"response": "ok", "urgencyScore": "very"})

        with pytest.raises(ReasoningServiceError):
            ReasoningClient("http://reasoning").converse(reasoning_request)

    @patch("intake_api.services.reasoning_client.httpx.Client")
    def test_fractional_urgency_score_accepted(self, mock_client_class, reasoning_request):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_client.post.return_value = mock_response(json_data={"response": "ok", "urgencyScore": 7.5})

        result = ReasoningClient("http://reasoning").converse(reasoning_request)

        assert result.urgency_score == 8


class TestReasoningResultUrgencyScore:
    def test_rounds_fractional_scores(self):
        assert ReasoningResult.model_validate({"urgencyScore": 6.2}).urgency_score == 6
        assert ReasoningResult.model_validate({"urgencyScore": 6.5}).urgency_score == 7

    def test_integer_and_missing_scores_unchanged(self):
        assert ReasoningResult.model_validate({"urgencyScore": 4}).urgency_score == 4
        assert ReasoningResult.model_validate({}).urgency_score is None
