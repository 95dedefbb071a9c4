from unittest.mock import MagicMock, Mock, patch

import httpx
import pytest

from intake_api.services.twilio_service import TwilioClient


class TestTwilioClient:
    def test_not_configured_skips_send(self):
        client = TwilioClient(None, None)

        assert client.is_configured is False
        assert client.send_whatsapp_message("15559876543", "15551234567", "hello") is None

    @patch("intake_api.services.twilio_service.httpx.Client")
    def test_sends_form_encoded_message(self, mock_client_class):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        response = Mock(status_code=201)
        response.json.return_value = {"sid": "SM1"}
        mock_client.post.return_value = response

        client = TwilioClient("AC123", "secret", api_base="https://twilio.test/")
        sent = client.send_whatsapp_message("15559876543", "15551234567", "How long?")

        assert sent == {"sid": "SM1"}
        call_args = mock_client.post.call_args
        assert call_args[0][0] == "https://twilio.test/2010-04-01/Accounts/AC123/Messages.json"
        assert call_args[1]["data"] == {
            "From": "whatsapp:+15559876543",
            "To": "whatsapp:+15551234567",
            "Body": "How long?",
        }
        assert call_args[1]["auth"] == ("AC123", "secret")

    @patch("intake_api.services.twilio_service.httpx.Client")
    def test_http_error_propagates(self, mock_client_class):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        response = Mock(status_code=401)
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "unauthorized", request=Mock(), response=Mock()
        )
        mock_client.post.return_value = response

        with pytest.raises(httpx.HTTPStatusError):
            TwilioClient("AC123", "secret").send_whatsapp_message("1", "2", "hi")
