from typing import Optional

import httpx

from intake_api.logging_config import get_logger

logger = get_logger("twilio_service")


class TwilioClient:
    """Sends WhatsApp replies through the Twilio Messages API."""

    def __init__(
        self,
        account_sid: Optional[str],
        auth_token: Optional[str],
        *,
        api_base: str = "https://api.twilio.com",
        timeout_seconds: float = 30.0,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.api_base = api_base.rstrip("/")
        self.timeout_seconds = timeout_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token)

    def send_whatsapp_message(self, from_number: str, to_number: str, body: str) -> Optional[dict]:
        """Send ``body`` from the tenant number to the patient.

        Numbers are bare digits; returns None when credentials are not configured.
        """
        if not self.is_configured:
            logger.info("Twilio credentials not configured, skipping Twilio send")
            return None

        url = f"{self.api_base}/2010-04-01/Accounts/{self.account_sid}/Messages.json"
        data = {
            "From": f"whatsapp:+{from_number}",
            "To": f"whatsapp:+{to_number}",
            "Body": body,
        }
        with httpx.Client(timeout=self.timeout_seconds) as client:
            response = client.post(url, data=data, auth=(self.account_sid, self.auth_token))

        logger.info(f"Twilio send result: status={response.status_code}, to={to_number}")
        response.raise_for_status()
        return response.json()
