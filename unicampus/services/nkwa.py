import logging
import secrets
import time

import httpx

from unicampus.core.config import Settings

logger = logging.getLogger(__name__)


class NkwaApiError(Exception):
    def __init__(self, message: str, *, status_code: int | None = None, raw: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.raw = raw


def extract_payment_id(payload) -> str | None:
    # The collect endpoint returns the payment object; some SDK layers wrap it.
    if not isinstance(payload, dict):
        return None
    payment = payload.get("payment") if isinstance(payload.get("payment"), dict) else payload
    value = payment.get("id")
    if value in (None, ""):
        return None
    return str(value)


class NkwaClient:
    def __init__(self, settings: Settings):
        self.base_url = settings.nkwa_api_base_url
        self.api_key = settings.nkwa_api_key
        self.timeout = settings.nkwa_timeout_seconds
        self.test_mode = settings.nkwa_test_mode

    def _headers(self) -> dict:
        return {
            "X-API-Key": self.api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _extract_error_message(self, response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            data = {}
        if isinstance(data, dict):
            for key in ("message", "detail", "error"):
                value = data.get(key)
                if isinstance(value, str) and value.strip():
                    return value.strip()
        text = (response.text or "").strip()
        return text[:300] if text else f"HTTP {response.status_code}"

    def _request(self, method: str, path: str, payload: dict | None = None) -> dict:
        url = f"{self.base_url}{path}"
        start = time.time()
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.request(method, url, json=payload, headers=self._headers())
        except httpx.TimeoutException as exc:
            raise NkwaApiError("Payment provider timed out.", raw=str(exc)) from exc
        except (httpx.NetworkError, httpx.RemoteProtocolError) as exc:
            raise NkwaApiError("Unable to reach payment provider.", raw=str(exc)) from exc

        duration_ms = round((time.time() - start) * 1000, 2)
        logger.info("Nkwa API %s %s status=%s duration=%sms", method, path, response.status_code, duration_ms)
        if response.status_code >= 400:
            raise NkwaApiError(
                self._extract_error_message(response),
                status_code=response.status_code,
                raw=response.text,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise NkwaApiError("Nkwa returned invalid JSON response.", status_code=response.status_code, raw=response.text) from exc

    def collect(self, amount: int, phone_number: str, description: str) -> dict:
        if self.test_mode:
            # Never hit the provider in explicit test mode.
            return {
                "id": f"nkwa-test-{secrets.token_hex(8)}",
                "amount": amount,
                "phoneNumber": phone_number,
                "description": description,
                "status": "pending",
            }
        # Single attempt: a retried collect can charge the payer twice.
        return self._request(
            "POST",
            "/collect",
            {"amount": amount, "phoneNumber": phone_number, "description": description},
        )
