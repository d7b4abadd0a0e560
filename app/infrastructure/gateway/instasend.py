"""
Instasend payment gateway client (HTTP/JSON via requests).

Every call is bounded by a timeout. Transport failures, timeouts and
non-2xx responses are raised as GatewayError; the caller owns the retry
policy (see call_with_retries).
"""
import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, TypeVar

import requests

from app.config import Settings, get_settings
from app.domain.errors import GatewayError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class PaymentRequest:
    amount: Decimal
    phone_number: str
    reference: str
    description: str
    callback_url: str | None = None


@dataclass(frozen=True)
class PaymentResponse:
    reference: str
    transaction_id: str
    status: str


class InstasendClient:
    def __init__(self, base_url: str, api_key: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "InstasendClient":
        settings = settings or get_settings()
        return cls(
            base_url=settings.PAYMENT_GATEWAY_URL,
            api_key=settings.PAYMENT_GATEWAY_API_KEY,
            timeout=settings.GATEWAY_TIMEOUT_SECONDS,
        )

    def _request(self, method: str, endpoint: str, data: dict | None = None) -> dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        try:
            resp = requests.request(
                method, url,
                json=data if method != "GET" else None,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise GatewayError(f"Gateway timeout: {endpoint}") from e
        except requests.RequestException as e:
            raise GatewayError(f"Gateway unreachable: {e}") from e

        try:
            result = resp.json()
        except ValueError:
            result = {}

        if not resp.ok:
            message = result.get("message") if isinstance(result, dict) else None
            raise GatewayError(
                message or f"Gateway request failed (HTTP {resp.status_code})",
                retryable=not 400 <= resp.status_code < 500,
            )
        return result if isinstance(result, dict) else {}

    def initiate_payment(self, req: PaymentRequest) -> PaymentResponse:
        result = self._request("POST", "/api/v1/payments/initiate", {
            "amount": str(req.amount),
            "phone_number": req.phone_number,
            "reference": req.reference,
            "description": req.description,
            "callback_url": req.callback_url,
            "payment_method": "mpesa",
        })
        data = result.get("data") or result
        transaction_id = data.get("transaction_id")
        if not transaction_id:
            raise GatewayError("Gateway response has no transaction_id")
        return PaymentResponse(
            reference=req.reference,
            transaction_id=str(transaction_id),
            status=data.get("status", "pending"),
        )

    def check_payment_status(self, reference: str) -> dict[str, Any]:
        result = self._request("GET", f"/api/v1/payments/status/{reference}")
        return result.get("data") or {}

    def send_sms(self, phone_number: str, message: str) -> dict[str, Any]:
        result = self._request("POST", "/api/v1/sms/send", {
            "phone_number": phone_number,
            "message": message,
        })
        return result.get("data") or {}


def call_with_retries(
    fn: Callable[[], T],
    max_attempts: int,
    backoff_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run fn, retrying retryable GatewayErrors with exponential backoff."""
    attempt = 1
    while True:
        try:
            return fn()
        except GatewayError as e:
            if not e.retryable or attempt >= max_attempts:
                raise
            delay = backoff_seconds * (2 ** (attempt - 1))
            logger.warning("Gateway call failed (attempt %d/%d), retrying in %.1fs: %s",
                           attempt, max_attempts, delay, e)
            sleep(delay)
            attempt += 1


def sign_webhook_body(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_webhook_signature(body: bytes, signature: str | None, secret: str) -> bool:
    """HMAC-SHA256 of the raw body; an unset secret accepts nothing."""
    if not secret or not signature:
        return False
    return hmac.compare_digest(sign_webhook_body(body, secret), signature.strip().lower())
