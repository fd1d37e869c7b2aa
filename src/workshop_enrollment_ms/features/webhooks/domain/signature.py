"""Webhook signature verification.

Header format: ``t=<unix timestamp>,v1=<hex hmac-sha256>``. The signed
payload is ``"<timestamp>.<raw body>"``.
"""

import hashlib
import hmac
import time
from typing import Callable

from workshop_enrollment_ms.shared.domain.exceptions import WebhookVerificationError

DEFAULT_TOLERANCE_SECONDS = 300


def compute_signature(payload: bytes, secret: str, timestamp: int | str) -> str:
    signed_payload = f"{timestamp}.".encode() + payload
    return hmac.new(secret.encode(), signed_payload, hashlib.sha256).hexdigest()


def sign_payload(payload: bytes, secret: str, timestamp: int | None = None) -> str:
    """
    Build a signature header for ``payload``.

    Useful for simulating processor deliveries in development and tests.
    """
    ts = int(time.time()) if timestamp is None else timestamp
    return f"t={ts},v1={compute_signature(payload, secret, ts)}"


class WebhookSignatureVerifier:
    """Checks the HMAC signature and the replay window of a delivery."""

    def __init__(
        self,
        secret: str,
        tolerance: int = DEFAULT_TOLERANCE_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = secret
        self._tolerance = tolerance
        self._clock = clock

    def verify(self, payload: bytes, header: str | None) -> int:
        """
        Verify ``header`` against ``payload``.

        Returns the signed timestamp. Raises WebhookVerificationError when
        the header is missing or malformed, the timestamp is outside the
        tolerance window, or no ``v1`` signature matches.
        """
        if not header:
            raise WebhookVerificationError("Missing signature header")
        if not self._secret:
            raise WebhookVerificationError("Webhook secret not configured")

        timestamp: str | None = None
        signatures: list[str] = []
        for part in header.split(","):
            key, sep, value = part.strip().partition("=")
            if not sep:
                continue
            if key == "t":
                timestamp = value
            elif key == "v1":
                signatures.append(value)

        if timestamp is None or not signatures:
            raise WebhookVerificationError("Malformed signature header")

        try:
            ts = int(timestamp)
        except ValueError as e:
            raise WebhookVerificationError("Malformed signature timestamp") from e

        if abs(int(self._clock()) - ts) > self._tolerance:
            raise WebhookVerificationError("Timestamp outside tolerance window")

        expected = compute_signature(payload, self._secret, ts)
        if not any(hmac.compare_digest(expected, sig) for sig in signatures):
            raise WebhookVerificationError("Signature mismatch")
        return ts
