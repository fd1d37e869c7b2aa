"""Processor webhook payload builders shared by the tests."""

import json
import time
from typing import Any

from workshop_enrollment_ms.features.webhooks.domain.signature import sign_payload

WEBHOOK_SECRET = "whsec_test_secret"


def signed_event(event: dict[str, Any], timestamp: int | None = None) -> tuple[bytes, str]:
    """Serialize ``event`` and sign it the way the processor does."""
    body = json.dumps(event).encode()
    ts = int(time.time()) if timestamp is None else timestamp
    return body, sign_payload(body, WEBHOOK_SECRET, ts)


def checkout_completed_event(
    event_id: str,
    session_id: str,
    metadata: dict[str, str],
    amount_total: int = 7500,
    payment_intent: str = "pi_test_1",
    email: str = "ada@workshops.org",
) -> dict[str, Any]:
    return {
        "id": event_id,
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "amount_total": amount_total,
                "currency": "usd",
                "payment_intent": payment_intent,
                "customer": "cus_test_1",
                "customer_details": {"email": email, "name": "Ada Lovelace", "phone": ""},
                "metadata": metadata,
            }
        },
    }


def charge_refunded_event(
    event_id: str,
    payment_intent: str = "pi_test_1",
    amount: int = 7500,
    amount_refunded: int = 7500,
    refunded: bool = True,
    refund_id: str = "re_test_1",
) -> dict[str, Any]:
    return {
        "id": event_id,
        "type": "charge.refunded",
        "data": {
            "object": {
                "id": "ch_test_1",
                "payment_intent": payment_intent,
                "amount": amount,
                "amount_refunded": amount_refunded,
                "refunded": refunded,
                "refunds": {"data": [{"id": refund_id}]},
            }
        },
    }
