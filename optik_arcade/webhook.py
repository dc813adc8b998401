"""
webhook.py - Payment webhook verification and parsing.

Checkout providers deliver events at least once; deduplication happens in
the ledger on (source='purchase', source_id=<checkout session id>).

The ``Stripe-Signature`` header is checked with the stripe SDK against the
raw request body before the event is parsed.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import stripe

logger = logging.getLogger("webhook")

SIGNATURE_TOLERANCE = 300  # seconds
CHECKOUT_COMPLETED = "checkout.session.completed"


class WebhookSignatureError(ValueError):
    pass


class WebhookPayloadError(ValueError):
    pass


@dataclass
class PurchaseEvent:
    external_id: str
    wallet_address: str
    amount_cents: int
    currency: str
    optik_amount: Optional[float]


def verify_signature(payload: bytes, header: str, secret: str, tolerance: int = SIGNATURE_TOLERANCE):
    """Raise WebhookSignatureError unless ``header`` signs ``payload``.

    ``tolerance`` is the maximum signature age in seconds; 0 disables the
    age check.
    """
    if not header:
        raise WebhookSignatureError("Missing signature header")
    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError:
        raise WebhookSignatureError("Payload is not UTF-8")
    try:
        stripe.WebhookSignature.verify_header(body, header, secret, tolerance or None)
    except stripe.SignatureVerificationError as e:
        raise WebhookSignatureError(str(e)) from e


def parse_purchase_event(event: dict) -> Optional[PurchaseEvent]:
    """Extract the purchase from a completed checkout, or None for other events."""
    if not isinstance(event, dict):
        raise WebhookPayloadError("Event must be a JSON object")
    if event.get("type") != CHECKOUT_COMPLETED:
        return None

    session = (event.get("data") or {}).get("object") or {}
    external_id = session.get("id")
    if not external_id:
        raise WebhookPayloadError("Checkout session id missing")

    metadata = session.get("metadata") or {}
    # Payment links carry the wallet as client_reference_id instead of metadata
    wallet = metadata.get("walletAddress") or session.get("client_reference_id")
    if not wallet:
        raise WebhookPayloadError("Missing wallet address in checkout session")

    optik_amount = None
    if metadata.get("optikAmount") not in (None, ""):
        try:
            optik_amount = float(metadata["optikAmount"])
        except (TypeError, ValueError):
            raise WebhookPayloadError(f"Bad optikAmount: {metadata['optikAmount']!r}")

    try:
        amount_cents = int(session.get("amount_total") or 0)
    except (TypeError, ValueError):
        raise WebhookPayloadError(f"Bad amount_total: {session.get('amount_total')!r}")

    return PurchaseEvent(
        external_id=external_id,
        wallet_address=wallet,
        amount_cents=amount_cents,
        currency=session.get("currency") or "usd",
        optik_amount=optik_amount,
    )
