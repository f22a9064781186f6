"""
Payment gateway adapter — Stripe webhooks in, provider-neutral PaymentEvents out.

Everything Stripe-shaped stops here: signature verification uses the stripe
library, the payload's `data.object` is flattened into a PaymentEvent, and
only confirmed checkouts reach the provisioning coordinator. Unauthenticated
payloads never reach it at all.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import stripe

from portal.config import STRIPE_WEBHOOK_SECRET, PAYMENT_CONFIRMED_EVENT
from portal.errors import Misconfigured, SignatureError, ValidationError
from portal.services import provisioning

logger = logging.getLogger('services.payment_gateway')


@dataclass
class PaymentEvent:
    kind: str
    event_id: Optional[str] = None
    customer_email: Optional[str] = None
    customer_name: Optional[str] = None
    customer_id: Optional[str] = None
    payment_intent_id: Optional[str] = None
    session_id: Optional[str] = None
    amount: Optional[int] = None
    currency: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_payment_confirmed(self):
        return self.kind == PAYMENT_CONFIRMED_EVENT

    @classmethod
    def from_envelope(cls, envelope: Dict[str, Any]) -> 'PaymentEvent':
        """Flatten a Stripe event envelope. Missing fields stay None."""
        if not isinstance(envelope, dict) or not envelope.get('type'):
            raise ValidationError('Webhook payload is not an event', {'type': 'required'})
        data = envelope.get('data') or {}
        obj = (data.get('object') or {}) if isinstance(data, dict) else None
        if not isinstance(obj, dict):
            raise ValidationError('Webhook event object is malformed', {'data.object': 'must be an object'})
        details = obj.get('customer_details') or {}
        if not isinstance(details, dict):
            details = {}
        metadata = obj.get('metadata') or {}
        if not isinstance(metadata, dict):
            metadata = {}
        return cls(
            kind=envelope['type'],
            event_id=envelope.get('id'),
            customer_email=details.get('email') or obj.get('customer_email'),
            customer_name=details.get('name'),
            customer_id=obj.get('customer'),
            payment_intent_id=obj.get('payment_intent'),
            session_id=obj.get('id'),
            amount=obj.get('amount_total'),
            currency=obj.get('currency'),
            metadata=dict(metadata),
        )


def verify(raw_payload: bytes, signature_header: Optional[str], secret: Optional[str] = None) -> PaymentEvent:
    """
    Authenticate a webhook body against its signature header.

    `raw_payload` must be the exact bytes received; re-serialised JSON will
    not verify. Raises Misconfigured with no secret, SignatureError for a
    missing or bad signature, ValidationError for a body that isn't an event.
    """
    secret = secret or STRIPE_WEBHOOK_SECRET
    if not secret:
        logger.error("STRIPE_WEBHOOK_SECRET not configured — rejecting webhook")
        raise Misconfigured('Webhook secret not configured')
    if not signature_header:
        raise SignatureError('Missing signature header')

    try:
        stripe.Webhook.construct_event(raw_payload, signature_header, secret)
    except stripe.SignatureVerificationError as e:
        logger.warning("Webhook signature verification failed: %s", e)
        raise SignatureError('Invalid signature') from e
    except ValueError as e:
        # Signature held but the body isn't JSON
        raise ValidationError('Invalid webhook payload') from e

    if isinstance(raw_payload, bytes):
        raw_payload = raw_payload.decode('utf-8')
    return PaymentEvent.from_envelope(json.loads(raw_payload))


def dispatch(event: PaymentEvent, tier_override=None) -> Dict[str, Any]:
    """
    Route a verified event. Confirmed payments are provisioned; every other
    kind is acknowledged so the provider stops redelivering it.
    """
    if not event.is_payment_confirmed:
        logger.info("Ignoring webhook event %s (%s)", event.event_id, event.kind)
        return {'received': True, 'processed': False, 'event_type': event.kind}

    logger.info(
        "Payment confirmed: event %s, intent %s, session %s",
        event.event_id, event.payment_intent_id, event.session_id,
        extra={'event_id': event.event_id, 'payment_intent_id': event.payment_intent_id},
    )
    result = provisioning.convert(event, tier_override=tier_override)
    return {
        'received': True,
        'processed': True,
        'event_type': event.kind,
        'already_processed': result.already_processed,
        'notified': result.notification_sent,
        'notification_error': result.notification_error,
        'account_id': result.account.id,
        'project_id': result.project.id,
        'payment_id': result.payment.id,
    }


def handle_webhook(raw_payload: bytes, signature_header: Optional[str]) -> Dict[str, Any]:
    return dispatch(verify(raw_payload, signature_header))
