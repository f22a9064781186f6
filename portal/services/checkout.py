"""
Stripe Checkout for a lead's effective tier.

The session's metadata is what the payment webhook later provisions from, so
lead_id / tier / project_address / project_name are always set here.
"""
import logging

import stripe

from portal.config import FRONTEND_URL, STRIPE_SECRET_KEY
from portal.database import get_session
from portal.errors import Misconfigured, NotFoundError, ValidationError, PortalError
from portal.models.lead import Lead
from portal.routing.tier_catalog import get_tier, tier_price, catalogue_currency
from portal.services.circuit_breaker import get_breaker, CircuitOpenError

logger = logging.getLogger('services.checkout')


class CheckoutUnavailable(PortalError):
    status_code = 503


def _line_item(tier):
    info = get_tier(tier)
    return {
        'price_data': {
            'currency': catalogue_currency(),
            'unit_amount': info['price'],
            'product_data': {
                'name': info['name'],
                'description': info.get('tagline') or f"Tier {tier}",
            },
        },
        'quantity': 1,
    }


def create_checkout_session(lead_id, success_url=None, cancel_url=None):
    """
    Open a payment-mode Checkout Session for a lead.

    Returns {'session_id', 'url', 'tier'}. A NEW lead moves to QUALIFIED.
    """
    if not STRIPE_SECRET_KEY:
        raise Misconfigured('Stripe is not configured')

    session = get_session()
    try:
        lead = session.get(Lead, lead_id)
        if lead is None:
            raise NotFoundError(f'Lead {lead_id} not found')
        if lead.status in ('CONVERTED', 'CLOSED'):
            raise ValidationError(
                f'Lead {lead_id} is {lead.status.lower()} and cannot check out',
                {'status': lead.status},
            )

        tier = lead.effective_tier
        if tier_price(tier) is None:
            raise ValidationError(
                f'Tier {tier} requires a consultation and has no online checkout',
                {'tier': 'not_payable'},
            )

        project_address = lead.project_address
        params = {
            'mode': 'payment',
            'customer_email': lead.email,
            'line_items': [_line_item(tier)],
            'success_url': success_url or f'{FRONTEND_URL}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}',
            'cancel_url': cancel_url or f'{FRONTEND_URL}/checkout/cancel?lead_id={lead.id}',
            'metadata': {
                'lead_id': str(lead.id),
                'tier': str(tier),
                'project_address': project_address,
                'project_name': f'{project_address} Project',
            },
        }

        try:
            checkout = get_breaker('stripe').call(stripe.checkout.Session.create, **params)
        except CircuitOpenError as e:
            raise CheckoutUnavailable(str(e)) from e
        except stripe.StripeError as e:
            logger.error("Stripe checkout for lead %s failed: %s", lead.id, e)
            raise CheckoutUnavailable(f'Payment provider error: {e}') from e

        if lead.status == 'NEW':
            lead.status = 'QUALIFIED'
            session.commit()

        logger.info("Checkout session %s created for lead %s (tier %d)", checkout.id, lead.id, tier)
        return {'session_id': checkout.id, 'url': checkout.url, 'tier': tier}
    finally:
        session.close()
