"""
Payment webhook — the only way a purchase becomes a provisioned client.

Status codes tell the provider whether to redeliver: 4xx for payloads that
will never succeed, 5xx when a retry might, 200 once handled (including
duplicates).
"""
import logging
from flask import Blueprint, request, jsonify

from portal.config import STRIPE_SIGNATURE_HEADER
from portal.errors import PortalError
from portal.services.payment_gateway import handle_webhook

logger = logging.getLogger('routes.webhooks')

bp = Blueprint('webhooks', __name__)


@bp.route('/webhooks/stripe', methods=['POST'])
def stripe_webhook():
    payload = request.get_data()
    # verify() checks the secret before the header, so a misconfigured
    # deployment answers 500 even to unsigned requests.
    signature = request.headers.get(STRIPE_SIGNATURE_HEADER)

    try:
        return jsonify(handle_webhook(payload, signature)), 200
    except PortalError as e:
        if e.status_code >= 500:
            logger.error("Webhook failed (%d): %s", e.status_code, e)
        else:
            logger.warning("Webhook rejected (%d): %s", e.status_code, e)
        return jsonify(e.to_dict()), e.status_code
