"""
Notifications — portal access email for new clients, Slack alerts for ops.

The access notice is the one message a customer must get: when a mail API is
configured, any failure raises NotificationError so provisioning can report
it. Without mail configuration (local dev) the notice is logged and counted
as sent. Slack alerts are best-effort and never raise.
"""
import logging
import requests

from portal.config import (
    EMAIL_API_URL, EMAIL_API_KEY, EMAIL_FROM, EMAIL_TIMEOUT_SECONDS,
    SLACK_WEBHOOK_URL, FRONTEND_URL,
)
from portal.errors import NotificationError
from portal.routing.tier_catalog import tier_name
from portal.services.circuit_breaker import get_breaker, CircuitOpenError

logger = logging.getLogger('services.notifications')


def _render_access_notice(access_code, project_address, tier, project_name):
    name = tier_name(tier)
    subject = 'Your SAGE Client Portal is Ready'
    text = (
        "Thank you for choosing SAGE for your landscape design project. "
        "Your payment has been processed successfully.\n\n"
        f"Project: {project_name or project_address}\n"
        f"Service Tier: {name}\n"
        f"Project Address: {project_address}\n\n"
        f"Your portal access code: {access_code}\n\n"
        f"Log in at {FRONTEND_URL}\n"
    )
    html = (
        "<h2>Your Client Portal is Ready!</h2>"
        "<p>Thank you for choosing SAGE for your landscape design project. "
        "Your payment has been processed successfully.</p>"
        f"<p><strong>Project:</strong> {project_name or project_address}<br>"
        f"<strong>Service Tier:</strong> {name}<br>"
        f"<strong>Project Address:</strong> {project_address}</p>"
        "<h3>Your Access Credentials</h3>"
        f"<p style=\"font-size:24px;font-weight:bold;letter-spacing:2px\">{access_code}</p>"
        f"<p><a href=\"{FRONTEND_URL}\">Access Your Portal</a></p>"
    )
    return subject, text, html


def send_access_notice(email, notice):
    """
    Tell a newly provisioned client how to reach the portal.

    `notice` carries access_code, project_address, tier and project_name.
    Returns True on delivery (or on the log-only path); raises
    NotificationError when a configured mail API fails.
    """
    access_code = notice.get('access_code')
    project_address = notice.get('project_address')
    tier = notice.get('tier')
    project_name = notice.get('project_name')
    subject, text, html = _render_access_notice(access_code, project_address, tier, project_name)

    if not EMAIL_API_URL:
        logger.info(
            "Mail not configured — access notice for %s (tier %s, project %r, code %s):\n%s",
            email, tier, project_name, access_code, text,
        )
        return True

    payload = {
        'from': EMAIL_FROM,
        'to': [email],
        'subject': subject,
        'text': text,
        'html': html,
    }
    headers = {'Authorization': f'Bearer {EMAIL_API_KEY}'} if EMAIL_API_KEY else {}

    def _post():
        resp = requests.post(EMAIL_API_URL, json=payload, headers=headers, timeout=EMAIL_TIMEOUT_SECONDS)
        resp.raise_for_status()
        return resp

    try:
        get_breaker('email').call(_post)
    except CircuitOpenError as e:
        logger.error("Access notice to %s not sent: %s", email, e)
        raise NotificationError(str(e)) from e
    except requests.RequestException as e:
        logger.error("Access notice to %s failed: %s", email, e, exc_info=True)
        raise NotificationError(f"Mail API request failed: {e}") from e

    logger.info("Access notice sent to %s for project %r", email, project_name)
    return True


# ── Slack ops alerts ─────────────────────────────────────────────────────────

def _post_to_slack(blocks):
    get_breaker('slack').call(requests.post, SLACK_WEBHOOK_URL, json={"blocks": blocks}, timeout=10)


def notify_manual_review(lead, recommendation):
    """Post a new lead that needs a human tier decision to Slack."""
    if not SLACK_WEBHOOK_URL:
        return

    try:
        blocks = [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": f"Lead needs review — Tier {recommendation.tier}"},
            },
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*Email:* {lead.email}"},
                    {"type": "mrkdwn", "text": f"*Confidence:* {recommendation.confidence.value}"},
                    {"type": "mrkdwn", "text": f"*Budget:* {lead.budget_range or 'n/a'}"},
                    {"type": "mrkdwn", "text": f"*Project:* {lead.project_type or 'n/a'}"},
                ],
            },
        ]
        if recommendation.review_reasons:
            blocks.append({
                "type": "section",
                "text": {"type": "mrkdwn", "text": "\n".join(f"• {r}" for r in recommendation.review_reasons)},
            })
        _post_to_slack(blocks)
        logger.info("Manual review alert sent for lead %s", lead.id)

    except Exception:
        logger.error("Failed to send manual review alert for lead %s", lead.id, exc_info=True)


def notify_notification_failed(email, payment_intent_id, error, access_code=None):
    """
    Escalate an undelivered access notice so someone re-sends it by hand.

    The access code is never stored, so it travels with the alert. The
    temporary password never leaves provisioning.
    """
    if not SLACK_WEBHOOK_URL:
        return

    try:
        blocks = [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": "Portal access email FAILED"},
            },
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*Customer:* {email}"},
                    {"type": "mrkdwn", "text": f"*Payment intent:* {payment_intent_id}"},
                    {"type": "mrkdwn", "text": f"*Access code:* `{access_code or 'n/a'}`"},
                ],
            },
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*Error:* ```{str(error)[:500]}```"},
            },
        ]
        _post_to_slack(blocks)
        logger.info("Notification failure alert sent for %s", payment_intent_id)

    except Exception:
        logger.error("Failed to alert on notification failure for %s", payment_intent_id, exc_info=True)
