"""
Lead intake + admin review.

Intake never blocks on an unrecognized category: the router defaults it.
Only identity (email) and the project address are hard requirements.
"""
import logging
import math
import re

from portal.config import ADMIN_LEAD_STATUSES, MIN_TIER, MAX_TIER
from portal.database import get_session
from portal.errors import ValidationError, NotFoundError
from portal.models.lead import Lead
from portal.routing.engine import Intake, recommend
from portal.services.notifications import notify_manual_review

logger = logging.getLogger('services.leads')

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
MAX_PAGE_SIZE = 100


def _text(value):
    return value.strip() if isinstance(value, str) else ''


def normalize_email(email):
    return _text(email).lower()


def validate_override(tier_override, override_reason):
    """
    Check an admin tier override. Returns (tier_override, override_reason)
    normalized; clearing the override clears the reason.
    """
    if tier_override is None:
        return None, None
    invalid = ValidationError('tier_override must be an integer 1-4', {'tier_override': 'invalid'})
    if isinstance(tier_override, bool) or not isinstance(tier_override, (int, str)):
        raise invalid
    try:
        tier = int(tier_override)
    except ValueError:
        raise invalid from None
    if not MIN_TIER <= tier <= MAX_TIER:
        raise ValidationError('tier_override must be an integer 1-4', {'tier_override': 'out_of_range'})
    reason = (override_reason or '').strip()
    if not reason:
        raise ValidationError(
            'Override reason is required when setting tier override',
            {'override_reason': 'required'},
        )
    return tier, reason


def create_lead(data):
    """
    Persist an intake submission with its tier recommendation.

    Returns (lead, recommendation). Leads that need a human decision start in
    NEEDS_REVIEW and raise a Slack alert; everything else starts NEW.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError('Invalid intake data', {'body': 'must be a JSON object'})
    email = normalize_email(data.get('email'))
    address = _text(data.get('project_address') or data.get('projectAddress'))

    errors = {}
    if not EMAIL_RE.match(email):
        errors['email'] = 'A valid email address is required'
    if not address:
        errors['project_address'] = 'Project address is required'
    if errors:
        raise ValidationError('Invalid intake data', errors)

    intake = Intake.from_dict(data)
    recommendation = recommend(intake)

    session = get_session()
    try:
        lead = Lead(
            email=email,
            name=_text(data.get('name')) or None,
            project_address=address,
            budget_range=intake.budget_range.value,
            timeline=intake.timeline.value,
            project_type=intake.project_type.value,
            has_survey=intake.has_survey,
            has_drawings=intake.has_drawings,
            project_description=data.get('project_description') or data.get('projectDescription'),
            status='NEEDS_REVIEW' if recommendation.needs_manual_review else 'NEW',
            recommended_tier=recommendation.tier,
            routing_reason=recommendation.reason,
            tier_confidence=recommendation.confidence.value,
            needs_manual_review=recommendation.needs_manual_review,
            routing_factors=[f.to_dict() for f in recommendation.factors],
        )
        session.add(lead)
        session.commit()
        logger.info(
            "Lead %s created: tier %d (%s)%s",
            lead.id, recommendation.tier, recommendation.confidence.value,
            ' — needs review' if recommendation.needs_manual_review else '',
            extra={'lead_id': lead.id},
        )
    except Exception:
        session.rollback()
        logger.error("Failed to create lead for %s", email, exc_info=True)
        raise
    finally:
        session.close()

    if recommendation.needs_manual_review:
        notify_manual_review(lead, recommendation)

    return lead, recommendation


def get_lead(lead_id):
    session = get_session()
    try:
        lead = session.get(Lead, lead_id)
        if lead is None:
            raise NotFoundError(f'Lead {lead_id} not found')
        return lead
    finally:
        session.close()


def list_leads(status=None, tier=None, email=None, page=1, limit=20):
    """Admin listing, newest first. Returns (leads, pagination meta)."""
    page = max(1, int(page or 1))
    limit = max(1, min(MAX_PAGE_SIZE, int(limit or 20)))

    session = get_session()
    try:
        query = session.query(Lead)
        if status:
            query = query.filter(Lead.status == status)
        if tier:
            query = query.filter(Lead.recommended_tier == int(tier))
        if email:
            query = query.filter(Lead.email.ilike(f'%{email.strip()}%'))

        total = query.count()
        leads = (
            query.order_by(Lead.created_at.desc(), Lead.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        total_pages = math.ceil(total / limit) if total else 0
        meta = {
            'page': page,
            'limit': limit,
            'total_count': total,
            'total_pages': total_pages,
            'has_next_page': page < total_pages,
            'has_prev_page': page > 1,
        }
        return leads, meta
    finally:
        session.close()


def update_lead(lead_id, data):
    """
    Admin review: change status and/or set/clear a tier override.

    An override without a non-empty reason is rejected before any write.
    CONVERTED is not settable here; conversion owns that transition.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError('Invalid update', {'body': 'must be a JSON object'})
    changes = {}

    if 'status' in data:
        status = _text(data.get('status')).upper()
        if status not in ADMIN_LEAD_STATUSES:
            raise ValidationError(
                f"status must be one of {', '.join(ADMIN_LEAD_STATUSES)}",
                {'status': 'invalid'},
            )
        changes['status'] = status

    if 'tier_override' in data:
        tier, reason = validate_override(data.get('tier_override'), data.get('override_reason'))
        changes['tier_override'] = tier
        changes['override_reason'] = reason
    elif data.get('override_reason') is not None:
        raise ValidationError('override_reason given without tier_override', {'tier_override': 'required'})

    if not changes:
        raise ValidationError('Nothing to update')

    session = get_session()
    try:
        lead = session.get(Lead, lead_id)
        if lead is None:
            raise NotFoundError(f'Lead {lead_id} not found')
        if lead.status == 'CONVERTED':
            raise ValidationError('Converted leads cannot be edited', {'status': 'converted'})
        for key, value in changes.items():
            setattr(lead, key, value)
        session.commit()
        logger.info("Lead %s updated: %s", lead_id, changes)
        return lead
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
