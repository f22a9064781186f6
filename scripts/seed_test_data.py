#!/usr/bin/env python3
"""
Seed test data for exercising the portal locally.

Creates leads covering the routing scenarios and converts one of them:
  1. Auto-routed Tier 1 lead (high confidence)
  2. Tier 4 commercial lead (always reviewed)
  3. Sharp budget/scope conflict (low confidence → review)
  4. Unsure budget (review) with an admin tier override
  5. Paid conversion of lead 1 via a synthetic checkout event

Usage:
    python scripts/seed_test_data.py          # seed all scenarios
    python scripts/seed_test_data.py --clear  # wipe seeded data first

Requires: DATABASE_URL set (or defaults to sqlite:///local.db). Mail and Slack
are only called if configured.
"""
import sys
import os
import uuid
import argparse

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from portal import create_app
from portal.database import get_session, engine, Base
from portal.models.audit_log import AuditLog
from portal.models.client import Client
from portal.models.lead import Lead
from portal.models.payment import Payment
from portal.models.project import Project
from portal.models.user import User
from portal.services.leads import create_lead, update_lead
from portal.services.payment_gateway import PaymentEvent
from portal.services.provisioning import convert


# Seeded rows are recognisable by email domain / intent prefix so we can clear them
SEED_DOMAIN = 'seed.example.com'
SEED_INTENT_PREFIX = 'pi_seed_'

SCENARIOS = [
    {
        'label': 'Auto-routed Tier 1',
        'email': f'jane@{SEED_DOMAIN}', 'name': 'Jane Morrison',
        'project_address': '18 Harbor Ln, Portland',
        'budget_range': 'under_500', 'timeline': 'asap', 'project_type': 'simple_consultation',
        'has_survey': True, 'has_drawings': True,
    },
    {
        'label': 'Tier 4 commercial',
        'email': f'carlos@{SEED_DOMAIN}', 'name': 'Carlos Reyes',
        'project_address': '400 Market St, Denver',
        'budget_range': 'over_50000', 'timeline': '4_plus_months', 'project_type': 'commercial',
    },
    {
        'label': 'Budget/scope conflict',
        'email': f'priya@{SEED_DOMAIN}', 'name': 'Priya Sharma',
        'project_address': '7 Ridge Rd, Boulder',
        'budget_range': 'under_500', 'timeline': '4_plus_months', 'project_type': 'commercial',
    },
    {
        'label': 'Unsure budget, overridden',
        'email': f'liam@{SEED_DOMAIN}', 'name': "Liam O'Brien",
        'project_address': '22 Fern Ct, Austin',
        'budget_range': 'not_sure', 'timeline': 'flexible', 'project_type': 'addition',
        'has_survey': True,
        'override': (3, 'Steep lot, needs a site visit'),
    },
]


def seed_leads():
    leads = []
    for i, scenario in enumerate(SCENARIOS, start=1):
        data = {k: v for k, v in scenario.items() if k not in ('label', 'override')}
        lead, rec = create_lead(data)
        if 'override' in scenario:
            tier, reason = scenario['override']
            lead = update_lead(lead.id, {'tier_override': tier, 'override_reason': reason})
        print(
            f'  [{i}] {scenario["label"]}: lead {lead.id} → tier {rec.tier} '
            f'({rec.confidence.value}{", review" if rec.needs_manual_review else ""})'
        )
        leads.append(lead)
    return leads


def seed_conversion(lead):
    """Scenario 5: the first lead pays."""
    event = PaymentEvent(
        kind='checkout.session.completed',
        event_id=f'evt_seed_{uuid.uuid4().hex[:12]}',
        customer_email=lead.email,
        customer_name=lead.name,
        customer_id='cus_seed',
        payment_intent_id=f'{SEED_INTENT_PREFIX}{uuid.uuid4().hex[:12]}',
        session_id=f'cs_seed_{uuid.uuid4().hex[:12]}',
        amount=29900,
        currency='usd',
        metadata={'lead_id': str(lead.id), 'tier': str(lead.effective_tier)},
    )
    result = convert(event)
    print(
        f'  [5] Converted lead {lead.id}: user {result.account.id}, project {result.project.id}, '
        f'access code {result.access_code}, notified={result.notification_sent}'
    )
    return result


def clear_seeded_data(session):
    """Remove every seeded lead, account and its conversion records."""
    users = session.query(User).filter(User.email.like(f'%@{SEED_DOMAIN}')).all()
    user_ids = [u.id for u in users]
    client_ids = [c.id for c in session.query(Client).filter(Client.user_id.in_(user_ids))]
    project_ids = [p.id for p in session.query(Project).filter(Project.client_id.in_(client_ids))]

    deleted_audit = session.query(AuditLog).filter(AuditLog.user_id.in_(user_ids)).delete(synchronize_session=False)
    deleted_payments = session.query(Payment).filter(Payment.project_id.in_(project_ids)).delete(synchronize_session=False)
    session.query(Project).filter(Project.id.in_(project_ids)).delete(synchronize_session=False)
    session.query(Client).filter(Client.id.in_(client_ids)).delete(synchronize_session=False)
    session.query(User).filter(User.id.in_(user_ids)).delete(synchronize_session=False)
    deleted_leads = session.query(Lead).filter(Lead.email.like(f'%@{SEED_DOMAIN}')).delete(synchronize_session=False)
    session.commit()

    print(
        f'Cleared {deleted_leads} leads, {len(user_ids)} accounts, '
        f'{deleted_payments} payments, {deleted_audit} audit entries.'
    )


def main():
    parser = argparse.ArgumentParser(description='Seed leads and a conversion for local testing')
    parser.add_argument('--clear', action='store_true', help='Clear seeded data before (or instead of) seeding')
    parser.add_argument('--clear-only', action='store_true', help='Only clear, do not re-seed')
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        # Ensure tables exist (for SQLite local dev)
        Base.metadata.create_all(engine)

        if args.clear or args.clear_only:
            session = get_session()
            try:
                clear_seeded_data(session)
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()
            if args.clear_only:
                return

        print('Seeding test data...')
        leads = seed_leads()
        seed_conversion(leads[0])
        print('\nDone! GET http://localhost:8080/api/leads to verify.')


if __name__ == '__main__':
    main()
