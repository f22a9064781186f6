"""
Provisioning — turn a confirmed payment into an account, client, project and
payment record, exactly once per payment intent.

One unit of work, five writes:

    1. User     reuse by email, else create (temp password, hashed)
    2. Client   reuse by user, else create in ONBOARDING
    3. Project  always new; repeat purchases are new engagements
    4. Payment  keyed by the provider payment-intent id (unique)
    5. AuditLog append-only record of the payment

plus moving the originating lead (if any) to CONVERTED. Either all of it
commits or none of it does. A duplicate payment intent (a redelivered webhook,
or two deliveries racing) is caught by the unique constraint and answered
with the records that already exist.

The access notice goes out after commit. If it fails, the customer's access
still exists; the failure is reported on the result, not raised.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from portal.config import (
    ACCOUNT_TYPE, CLIENT_STATUS_ONBOARDING, PROJECT_STATUS_ONBOARDING,
    PAYMENT_STATUS_SUCCEEDED, UNKNOWN_ADDRESS, UNKNOWN_CUSTOMER_ID,
    DEFAULT_CURRENCY, DEFAULT_TIER, MIN_TIER, MAX_TIER,
)
from portal.database import get_session
from portal.errors import ValidationError, ConflictError, TransactionError, NotificationError
from portal.models.audit_log import AuditLog
from portal.models.client import Client
from portal.models.lead import Lead
from portal.models.payment import Payment
from portal.models.project import Project
from portal.models.user import User
from portal.services.credentials import generate_access_code, generate_temp_password, hash_password
from portal.services.notifications import send_access_notice, notify_notification_failed

logger = logging.getLogger('services.provisioning')

# A non-intent IntegrityError (e.g. two first-time purchases by one email
# racing on users.email) is retried once; the second pass finds the winner's rows.
MAX_ATTEMPTS = 2


@dataclass
class ConversionResult:
    account: User
    client: Client
    project: Project
    payment: Payment
    access_code: Optional[str] = None
    project_address: Optional[str] = None
    new_account: bool = False
    already_processed: bool = False
    notification_sent: bool = False
    notification_error: Optional[str] = None

    @property
    def fully_succeeded(self):
        """Provisioned and the customer was told — or it was done on an earlier delivery."""
        return self.already_processed or self.notification_sent

    def to_dict(self) -> Dict[str, Any]:
        return {
            'account': self.account.to_dict(),
            'client': self.client.to_dict(),
            'project': self.project.to_dict(),
            'payment': self.payment.to_dict(),
            'new_account': self.new_account,
            'already_processed': self.already_processed,
            'notification_sent': self.notification_sent,
            'notification_error': self.notification_error,
        }


# ── Input resolution ─────────────────────────────────────────────────────────

def parse_tier(value) -> Optional[int]:
    """Tier from metadata/overrides; None unless it is an int-like 1-4."""
    if value is None or isinstance(value, bool):
        return None
    try:
        tier = int(str(value).strip())
    except ValueError:
        return None
    return tier if MIN_TIER <= tier <= MAX_TIER else None


def resolve_tier(metadata: Mapping[str, Any], lead: Optional[Lead] = None, override=None) -> int:
    """
    Which tier this purchase provisions.

    explicit override > checkout metadata (the tier actually charged) >
    lead's admin override > lead's recommendation > DEFAULT_TIER.
    """
    candidates = [
        override,
        (metadata or {}).get('tier'),
        lead.tier_override if lead is not None else None,
        lead.recommended_tier if lead is not None else None,
    ]
    for candidate in candidates:
        tier = parse_tier(candidate)
        if tier is not None:
            return tier
    return DEFAULT_TIER


def _metadata_value(metadata, *keys):
    for key in keys:
        value = (metadata or {}).get(key)
        if value:
            return str(value).strip()
    return None


def _validate(event):
    email = (getattr(event, 'customer_email', None) or '').strip().lower()
    intent = (getattr(event, 'payment_intent_id', None) or '').strip()
    errors = {}
    if not email:
        errors['customer_email'] = 'Customer email is required'
    if not intent:
        errors['payment_intent_id'] = 'Payment intent ID is required'
    if errors:
        raise ValidationError('Payment event is missing required fields', errors)
    return email, intent


# ── Reads ────────────────────────────────────────────────────────────────────

def _load_conversion(session, payment_intent_id) -> Optional[ConversionResult]:
    payment = session.query(Payment).filter_by(stripe_payment_intent_id=payment_intent_id).first()
    if payment is None:
        return None
    project = session.get(Project, payment.project_id)
    client = session.get(Client, project.client_id)
    account = session.get(User, client.user_id)
    return ConversionResult(
        account=account, client=client, project=project, payment=payment,
        already_processed=True,
    )


def find_conversion(payment_intent_id) -> Optional[ConversionResult]:
    """Records already provisioned for a payment intent, or None."""
    session = get_session()
    try:
        return _load_conversion(session, payment_intent_id)
    finally:
        session.close()


def _find_lead(session, metadata, email) -> Optional[Lead]:
    lead_id = parse_lead_id(_metadata_value(metadata, 'lead_id', 'leadId'))
    if lead_id is not None:
        lead = session.get(Lead, lead_id)
        if lead is not None:
            return lead
        logger.warning("Checkout metadata references unknown lead %s", lead_id)
    return (
        session.query(Lead)
        .filter(Lead.email == email, Lead.status.notin_(['CONVERTED', 'CLOSED']))
        .order_by(Lead.created_at.desc(), Lead.id.desc())
        .first()
    )


def parse_lead_id(value) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None


# ── Unit of work ─────────────────────────────────────────────────────────────

def _get_or_create_account(session, email, name, password_hash, tier):
    account = session.query(User).filter_by(email=email).first()
    if account is not None:
        return account, False
    account = User(
        email=email,
        name=name,
        password_hash=password_hash,
        user_type=ACCOUNT_TYPE,
        tier=tier,
    )
    session.add(account)
    session.flush()
    return account, True


def _get_or_create_client(session, account, tier, project_address, lead):
    client = session.query(Client).filter_by(user_id=account.id).first()
    if client is not None:
        return client
    client = Client(
        user_id=account.id,
        lead_id=lead.id if lead is not None else None,
        tier=tier,
        status=CLIENT_STATUS_ONBOARDING,
        project_address=project_address,
    )
    session.add(client)
    session.flush()
    return client


def _provision(session, event, email, intent, tier_override, password_hash):
    """All writes for one conversion. Caller commits or rolls back."""
    metadata = getattr(event, 'metadata', None) or {}
    lead = _find_lead(session, metadata, email)
    tier = resolve_tier(metadata, lead, tier_override)

    project_address = (
        _metadata_value(metadata, 'project_address', 'projectAddress')
        or (lead.project_address if lead is not None else None)
        or UNKNOWN_ADDRESS
    )
    project_name = (
        _metadata_value(metadata, 'project_name', 'projectName')
        or f'{project_address} Project'
    )
    name = getattr(event, 'customer_name', None) or (lead.name if lead is not None else None)

    account, new_account = _get_or_create_account(session, email, name, password_hash, tier)
    client = _get_or_create_client(session, account, tier, project_address, lead)

    project = Project(
        client_id=client.id,
        lead_id=lead.id if lead is not None else None,
        name=project_name,
        tier=tier,
        status=PROJECT_STATUS_ONBOARDING,
        payment_status='paid',
    )
    session.add(project)
    session.flush()

    amount = getattr(event, 'amount', None)
    currency = (getattr(event, 'currency', None) or DEFAULT_CURRENCY).lower()
    payment = Payment(
        project_id=project.id,
        stripe_payment_intent_id=intent,
        stripe_customer_id=getattr(event, 'customer_id', None) or UNKNOWN_CUSTOMER_ID,
        stripe_checkout_session_id=getattr(event, 'session_id', None),
        amount=int(amount or 0),
        currency=currency,
        status=PAYMENT_STATUS_SUCCEEDED,
        tier=tier,
    )
    session.add(payment)
    session.flush()

    session.add(AuditLog(
        user_id=account.id,
        action='payment',
        resource_type='payment',
        resource_id=str(payment.id),
        details={
            'checkout_session_id': getattr(event, 'session_id', None),
            'payment_intent_id': intent,
            'tier': tier,
            'amount': payment.amount,
            'currency': currency,
            'new_account': new_account,
            'lead_id': lead.id if lead is not None else None,
        },
    ))

    if lead is not None and lead.status != 'CONVERTED':
        lead.status = 'CONVERTED'

    return ConversionResult(
        account=account, client=client, project=project, payment=payment,
        new_account=new_account,
        project_address=project_address,
    )


def _commit_conversion(event, email, intent, tier_override, password_hash) -> ConversionResult:
    """
    Run the unit of work in its own session.

    Raises ConflictError if the payment intent turned out to be taken,
    TransactionError for any other persistence failure.
    """
    session = get_session()
    try:
        result = _provision(session, event, email, intent, tier_override, password_hash)
        session.commit()
        return result
    except IntegrityError as e:
        session.rollback()
        if session.query(Payment.id).filter_by(stripe_payment_intent_id=intent).first():
            raise ConflictError(intent) from e
        raise TransactionError(f'Integrity violation while provisioning {intent}: {e.orig}') from e
    except SQLAlchemyError as e:
        session.rollback()
        raise TransactionError(f'Database error while provisioning {intent}: {e}') from e
    finally:
        session.close()


def _deliver_notice(result, email, notifier):
    project = result.project
    try:
        delivered = notifier(email, {
            'access_code': result.access_code,
            'project_address': result.project_address or result.client.project_address,
            'tier': project.tier,
            'project_name': project.name,
        })
        if delivered is False:
            raise NotificationError('Notification dispatcher reported failure')
        result.notification_sent = True
    except Exception as e:
        result.notification_error = str(e) or e.__class__.__name__
        logger.error(
            "Provisioned %s but access notice failed: %s",
            result.payment.stripe_payment_intent_id, result.notification_error,
        )
        notify_notification_failed(
            email, result.payment.stripe_payment_intent_id, e, access_code=result.access_code,
        )


def convert(event, tier_override=None, notifier: Callable = None) -> ConversionResult:
    """
    Provision a paying customer from a confirmed payment event.

    `event` needs customer_email and payment_intent_id; customer_id, amount,
    currency, session_id, customer_name and metadata (tier, lead_id,
    project_address, project_name) are optional. `tier_override` is an
    admin decision that beats anything in the event.

    Idempotent on payment_intent_id. Raises ValidationError before any write,
    TransactionError when nothing could be persisted (safe to retry).
    """
    email, intent = _validate(event)
    notifier = notifier or send_access_notice

    existing = find_conversion(intent)
    if existing is not None:
        logger.info(
            "Payment intent %s already provisioned (payment %s)", intent, existing.payment.id,
            extra={'payment_intent_id': intent},
        )
        return existing

    access_code = generate_access_code()
    password_hash = hash_password(generate_temp_password())

    for attempt in range(1, MAX_ATTEMPTS + 1):
        try:
            result = _commit_conversion(event, email, intent, tier_override, password_hash)
            break
        except ConflictError:
            logger.info("Payment intent %s provisioned concurrently — returning existing records", intent)
            return find_conversion(intent)
        except TransactionError:
            if attempt == MAX_ATTEMPTS:
                logger.error("Provisioning %s rolled back", intent, exc_info=True, extra={'payment_intent_id': intent})
                raise
            logger.warning("Provisioning %s hit a conflict, retrying", intent, exc_info=True)

    result.access_code = access_code
    logger.info(
        "Provisioned %s: user %s (%s), client %s, project %s, payment %s, tier %d",
        intent, result.account.id, 'new' if result.new_account else 'existing',
        result.client.id, result.project.id, result.payment.id, result.project.tier,
        extra={'payment_intent_id': intent, 'lead_id': result.project.lead_id},
    )

    _deliver_notice(result, email, notifier)
    return result
