"""
Centralized configuration — all env vars, constants, lead/tier vocabularies.
"""
import os


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Flask ─────────────────────────────────────────────────────────────────────
SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-change-me')
FRONTEND_URL = os.getenv('FRONTEND_URL', 'http://localhost:3000')

# ── Redis ─────────────────────────────────────────────────────────────────────
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

# ── PostgreSQL ────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')

# ── Stripe ────────────────────────────────────────────────────────────────────
STRIPE_SECRET_KEY = os.getenv('STRIPE_SECRET_KEY')
STRIPE_WEBHOOK_SECRET = os.getenv('STRIPE_WEBHOOK_SECRET')
STRIPE_SIGNATURE_HEADER = 'Stripe-Signature'

# ── Transactional email (HTTP API) ───────────────────────────────────────────
EMAIL_API_URL = os.getenv('EMAIL_API_URL')
EMAIL_API_KEY = os.getenv('EMAIL_API_KEY')
EMAIL_FROM = os.getenv('EMAIL_FROM', 'SAGE Portal <portal@sage.design>')
EMAIL_TIMEOUT_SECONDS = int(os.getenv('EMAIL_TIMEOUT_SECONDS', '10'))

# ── Slack notifications ──────────────────────────────────────────────────────
SLACK_WEBHOOK_URL = os.getenv('SLACK_WEBHOOK_URL')

# ── Tier catalogue ───────────────────────────────────────────────────────────
MIN_TIER = 1
MAX_TIER = 4
DEFAULT_TIER = 1

# ── Lead lifecycle ───────────────────────────────────────────────────────────
LEAD_STATUSES = [
    'NEW',
    'QUALIFIED',
    'NEEDS_REVIEW',
    'CONVERTED',
    'CLOSED',
]

# Statuses an admin may set by hand; CONVERTED belongs to provisioning.
ADMIN_LEAD_STATUSES = ['NEW', 'QUALIFIED', 'NEEDS_REVIEW', 'CLOSED']

# ── Provisioning defaults ────────────────────────────────────────────────────
ACCOUNT_TYPE = 'SAGE_CLIENT'
CLIENT_STATUS_ONBOARDING = 'ONBOARDING'
PROJECT_STATUS_ONBOARDING = 'ONBOARDING'
PAYMENT_STATUS_SUCCEEDED = 'SUCCEEDED'
UNKNOWN_ADDRESS = 'Unknown Address'
UNKNOWN_CUSTOMER_ID = 'unknown'
DEFAULT_CURRENCY = 'usd'

# ── Payment events ───────────────────────────────────────────────────────────
PAYMENT_CONFIRMED_EVENT = 'checkout.session.completed'
