"""
Shared client instances — Redis, Stripe.

Lazily initialized on first access so importing this module is always safe
(even when env vars are missing during tests).
"""
import logging
import redis
import stripe

from portal.config import REDIS_URL, STRIPE_SECRET_KEY

logger = logging.getLogger('portal.extensions')

# ── Redis ─────────────────────────────────────────────────────────────────────
redis_client = redis.from_url(REDIS_URL, decode_responses=True)

# ── Stripe ────────────────────────────────────────────────────────────────────
if STRIPE_SECRET_KEY:
    stripe.api_key = STRIPE_SECRET_KEY
    logger.info("Stripe API key configured")
else:
    logger.warning("STRIPE_SECRET_KEY not set — checkout sessions are disabled")
