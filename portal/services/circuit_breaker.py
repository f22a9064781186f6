"""
Redis-backed circuit breaker for outbound HTTP services (mail API, Slack, Stripe).

States:
  - CLOSED    → calls pass through
  - OPEN      → threshold reached; calls fail fast with CircuitOpenError
  - HALF_OPEN → reset_timeout elapsed; the next call is a probe

Redis being down never blocks a call: every Redis error is treated as CLOSED.
"""
import logging
import time

logger = logging.getLogger('services.circuit_breaker')

CLOSED = 'closed'
OPEN = 'open'
HALF_OPEN = 'half_open'


class CircuitOpenError(Exception):
    """Raised when calling through an open circuit breaker."""
    def __init__(self, name, retry_after=None):
        self.name = name
        self.retry_after = retry_after
        super().__init__(f"Circuit breaker '{name}' is OPEN — service unavailable")


class CircuitBreaker:
    """
    Usage:
        cb = CircuitBreaker('email', redis_client, failure_threshold=3, reset_timeout=120)
        cb.call(requests.post, url, json=payload, timeout=10)
    """

    PREFIX = 'cb'

    def __init__(self, name, redis_client, failure_threshold=3, reset_timeout=300):
        self.name = name
        self.redis = redis_client
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout

    def _key(self, suffix):
        return f'{self.PREFIX}:{self.name}:{suffix}'

    # ── State ─────────────────────────────────────────────────────────

    def _seconds_since_failure(self):
        last = self.redis.get(self._key('last_failure'))
        return time.time() - float(last) if last else None

    @property
    def state(self):
        try:
            current = self.redis.get(self._key('state')) or CLOSED
            if current == OPEN:
                elapsed = self._seconds_since_failure()
                if elapsed is not None and elapsed > self.reset_timeout:
                    self.redis.set(self._key('state'), HALF_OPEN)
                    return HALF_OPEN
            return current
        except Exception:
            return CLOSED

    @property
    def failure_count(self):
        try:
            return int(self.redis.get(self._key('failures')) or 0)
        except Exception:
            return 0

    def get_health(self):
        """Health metrics dict for /api/health."""
        try:
            data = self.redis.hgetall(self._key('health')) or {}
        except Exception:
            data = {}
        return {
            'name': self.name,
            'state': self.state,
            'failure_count': self.failure_count,
            'failure_threshold': self.failure_threshold,
            'reset_timeout': self.reset_timeout,
            'total_success': int(data.get('success', 0)),
            'total_failure': int(data.get('failure', 0)),
            'last_error': data.get('last_error', ''),
        }

    # ── Calls ─────────────────────────────────────────────────────────

    def call(self, func, *args, **kwargs):
        """Execute func through the breaker, re-raising its exceptions."""
        if self.state == OPEN:
            try:
                elapsed = self._seconds_since_failure()
            except Exception:
                elapsed = None
            retry_after = max(0, self.reset_timeout - elapsed) if elapsed is not None else None
            raise CircuitOpenError(self.name, retry_after=retry_after)

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            self._on_failure(e)
            raise
        self._on_success()
        return result

    def _on_success(self):
        try:
            pipe = self.redis.pipeline()
            pipe.set(self._key('state'), CLOSED)
            pipe.set(self._key('failures'), 0)
            pipe.hincrby(self._key('health'), 'success', 1)
            pipe.execute()
        except Exception:
            logger.debug("Could not record success for circuit '%s'", self.name)

    def _on_failure(self, error):
        try:
            count = self.redis.incr(self._key('failures'))
            self.redis.set(self._key('last_failure'), str(time.time()))
            pipe = self.redis.pipeline()
            pipe.hincrby(self._key('health'), 'failure', 1)
            pipe.hset(self._key('health'), 'last_error', str(error)[:200])
            pipe.execute()
            if count >= self.failure_threshold:
                self.redis.set(self._key('state'), OPEN)
                logger.warning("Circuit '%s' OPENED after %d failures: %s", self.name, count, error)
            else:
                logger.info("Circuit '%s' failure %d/%d: %s", self.name, count, self.failure_threshold, error)
        except Exception:
            logger.debug("Could not record failure for circuit '%s'", self.name)

    def reset(self):
        """Manually close the circuit."""
        try:
            pipe = self.redis.pipeline()
            pipe.set(self._key('state'), CLOSED)
            pipe.set(self._key('failures'), 0)
            pipe.delete(self._key('last_failure'))
            pipe.execute()
            logger.info("Circuit '%s' manually reset to CLOSED", self.name)
        except Exception as e:
            logger.error("Failed to reset circuit '%s': %s", self.name, e)


# ── Registry ──────────────────────────────────────────────────────────────

_registry = {}

_DEFAULTS = {
    'email': {'failure_threshold': 3, 'reset_timeout': 120},
    'slack': {'failure_threshold': 5, 'reset_timeout': 300},
    'stripe': {'failure_threshold': 5, 'reset_timeout': 60},
}


def get_breaker(name, redis_client=None):
    """Get or create a named circuit breaker (singleton per name)."""
    if name not in _registry:
        if redis_client is None:
            from portal.extensions import redis_client as rc
            redis_client = rc
        _registry[name] = CircuitBreaker(name, redis_client, **_DEFAULTS.get(name, {}))
    return _registry[name]


def get_all_breakers():
    return dict(_registry)


def init_breakers(redis_client):
    """Register a breaker for every external service the portal calls."""
    for name, settings in _DEFAULTS.items():
        _registry[name] = CircuitBreaker(name, redis_client, **settings)
    return dict(_registry)
