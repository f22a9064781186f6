"""Shared test fixtures."""
import pytest
from unittest.mock import patch
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from portal import MODEL_MODULES
from portal.database import Base


class FakeRedis:
    """Minimal in-memory Redis fake for circuit breaker tests."""

    def __init__(self):
        self.get_store = {}
        self.hash_store = {}

    def get(self, key):
        return self.get_store.get(key)

    def set(self, key, value):
        self.get_store[key] = value

    def incr(self, key):
        val = int(self.get_store.get(key, 0)) + 1
        self.get_store[key] = str(val)
        return val

    def delete(self, *keys):
        for k in keys:
            self.get_store.pop(k, None)
            self.hash_store.pop(k, None)

    def hset(self, key, field, value):
        self.hash_store.setdefault(key, {})[field] = value

    def hincrby(self, key, field, amount):
        h = self.hash_store.setdefault(key, {})
        h[field] = str(int(h.get(field, 0)) + amount)

    def hgetall(self, key):
        return dict(self.hash_store.get(key, {}))

    def pipeline(self):
        return FakePipeline(self)


class FakePipeline:
    """Fake Redis pipeline that executes on execute()."""

    def __init__(self, redis):
        self._redis = redis
        self._ops = []

    def set(self, key, value):
        self._ops.append(('set', key, value))
        return self

    def delete(self, *keys):
        self._ops.append(('delete', keys))
        return self

    def hincrby(self, key, field, amount):
        self._ops.append(('hincrby', key, field, amount))
        return self

    def hset(self, key, field, value):
        self._ops.append(('hset', key, field, value))
        return self

    def execute(self):
        for op in self._ops:
            if op[0] == 'set':
                self._redis.set(op[1], op[2])
            elif op[0] == 'delete':
                self._redis.delete(*op[1])
            elif op[0] == 'hincrby':
                self._redis.hincrby(op[1], op[2], op[3])
            elif op[0] == 'hset':
                self._redis.hset(op[1], op[2], op[3])
        self._ops = []


@pytest.fixture
def fake_redis():
    """In-memory Redis fake with dict-backed storage."""
    return FakeRedis()


@pytest.fixture(autouse=True)
def breakers(fake_redis):
    """Every named circuit breaker backed by the fake Redis, closed."""
    from portal.services.circuit_breaker import init_breakers
    return init_breakers(fake_redis)


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created, shared across connections."""
    import importlib
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    for module in MODEL_MODULES:
        importlib.import_module(module)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(autouse=True)
def test_sessions(db_engine):
    """Route all get_session() calls to the in-memory database.

    Each call still gets its own session, so commit/rollback/close in the
    code under test behave as they do in production.
    """
    factory = sessionmaker(bind=db_engine, expire_on_commit=False)
    with patch('portal.database.SessionLocal', factory):
        yield factory


@pytest.fixture
def db_session(test_sessions):
    """A separate session for arranging and asserting database state."""
    session = test_sessions()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def app(fake_redis):
    """Flask test app."""
    from portal import create_app
    from portal.services.circuit_breaker import init_breakers
    app = create_app()
    app.config['TESTING'] = True
    init_breakers(fake_redis)
    yield app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c


@pytest.fixture
def make_lead(db_session):
    """Factory fixture — persists a Lead with sensible defaults."""
    from portal.models.lead import Lead

    def _make(**overrides):
        defaults = dict(
            email='pat@example.com',
            name='Pat Gardener',
            project_address='12 Elm St, Springfield',
            budget_range='2000_5000',
            timeline='1_2_months',
            project_type='standard_renovation',
            has_survey=True,
            has_drawings=False,
            status='NEW',
            recommended_tier=2,
            tier_confidence='high',
            needs_manual_review=False,
        )
        defaults.update(overrides)
        lead = Lead(**defaults)
        db_session.add(lead)
        db_session.commit()
        return lead
    return _make


@pytest.fixture
def make_event():
    """Factory fixture — a confirmed-checkout PaymentEvent."""
    from portal.services.payment_gateway import PaymentEvent

    def _make(**overrides):
        defaults = dict(
            kind='checkout.session.completed',
            event_id='evt_test_001',
            customer_email='pat@example.com',
            customer_name='Pat Gardener',
            customer_id='cus_test_001',
            payment_intent_id='pi_test_001',
            session_id='cs_test_001',
            amount=149900,
            currency='USD',
            metadata={'tier': '2', 'project_address': '12 Elm St, Springfield'},
        )
        defaults.update(overrides)
        return PaymentEvent(**defaults)
    return _make
