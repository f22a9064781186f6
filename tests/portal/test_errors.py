"""Tests for portal.errors — HTTP status mapping and JSON bodies."""
import pytest

from portal.errors import (
    PortalError, ValidationError, NotFoundError, SignatureError, MisconfiguredError,
    ConflictError, TransactionError, NotificationError, InvalidSignature, Misconfigured,
)


class TestStatusCodes:

    @pytest.mark.parametrize('error,status', [
        (ValidationError('bad'), 400),
        (NotFoundError('gone'), 404),
        (SignatureError('forged'), 400),
        (MisconfiguredError('no key'), 500),
        (TransactionError('rolled back'), 500),
        (NotificationError('mail down'), 502),
        (ConflictError('pi_1'), 200),
    ])
    def test_status(self, error, status):
        assert isinstance(error, PortalError)
        assert error.status_code == status

    def test_aliases(self):
        assert InvalidSignature is SignatureError
        assert Misconfigured is MisconfiguredError


class TestBodies:

    def test_plain_error(self):
        assert NotFoundError('Lead 3 not found').to_dict() == {'error': 'Lead 3 not found'}

    def test_validation_fields(self):
        error = ValidationError('Invalid intake data', {'email': 'required'})
        assert error.to_dict() == {'error': 'Invalid intake data', 'fields': {'email': 'required'}}

    def test_validation_without_fields(self):
        assert ValidationError('Nothing to update').to_dict() == {'error': 'Nothing to update'}

    def test_conflict_carries_intent(self):
        error = ConflictError('pi_9')
        assert error.payment_intent_id == 'pi_9'
        assert 'pi_9' in str(error)
