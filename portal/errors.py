"""
Error taxonomy for intake, checkout and provisioning.

Routes translate these into JSON error bodies; the HTTP status each one maps
to lives on the class so blueprints don't repeat the table.
"""


class PortalError(Exception):
    """Base class for every error raised deliberately by the portal."""
    status_code = 500

    def to_dict(self):
        return {'error': str(self)}


class ValidationError(PortalError):
    """Missing or malformed input. Rejected before any write."""
    status_code = 400

    def __init__(self, message, fields=None):
        self.fields = fields or {}
        super().__init__(message)

    def to_dict(self):
        data = {'error': str(self)}
        if self.fields:
            data['fields'] = self.fields
        return data


class NotFoundError(PortalError):
    status_code = 404


class SignatureError(PortalError):
    """Webhook payload could not be authenticated. Never retried."""
    status_code = 400


class MisconfiguredError(PortalError):
    """A required secret or credential is not configured."""
    status_code = 500


class ConflictError(PortalError):
    """Payment intent already has a Payment row — the event was processed."""
    status_code = 200

    def __init__(self, payment_intent_id):
        self.payment_intent_id = payment_intent_id
        super().__init__(f"Payment intent '{payment_intent_id}' already processed")


class TransactionError(PortalError):
    """Persistence failed inside the provisioning unit of work; nothing was written."""
    status_code = 500


class NotificationError(PortalError):
    """Post-commit delivery of the access notice failed. Provisioning stands."""
    status_code = 502


# Provider-facing names used by the payment gateway adapter
InvalidSignature = SignatureError
Misconfigured = MisconfiguredError
