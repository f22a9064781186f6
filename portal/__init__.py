"""
Flask application factory.

Creates and configures the Flask app, registers all blueprints.
"""
import importlib

from flask import Flask


MODEL_MODULES = [
    'portal.models.lead',
    'portal.models.user',
    'portal.models.client',
    'portal.models.project',
    'portal.models.payment',
    'portal.models.audit_log',
]


def create_app():
    """Create and configure the Flask application."""
    from portal.config import SECRET_KEY
    from portal.logging_config import configure_logging

    app = Flask(__name__)

    configure_logging(app)

    app.secret_key = SECRET_KEY

    # Register blueprints
    from portal.routes.health import bp as health_bp
    from portal.routes.leads import bp as leads_bp
    from portal.routes.webhooks import bp as webhooks_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(leads_bp)
    app.register_blueprint(webhooks_bp)

    # Initialize circuit breakers for external services
    from portal.extensions import redis_client
    from portal.services.circuit_breaker import init_breakers
    init_breakers(redis_client)

    # Import models so Base.metadata knows about them.
    # Schema is managed by Alembic; no create_all() call.
    for module in MODEL_MODULES:
        importlib.import_module(module)

    return app
