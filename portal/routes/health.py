"""
Health routes — liveness plus circuit breaker state for outbound services.
"""
from flask import Blueprint, jsonify

from portal.services.circuit_breaker import get_all_breakers

bp = Blueprint('health', __name__)


@bp.route('/health')
def health_check():
    """Health check endpoint."""
    return jsonify({"status": "healthy"}), 200


@bp.route('/api/health')
def api_health():
    """Circuit breaker state per external service."""
    services = {name: cb.get_health() for name, cb in get_all_breakers().items()}
    degraded = any(s['state'] != 'closed' for s in services.values())
    return jsonify({'status': 'degraded' if degraded else 'ok', 'services': services})


@bp.route('/api/health/<service>/reset', methods=['POST'])
def reset_circuit(service):
    breaker = get_all_breakers().get(service)
    if breaker is None:
        return jsonify({'error': f'Unknown service: {service}'}), 404
    breaker.reset()
    return jsonify({'ok': True, 'service': breaker.get_health()})
