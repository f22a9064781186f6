"""
Lead routes — intake, stateless tier preview, admin review, checkout.
"""
import logging
from flask import Blueprint, request, jsonify

from portal.errors import PortalError
from portal.routing.engine import Intake, recommend
from portal.services import leads as lead_service
from portal.services.checkout import create_checkout_session

logger = logging.getLogger('routes.leads')

bp = Blueprint('leads', __name__)


@bp.errorhandler(PortalError)
def handle_portal_error(e):
    return jsonify(e.to_dict()), e.status_code


@bp.route('/api/leads', methods=['POST'])
def create_lead():
    """Intake form submission. Returns the lead and its tier recommendation."""
    lead, recommendation = lead_service.create_lead(request.get_json(silent=True))
    return jsonify({
        'lead': lead.to_dict(),
        'recommendation': recommendation.to_dict(),
    }), 201


@bp.route('/api/tier-recommendation', methods=['POST'])
def tier_recommendation():
    """Preview the routing decision without persisting anything."""
    return jsonify(recommend(request.get_json(silent=True) or {}).to_dict())


@bp.route('/api/leads')
def list_leads():
    args = request.args
    try:
        page = int(args.get('page', 1))
        limit = int(args.get('limit', 20))
        tier = int(args['tier']) if args.get('tier') else None
    except ValueError:
        return jsonify({'error': 'page, limit and tier must be integers'}), 400

    leads, meta = lead_service.list_leads(
        status=(args.get('status') or '').upper() or None,
        tier=tier,
        email=args.get('email'),
        page=page,
        limit=limit,
    )
    return jsonify({'leads': [lead.to_dict() for lead in leads], 'pagination': meta})


@bp.route('/api/leads/<int:lead_id>')
def get_lead(lead_id):
    """One lead with its effective tier and a freshly recomputed recommendation."""
    lead = lead_service.get_lead(lead_id)
    data = lead.to_dict()
    data['recommendation'] = recommend(Intake.from_lead(lead)).to_dict()
    return jsonify(data)


@bp.route('/api/leads/<int:lead_id>', methods=['PATCH'])
def update_lead(lead_id):
    """Admin review: status change and/or tier override (reason required)."""
    lead = lead_service.update_lead(lead_id, request.get_json(silent=True))
    return jsonify(lead.to_dict())


@bp.route('/api/leads/<int:lead_id>/checkout', methods=['POST'])
def checkout(lead_id):
    data = request.get_json(silent=True) or {}
    result = create_checkout_session(
        lead_id,
        success_url=data.get('success_url'),
        cancel_url=data.get('cancel_url'),
    )
    return jsonify(result), 201
