"""Tests for portal.services.leads — intake, listing and admin review."""
import pytest
from unittest.mock import patch

from portal.errors import ValidationError, NotFoundError
from portal.models.lead import Lead
from portal.services.leads import (
    create_lead, get_lead, list_leads, update_lead, validate_override,
)

INTAKE = {
    'email': '  Pat@Example.com ',
    'name': 'Pat',
    'projectAddress': '12 Elm St',
    'budgetRange': 'under_500',
    'timeline': 'asap',
    'projectType': 'simple_consultation',
    'hasSurvey': True,
    'hasDrawings': True,
}


class TestCreateLead:

    def test_persists_lead_with_recommendation(self, db_session):
        lead, rec = create_lead(INTAKE)
        stored = db_session.get(Lead, lead.id)
        assert stored.email == 'pat@example.com'
        assert stored.recommended_tier == 1 == rec.tier
        assert stored.tier_confidence == 'high'
        assert stored.status == 'NEW'
        assert len(stored.routing_factors) == 4

    def test_review_lead_starts_in_needs_review_and_alerts(self):
        data = dict(INTAKE, budgetRange='not_sure')
        with patch('portal.services.leads.notify_manual_review') as alert:
            lead, rec = create_lead(data)
        assert lead.status == 'NEEDS_REVIEW'
        assert lead.needs_manual_review is True
        alert.assert_called_once_with(lead, rec)

    def test_no_alert_for_auto_routed_lead(self):
        with patch('portal.services.leads.notify_manual_review') as alert:
            create_lead(INTAKE)
        alert.assert_not_called()

    def test_unknown_categories_accepted(self):
        lead, _ = create_lead(dict(INTAKE, budgetRange='loads', projectType='castle'))
        assert lead.budget_range == 'unknown'
        assert lead.project_type == 'unknown'

    @pytest.mark.parametrize('field,value', [
        ('email', 'not-an-email'),
        ('email', ''),
        ('projectAddress', '   '),
    ])
    def test_rejects_missing_identity(self, field, value, db_session):
        with pytest.raises(ValidationError):
            create_lead(dict(INTAKE, **{field: value}))
        assert db_session.query(Lead).count() == 0

    @pytest.mark.parametrize('data', [[1, 2], 5, 'pat@example.com'])
    def test_rejects_non_object_body(self, data, db_session):
        with pytest.raises(ValidationError):
            create_lead(data)
        assert db_session.query(Lead).count() == 0

    def test_non_string_fields_treated_as_missing(self):
        with pytest.raises(ValidationError) as exc:
            create_lead(dict(INTAKE, email=42, projectAddress=['x']))
        assert set(exc.value.fields) == {'email', 'project_address'}


class TestGetLead:

    def test_found(self, make_lead):
        lead = make_lead()
        assert get_lead(lead.id).email == 'pat@example.com'

    def test_missing(self):
        with pytest.raises(NotFoundError):
            get_lead(999)


class TestListLeads:

    def test_filters_and_paginates(self, make_lead):
        for i in range(5):
            make_lead(email=f'a{i}@example.com', recommended_tier=2)
        make_lead(email='b@example.com', recommended_tier=3, status='CLOSED')

        leads, meta = list_leads(tier=2, page=2, limit=2)
        assert len(leads) == 2
        assert meta == {
            'page': 2, 'limit': 2, 'total_count': 5, 'total_pages': 3,
            'has_next_page': True, 'has_prev_page': True,
        }

        closed, meta = list_leads(status='CLOSED')
        assert [lead.email for lead in closed] == ['b@example.com']

    def test_newest_first(self, make_lead):
        first = make_lead(email='first@example.com')
        second = make_lead(email='second@example.com')
        leads, _ = list_leads()
        assert [lead.id for lead in leads] == [second.id, first.id]

    def test_email_search(self, make_lead):
        make_lead(email='jo@garden.co')
        make_lead(email='sam@example.com')
        leads, meta = list_leads(email='garden')
        assert meta['total_count'] == 1
        assert leads[0].email == 'jo@garden.co'

    def test_limit_capped(self):
        _, meta = list_leads(limit=10_000)
        assert meta['limit'] == 100
        assert meta['total_pages'] == 0


class TestValidateOverride:

    def test_clearing_clears_reason(self):
        assert validate_override(None, 'anything') == (None, None)

    def test_string_tier_accepted(self):
        assert validate_override('3', ' site visit needed ') == (3, 'site visit needed')

    @pytest.mark.parametrize('value', [0, 5, '7'])
    def test_out_of_range(self, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_override(value, 'reason')
        assert exc_info.value.fields == {'tier_override': 'out_of_range'}

    @pytest.mark.parametrize('value', [True, 2.5, 'three', [2]])
    def test_not_an_integer(self, value):
        with pytest.raises(ValidationError):
            validate_override(value, 'reason')

    @pytest.mark.parametrize('reason', [None, '', '   '])
    def test_reason_required(self, reason):
        with pytest.raises(ValidationError) as exc_info:
            validate_override(3, reason)
        assert 'override_reason' in exc_info.value.fields


class TestUpdateLead:

    def test_set_override(self, make_lead, db_session):
        lead = make_lead()
        updated = update_lead(lead.id, {'tier_override': 3, 'override_reason': 'Steep lot'})
        assert updated.tier_override == 3
        assert updated.effective_tier == 3
        db_session.expire_all()
        assert db_session.get(Lead, lead.id).override_reason == 'Steep lot'

    def test_override_without_reason_changes_nothing(self, make_lead, db_session):
        lead = make_lead()
        with pytest.raises(ValidationError):
            update_lead(lead.id, {'tier_override': 3, 'status': 'QUALIFIED'})
        db_session.expire_all()
        stored = db_session.get(Lead, lead.id)
        assert stored.tier_override is None
        assert stored.status == 'NEW'

    def test_clear_override(self, make_lead):
        lead = make_lead(tier_override=4, override_reason='Estate')
        updated = update_lead(lead.id, {'tier_override': None})
        assert updated.tier_override is None
        assert updated.override_reason is None
        assert updated.effective_tier == 2

    def test_status_change(self, make_lead):
        lead = make_lead()
        assert update_lead(lead.id, {'status': 'qualified'}).status == 'QUALIFIED'

    def test_converted_not_settable(self, make_lead):
        lead = make_lead()
        with pytest.raises(ValidationError):
            update_lead(lead.id, {'status': 'CONVERTED'})

    def test_converted_lead_locked(self, make_lead):
        lead = make_lead(status='CONVERTED')
        with pytest.raises(ValidationError):
            update_lead(lead.id, {'status': 'CLOSED'})

    def test_reason_without_override_rejected(self, make_lead):
        lead = make_lead()
        with pytest.raises(ValidationError):
            update_lead(lead.id, {'override_reason': 'why'})

    def test_empty_update_rejected(self, make_lead):
        lead = make_lead()
        with pytest.raises(ValidationError):
            update_lead(lead.id, {})

    def test_non_object_update_rejected(self, make_lead):
        lead = make_lead()
        with pytest.raises(ValidationError):
            update_lead(lead.id, ['CLOSED'])

    def test_missing_lead(self):
        with pytest.raises(NotFoundError):
            update_lead(404, {'status': 'CLOSED'})
