"""Tests for /health, /api/health and /api/health/<service>/reset."""


class TestHealth:

    def test_liveness(self, client):
        resp = client.get('/health')
        assert resp.status_code == 200
        assert resp.get_json() == {'status': 'healthy'}


class TestApiHealth:

    def test_lists_every_breaker(self, client):
        data = client.get('/api/health').get_json()
        assert {'email', 'slack', 'stripe'} <= set(data['services'])
        assert data['status'] == 'ok'

    def test_service_fields(self, client):
        svc = client.get('/api/health').get_json()['services']['email']
        for key in ('name', 'state', 'failure_count', 'failure_threshold', 'total_success', 'total_failure'):
            assert key in svc

    def test_open_breaker_degrades(self, client, fake_redis):
        fake_redis.set('cb:stripe:state', 'open')
        data = client.get('/api/health').get_json()
        assert data['status'] == 'degraded'
        assert data['services']['stripe']['state'] == 'open'


class TestResetCircuit:

    def test_reset_known_service(self, client, fake_redis):
        fake_redis.set('cb:email:state', 'open')
        resp = client.post('/api/health/email/reset')
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['ok'] is True
        assert data['service']['state'] == 'closed'

    def test_reset_unknown_service_404(self, client):
        resp = client.post('/api/health/nonexistent/reset')
        assert resp.status_code == 404
