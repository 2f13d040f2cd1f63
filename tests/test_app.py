"""
API tests - Flask endpoints backed by the in-memory gateway and store
"""

import pytest
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import app as app_module
import config
from gateway import InMemoryReminderGateway, TransportError
from storage import InMemoryScheduleStore

SATURDAY_AFTERNOON = '2024-06-15T13:00:00-05:00'


@pytest.fixture
def gateway():
    return InMemoryReminderGateway()


@pytest.fixture
def client(gateway, monkeypatch):
    monkeypatch.setattr(config, 'DRY_RUN_MODE', False)
    monkeypatch.setattr(config, 'ANGELUS_ENABLED', True)
    app_module.initialize_components(gateway=gateway, store=InMemoryScheduleStore(), start_scheduler=False)
    app_module.app.config['TESTING'] = True

    with app_module.app.test_client() as client:
        yield client


@pytest.fixture
def parish(client):
    response = client.post('/presets/Parish', json={'ownerName': 'St. Edward'})
    assert response.status_code == 200
    return response.get_json()


class TestHealth:

    @pytest.mark.api
    def test_health(self, client):
        response = client.get('/health')

        assert response.status_code == 200
        assert response.get_json()['status'] == 'healthy'
        assert response.headers['X-Frame-Options'] == 'DENY'

    @pytest.mark.api
    def test_plain_http_redirected(self, client):
        response = client.get('/health', headers={'X-Forwarded-Proto': 'http'})

        assert response.status_code == 301
        assert response.headers['Location'].startswith('https://')

    @pytest.mark.api
    def test_status(self, client, parish):
        status = client.get('/status').get_json()

        assert status['schedule_owner'] == 'St. Edward'
        assert status['rule_count'] == 5
        assert status['angelus_enabled'] is True
        assert status['scheduler_running'] is False
        assert status['next_service'] is not None


class TestSchedule:

    @pytest.mark.api
    def test_initially_empty(self, client):
        data = client.get('/schedule').get_json()
        assert data == {'ownerName': '', 'rules': [], 'preset': None}

    @pytest.mark.api
    def test_put_schedule_assigns_ids_and_syncs(self, client, gateway):
        response = client.put('/schedule', json={
            'ownerName': 'Chapel',
            'rules': [
                {'kind': 'weekly', 'weekday': 5, 'hour': 12, 'minute': 10, 'label': 'Noon Mass'},
                {'kind': 'daily', 'hour': 18, 'minute': 0},
            ],
        })
        data = response.get_json()

        assert response.status_code == 200
        assert data['sync']['success'] is True
        assert all(rule['id'] for rule in data['schedule']['rules'])
        assert len(gateway.pending) == 2
        assert client.get('/schedule').get_json()['ownerName'] == 'Chapel'

    @pytest.mark.api
    def test_put_schedule_keeps_given_ids(self, client, gateway):
        client.put('/schedule', json={'ownerName': 'Chapel', 'rules': [
            {'id': 'noon', 'kind': 'daily', 'hour': 12, 'minute': 0},
        ]})
        client.put('/schedule', json={'ownerName': 'Chapel', 'rules': [
            {'id': 'noon', 'kind': 'daily', 'hour': 12, 'minute': 15},
        ]})

        assert list(gateway.pending) == [config.REMINDER_NAMESPACE + 'noon']
        assert gateway.pending[config.REMINDER_NAMESPACE + 'noon'].trigger.minute == 15

    @pytest.mark.api
    @pytest.mark.parametrize("body", [
        {'ownerName': 'x', 'rules': [{'kind': 'daily', 'hour': 25, 'minute': 0}]},
        {'ownerName': 'x', 'rules': [{'kind': 'weekly', 'hour': 9, 'minute': 0}]},
        {'ownerName': 'x', 'rules': 'none'},
        ['not', 'an', 'object'],
    ])
    def test_put_invalid_schedule(self, client, gateway, body):
        response = client.put('/schedule', json=body)

        assert response.status_code == 400
        assert 'error' in response.get_json()
        assert gateway.pending == {}

    @pytest.mark.api
    def test_put_without_json(self, client):
        response = client.put('/schedule', data='ownerName=x')
        assert response.status_code == 400

    @pytest.mark.api
    def test_delete_schedule(self, client, gateway, parish):
        response = client.delete('/schedule')

        assert response.status_code == 200
        assert gateway.pending == {}
        assert client.get('/schedule').get_json()['rules'] == []

    @pytest.mark.api
    def test_gateway_outage_is_502(self, client, gateway):
        gateway.fail_list = TransportError("offline")

        response = client.post('/presets/parish')
        assert response.status_code == 502


class TestPresets:

    @pytest.mark.api
    def test_list(self, client):
        names = [preset['name'] for preset in client.get('/presets').get_json()]
        assert names == ['Parish', 'Monastery', 'Commuter']

    @pytest.mark.api
    def test_apply_with_angelus(self, client, gateway, parish):
        assert parish['schedule']['preset'] == 'Parish'
        assert len(parish['schedule']['rules']) == 5
        assert len(gateway.pending) == 5

    @pytest.mark.api
    def test_apply_without_angelus(self, client, gateway):
        data = client.post('/presets/monastery', json={'includeAngelus': False}).get_json()

        assert len(data['schedule']['rules']) == 3
        assert data['schedule']['ownerName'] == config.DEFAULT_OWNER_NAME
        assert len(gateway.pending) == 3

    @pytest.mark.api
    def test_unknown_preset(self, client):
        assert client.post('/presets/cathedral').status_code == 404

    @pytest.mark.api
    def test_angelus_toggle(self, client, gateway, parish):
        response = client.put('/settings/angelus', json={'enabled': False})

        assert response.status_code == 200
        assert len(gateway.pending) == 2
        assert client.put('/settings/angelus', json={'enabled': 'no'}).status_code == 400


class TestNextService:

    @pytest.mark.api
    def test_next_after_instant(self, client, parish):
        data = client.get('/next', query_string={'at': SATURDAY_AFTERNOON}).get_json()

        assert data['next']['title'] == 'Vigil Mass'
        assert data['next']['instant'] == '2024-06-15T17:00:00-05:00'
        assert data['refresh_at'] == '2024-06-15T17:00:00-05:00'

    @pytest.mark.api
    def test_next_with_empty_schedule(self, client):
        data = client.get('/next', query_string={'at': SATURDAY_AFTERNOON}).get_json()

        assert data['next'] is None
        assert data['refresh_at'] == '2024-06-15T13:30:00-05:00'

    @pytest.mark.api
    def test_bad_instant(self, client):
        assert client.get('/next', query_string={'at': 'soon'}).status_code == 400

    @pytest.mark.api
    def test_upcoming(self, client, parish):
        data = client.get('/upcoming', query_string={'at': SATURDAY_AFTERNOON, 'limit': 3}).get_json()
        assert [o['title'] for o in data['upcoming']] == ['Vigil Mass', 'Angelus', 'Angelus']

    @pytest.mark.api
    @pytest.mark.parametrize("limit", ['-1', 'many'])
    def test_upcoming_bad_limit(self, client, limit):
        assert client.get('/upcoming', query_string={'limit': limit}).status_code == 400


class TestSyncEndpoints:

    @pytest.mark.api
    def test_sync_is_idempotent(self, client, gateway, parish):
        before = gateway.snapshot()
        data = client.post('/sync').get_json()

        assert data['success'] is True
        assert gateway.snapshot() == before

    @pytest.mark.api
    def test_sync_outage(self, client, gateway):
        gateway.fail_list = TransportError("offline")
        assert client.post('/sync').status_code == 502

    @pytest.mark.api
    def test_preview(self, client, gateway, parish):
        gateway.remove(list(gateway.pending)[:1])
        preview = client.post('/sync/preview').get_json()['preview']

        assert preview['replace_count'] == 5
        assert len(preview['new_reminders']) == 1
        assert preview['remove_count'] == 0

    @pytest.mark.api
    def test_authorization(self, client, gateway):
        assert client.post('/authorization').get_json() == {'authorized': True}

        gateway.fail_authorization = TransportError("offline")
        assert client.post('/authorization').status_code == 502

    @pytest.mark.api
    def test_history_and_metrics(self, client, parish):
        history = client.get('/history').get_json()
        metrics = client.get('/metrics').get_json()

        assert history['total_syncs'] == 1
        assert history['recent_failures'] == []
        assert metrics['metrics']['scheduled'] == 5
        assert 'circuit_breaker' not in metrics

    @pytest.mark.api
    def test_validate_sync(self, client, gateway, parish):
        assert client.post('/validate-sync').get_json()['is_valid'] is True

        gateway.add(config.REMINDER_NAMESPACE + 'stray', 'Stray', '', list(gateway.pending.values())[0].trigger)
        assert client.post('/validate-sync').get_json()['is_valid'] is False
