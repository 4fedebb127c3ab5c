"""
Tests for the Flask API surface.
"""

import pytest

from flightglobe.app import create_app

from tests.helpers import make_row


@pytest.fixture
def client(engine):
    app = create_app(start_refresh=False, engine=engine)
    app.config['TESTING'] = True
    return app.test_client()


@pytest.fixture
def loaded(engine):
    engine.apply_batch([
        make_row(icao24='aaa111', callsign='UAL1'),
        make_row(icao24='bbb222', callsign='DAL2', lat=41.0),
    ], source_label='OpenSky')
    return engine


class TestFlights:
    def test_list_slots(self, client, loaded):
        response = client.get('/api/flights')
        data = response.get_json()

        assert response.status_code == 200
        assert data['count'] == 2
        assert data['active_count'] == 2
        assert data['generation'] == 1
        assert [s['icao24'] for s in data['slots']] == ['aaa111', 'bbb222']
        assert len(data['slots'][0]['orientation']) == 4
        assert 'matrix' not in data['slots'][0]

    def test_list_slots_with_matrices_and_limit(self, client, loaded):
        data = client.get('/api/flights?include_matrices=true&limit=1').get_json()

        assert data['count'] == 1
        assert data['active_count'] == 2
        assert len(data['slots'][0]['matrix']) == 16

    def test_empty_before_first_cycle(self, client):
        data = client.get('/api/flights').get_json()

        assert data['slots'] == []
        assert data['generation'] == 0

    def test_get_flight(self, client, loaded):
        data = client.get('/api/flights/AAA111').get_json()

        assert data['icao24'] == 'aaa111'
        assert data['detail']['altitude'] == '32808 ft'
        assert data['detail']['route'] == 'Route unavailable in OpenSky public feed'

    def test_get_unknown_flight(self, client, loaded):
        response = client.get('/api/flights/zzz999')
        assert response.status_code == 404

    def test_history(self, client, loaded):
        loaded.apply_batch([make_row(icao24='aaa111', lat=40.5)])

        data = client.get('/api/flights/history/aaa111').get_json()

        assert data['count'] == 2
        assert len(data['history']['positions']) == 2
        assert len(data['trail']['points']) == 2

    def test_history_with_single_point_has_no_trail(self, client, loaded):
        data = client.get('/api/flights/history/aaa111').get_json()

        assert data['count'] == 1
        assert data['trail'] is None


class TestControls:
    def test_get_filters(self, client):
        data = client.get('/api/controls/filters').get_json()

        assert data['filters'] == {'altitudeCeilingFeet': 45000, 'search': '', 'airlinePrefix': ''}

    def test_change_filters_rebuilds(self, client, loaded):
        response = client.post('/api/controls/filters', json={'airlinePrefix': 'DAL'})
        data = response.get_json()

        assert response.status_code == 200
        assert data['rebuilt']
        assert data['active_count'] == 1
        assert data['filters']['airlinePrefix'] == 'dal'

    @pytest.mark.parametrize('body', [
        {'altitudeCeilingFeet': -5},
        {'altitudeCeilingFeet': 'high'},
        {'colour': 'red'},
    ])
    def test_invalid_filters_rejected(self, client, loaded, body):
        response = client.post('/api/controls/filters', json=body)

        assert response.status_code == 400
        assert loaded.snapshot().criteria.altitude_ceiling_ft == 45000

    def test_filters_require_json_object(self, client):
        response = client.post('/api/controls/filters', data='nope', content_type='text/plain')
        assert response.status_code == 400

    def test_pick(self, client, loaded):
        data = client.post('/api/controls/pick', json={'slot': 1}).get_json()

        assert data['focused']
        assert data['selected'] == 'bbb222'
        assert data['detail']['callsign'] == 'DAL2'

    def test_pick_empty_slot(self, client, loaded):
        data = client.post('/api/controls/pick', json={'slot': 7}).get_json()

        assert not data['focused']
        assert data['selected'] is None

    @pytest.mark.parametrize('body', [{}, {'slot': '1'}, {'slot': True}])
    def test_pick_requires_integer_slot(self, client, loaded, body):
        assert client.post('/api/controls/pick', json=body).status_code == 400

    def test_selection_focus_and_clear(self, client, loaded):
        data = client.post('/api/controls/selection', json={'icao24': 'aaa111'}).get_json()
        assert data['selected'] == 'aaa111'
        assert data['trail'] is None

        assert client.get('/api/controls/selection').get_json()['selected'] == 'aaa111'

        data = client.delete('/api/controls/selection').get_json()
        assert data == {'selected': None, 'detail': None, 'trail': None}

    def test_selection_unknown_aircraft(self, client, loaded):
        assert client.post('/api/controls/selection', json={'icao24': 'zzz999'}).status_code == 404
        assert client.post('/api/controls/selection', json={}).status_code == 400


class TestStatus:
    def test_status(self, client, loaded):
        data = client.get('/api/metrics/status').get_json()

        assert data['status']['tone'] == 'ok'
        assert data['status']['message'] == 'Live from OpenSky: 2 active of 2'
        assert data['engine']['active_count'] == 2
        assert data['scheduler'] == {'running': False}
        assert data['config']['max_missed_cycles'] == 2

    def test_health(self, client):
        assert client.get('/health').get_json() == {'status': 'ok'}

    def test_unknown_route(self, client):
        assert client.get('/api/nothing').status_code == 404
