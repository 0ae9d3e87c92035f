import pytest


def test_list_muscle_groups(anonymous_client):
    groups = anonymous_client.get('/api/muscle-groups').get_json()
    chest = next(group for group in groups if group['name'] == 'chest')
    assert chest['display_name'] == 'Chest'
    assert chest['svg_id'] == 'muscle-chest'
    assert chest['region'] == 'upper'


def test_progress_for_untrained_muscle(client, chest):
    response = client.get(f'/api/muscle-groups/{chest.id}/progress')
    assert response.status_code == 200
    assert response.get_json() == {'frequency': 0, 'volume': 0, 'last_worked': None, 'intensity': 0.0}


def test_progress_after_bench_sessions(client, user, chest, make_mapping, make_workout):
    make_mapping('bench press', chest)
    for _ in range(3):
        make_workout(user, exercises=[{'name': 'Bench Press', 'sets': 3, 'reps': 10, 'weight': 135}])

    data = client.get(f'/api/muscle-groups/{chest.id}/progress').get_json()
    assert data['frequency'] == 3
    assert data['volume'] == pytest.approx(12150)
    assert data['intensity'] == pytest.approx(0.51)
    assert data['last_worked'] is not None


def test_progress_ignores_other_users(client, other_user, chest, make_mapping, make_workout):
    make_mapping('bench press', chest)
    make_workout(other_user, exercises=[{'name': 'Bench Press', 'sets': 3, 'reps': 10, 'weight': 135}])
    assert client.get(f'/api/muscle-groups/{chest.id}/progress').get_json()['frequency'] == 0


def test_progress_for_unknown_muscle_group(client):
    assert client.get('/api/muscle-groups/9999/progress').status_code == 404


def test_progress_requires_login(anonymous_client, chest):
    assert anonymous_client.get(f'/api/muscle-groups/{chest.id}/progress').status_code == 401
    assert anonymous_client.get('/api/progress/heat-map').status_code == 401


def test_heat_map(client, user, chest, make_mapping, make_workout):
    make_mapping('bench press', chest)
    make_workout(user, exercises=[{'name': 'Bench Press', 'sets': 3, 'reps': 10, 'weight': 135}])

    heat_map = client.get('/api/progress/heat-map').get_json()
    all_groups = client.get('/api/muscle-groups').get_json()
    assert len(heat_map) == len(all_groups)

    by_name = {item['muscle_group']['name']: item['progress'] for item in heat_map}
    assert by_name['chest']['frequency'] == 1
    assert 0 < by_name['chest']['intensity'] <= 1
    assert by_name['calves'] == {'frequency': 0, 'volume': 0, 'last_worked': None, 'intensity': 0.0}
