import json

import pytest

from coach import db
from coach.models import Achievement, User


def test_health(anonymous_client):
    response = anonymous_client.get('/api/health')
    assert response.status_code == 200
    assert response.get_json() == {'status': 'ok', 'database': 'ok'}


def test_workouts_require_login(anonymous_client):
    response = anonymous_client.get('/api/workouts')
    assert response.status_code == 401
    assert response.get_json()['error'] == 'Unauthorized'


def test_create_workout(client, user):
    response = client.post('/api/workouts', json={'name': ' Leg Day ', 'duration': 45, 'notes': None})
    assert response.status_code == 201
    data = response.get_json()
    assert data['name'] == 'Leg Day'
    assert data['duration'] == 45
    assert data['is_completed'] is False
    assert data['completed_at'] is None
    assert data['exercises'] == []
    assert data['user_id'] == user.id


def test_create_workout_requires_name(client):
    response = client.post('/api/workouts', json={'duration': 30})
    assert response.status_code == 400
    assert 'name' in response.get_json()['errors']


def test_create_workout_rejects_negative_duration(client):
    response = client.post('/api/workouts', json={'name': 'Run', 'duration': -5})
    assert response.status_code == 400


def test_list_workouts_respects_limit(client, user, make_workout):
    for i in range(3):
        make_workout(user, name=f'Session {i}')
    assert len(client.get('/api/workouts').get_json()) == 3
    assert len(client.get('/api/workouts?limit=2').get_json()) == 2
    assert len(client.get('/api/workouts?limit=abc').get_json()) == 3


def test_other_users_workout_is_not_found(client, other_user, make_workout):
    workout = make_workout(other_user)
    assert client.get(f'/api/workouts/{workout.id}').status_code == 404
    assert client.post(f'/api/workouts/{workout.id}/complete').status_code == 404


def test_complete_workout(client, user, make_workout):
    workout = make_workout(user, completed=False, exercises=[
        {'name': 'Squat', 'sets': 5, 'reps': 5, 'weight': 100},
        {'name': 'Plank', 'sets': 3, 'reps': None, 'weight': None},
    ])
    response = client.post(f'/api/workouts/{workout.id}/complete')
    assert response.status_code == 200
    data = response.get_json()
    assert data['workout']['is_completed'] is True
    assert data['workout']['completed_at'] is not None
    assert data['workout']['total_volume'] == 2500
    assert data['current_streak'] == 1
    assert data['achievement']['type'] == 'workout_complete'

    achievements = db.session.scalars(db.select(Achievement).filter_by(user_id=user.id)).all()
    assert len(achievements) == 1
    assert db.session.get(User, user.id).current_streak == 1


def test_complete_workout_twice_conflicts(client, user, make_workout):
    workout = make_workout(user, completed=False)
    assert client.post(f'/api/workouts/{workout.id}/complete').status_code == 200
    response = client.post(f'/api/workouts/{workout.id}/complete')
    assert response.status_code == 409
    assert response.get_json()['success'] is False


def test_add_exercise_derives_muscle_groups(client, user, chest, make_mapping, make_workout):
    make_mapping('bench press', chest)
    workout = make_workout(user, completed=False)
    response = client.post('/api/exercises', json={
        'workout_id': workout.id, 'name': 'Incline Bench Press', 'sets': 3, 'reps': 8, 'weight': 60.5
    })
    assert response.status_code == 201
    data = response.get_json()
    assert data['muscle_groups'] == ['Chest']
    assert data['weight'] == 60.5

    listed = client.get(f'/api/exercises?workout_id={workout.id}').get_json()
    assert [exercise['name'] for exercise in listed] == ['Incline Bench Press']


def test_add_exercise_keeps_client_muscle_groups(client, user, make_workout):
    workout = make_workout(user, completed=False)
    response = client.post('/api/exercises', json={
        'workout_id': workout.id, 'name': 'Farmer Walk', 'muscle_groups': ['Forearms']
    })
    assert response.get_json()['muscle_groups'] == ['Forearms']


def test_add_exercise_validation(client, user, other_user, make_workout):
    assert client.post('/api/exercises', json={'name': 'Squat'}).status_code == 400
    workout = make_workout(user, completed=False)
    assert client.post('/api/exercises', json={'workout_id': workout.id, 'name': 'Squat', 'rpe': 11}).status_code == 400
    theirs = make_workout(other_user, completed=False)
    assert client.post('/api/exercises', json={'workout_id': theirs.id, 'name': 'Squat'}).status_code == 404


def test_list_exercises_requires_workout_id(client):
    assert client.get('/api/exercises').status_code == 400
    assert client.get('/api/exercises?workout_id=999').status_code == 404


def test_update_and_delete_exercise(client, user, make_workout):
    workout = make_workout(user, completed=False, exercises=[{'name': 'Row', 'sets': 3, 'reps': 10, 'weight': 50}])
    exercise_id = workout.exercises[0].id

    response = client.patch(f'/api/exercises/{exercise_id}', json={'weight': 55, 'notes': None})
    assert response.status_code == 200
    data = response.get_json()
    assert data['weight'] == 55
    assert data['name'] == 'Row'
    assert data['sets'] == 3

    assert client.delete(f'/api/exercises/{exercise_id}').status_code == 200
    assert client.get(f'/api/exercises?workout_id={workout.id}').get_json() == []
    assert client.delete(f'/api/exercises/{exercise_id}').status_code == 404


def test_exercise_muscle_group_lookup(anonymous_client, chest, make_mapping):
    make_mapping('bench press', chest)
    make_mapping('press', chest)
    response = anonymous_client.get('/api/exercises/Close%20Grip%20Bench%20Press/muscle-groups')
    assert response.status_code == 200
    assert response.get_json() == ['Chest']
    assert anonymous_client.get('/api/exercises/Squat/muscle-groups').get_json() == []


def test_achievements_can_be_marked_viewed(client, user, make_workout):
    workout = make_workout(user, completed=False)
    client.post(f'/api/workouts/{workout.id}/complete')
    achievement = client.get('/api/achievements').get_json()[0]
    assert achievement['is_viewed'] is False
    assert client.patch(f"/api/achievements/{achievement['id']}/viewed").status_code == 200
    assert client.get('/api/achievements').get_json()[0]['is_viewed'] is True


def test_unknown_route_returns_json(anonymous_client):
    response = anonymous_client.get('/api/does-not-exist')
    assert response.status_code == 404
    assert response.get_json()['error'] == 'Not Found'


@pytest.mark.parametrize('weight', ['inf', '-inf', 'nan', 'Infinity'])
def test_non_finite_weight_is_rejected(client, user, make_workout, weight):
    workout = make_workout(user, completed=False)
    response = client.post('/api/exercises', json={
        'workout_id': workout.id, 'name': 'Bench Press', 'sets': 3, 'reps': 10, 'weight': weight
    })
    assert response.status_code == 400
    assert 'weight' in response.get_json()['errors']
    assert client.get(f'/api/exercises?workout_id={workout.id}').get_json() == []


def test_progress_stays_valid_json_after_rejected_weight(client, user, chest, make_mapping, make_workout):
    make_mapping('bench press', chest)
    workout = make_workout(user, completed=False, exercises=[{'name': 'Bench Press', 'sets': 3, 'reps': 10, 'weight': 50}])
    exercise_id = workout.exercises[0].id
    assert client.patch(f'/api/exercises/{exercise_id}', json={'weight': 'inf'}).status_code == 400
    client.post(f'/api/workouts/{workout.id}/complete')

    response = client.get(f'/api/muscle-groups/{chest.id}/progress')
    data = json.loads(response.get_data(as_text=True), parse_constant=pytest.fail)
    assert data['volume'] == 1500


@pytest.mark.parametrize('name', ['', '   '])
def test_exercise_name_cannot_be_blanked(client, user, make_workout, name):
    workout = make_workout(user, completed=False, exercises=[{'name': 'Row', 'sets': 3}])
    exercise_id = workout.exercises[0].id
    response = client.patch(f'/api/exercises/{exercise_id}', json={'name': name})
    assert response.status_code == 400
    assert 'name' in response.get_json()['errors']
    assert client.get(f'/api/exercises?workout_id={workout.id}').get_json()[0]['name'] == 'Row'


@pytest.mark.parametrize('reps, expected', [('8-10', 9), ('12-15', 14), ('5-8', 7), ('10', 10), (12, 12), ('AMRAP', None)])
def test_log_programmed_exercise_reps(client, user, make_workout, reps, expected):
    workout = make_workout(user, completed=False)
    response = client.post('/api/exercises/from-program', json={
        'workout_id': workout.id,
        'programmed_exercise': {'name': 'Squat', 'sets': 3, 'reps': reps}
    })
    assert response.status_code == 201
    assert response.get_json()['reps'] == expected


def test_log_programmed_exercise(client, user, chest, make_mapping, make_workout):
    make_mapping('bench press', chest)
    workout = make_workout(user, completed=False)
    response = client.post('/api/exercises/from-program', json={
        'workout_id': workout.id,
        'programmed_exercise': {'name': 'Bench Press', 'sets': 4, 'reps': '6-8', 'weight': 80, 'rpe': 8, 'restTime': 120}
    })
    data = response.get_json()
    assert data['name'] == 'Bench Press'
    assert data['sets'] == 4
    assert data['reps'] == 7
    assert data['weight'] == 80
    assert data['rpe'] == 8
    assert data['rest_time'] == 120
    assert data['notes'] == 'Completed as programmed'
    assert data['muscle_groups'] == ['Chest']


def test_log_default_workout_exercise(client, user, make_workout):
    workout = make_workout(user, completed=False)
    squats = {'name': 'Squats', 'sets': 3, 'reps': '10-12', 'weight': 'Bodyweight'}
    data = client.post('/api/exercises/from-program', json={'workout_id': workout.id, 'programmed_exercise': squats}).get_json()
    assert data['reps'] == 11
    assert data['weight'] is None
    assert data['muscle_groups'] is None


def test_log_programmed_exercise_validation(client, user, other_user, make_workout):
    workout = make_workout(user, completed=False)
    assert client.post('/api/exercises/from-program', json={'programmed_exercise': {'name': 'Squat'}}).status_code == 400
    assert client.post('/api/exercises/from-program', json={'workout_id': workout.id}).status_code == 400
    assert client.post('/api/exercises/from-program', json={
        'workout_id': workout.id, 'programmed_exercise': {'name': '  '}
    }).status_code == 400
    theirs = make_workout(other_user, completed=False)
    assert client.post('/api/exercises/from-program', json={
        'workout_id': theirs.id, 'programmed_exercise': {'name': 'Squat'}
    }).status_code == 404
