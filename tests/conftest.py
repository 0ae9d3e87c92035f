from datetime import datetime, timedelta, timezone

import pytest
from flask import g
from flask_login import FlaskLoginClient

from config import Config
from coach import create_app, db
from coach.models import User, Workout, Exercise, Program, MuscleGroup, ExerciseMuscleMapping
from seed_muscles import seed_muscle_groups


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    WTF_CSRF_ENABLED = False
    LOG_LEVEL = 'DEBUG'


@pytest.fixture
def app(tmp_path):
    config_class = type('SessionTestConfig', (TestConfig,), {'SESSION_FILE_DIR': str(tmp_path / 'sessions')})
    app = create_app(config_class)
    app.test_client_class = FlaskLoginClient

    @app.teardown_request
    def _reset_login_cache(exc):
        # The fixture keeps one app context open, so g outlives each request;
        # drop Flask-Login's cached user so every request resolves its own.
        g.pop('_login_user', None)

    with app.app_context():
        db.create_all()
        seed_muscle_groups()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def user(app):
    user = User(username='alex', email='alex@example.com')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def other_user(app):
    user = User(username='sam', email='sam@example.com')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def client(app, user):
    return app.test_client(user=user)


@pytest.fixture
def anonymous_client(app):
    return app.test_client()


@pytest.fixture
def chest(app):
    return db.session.scalars(db.select(MuscleGroup).filter_by(name='chest')).one()


@pytest.fixture
def make_mapping(app):
    def _make(exercise_name, muscle_group, primary=True):
        mapping = ExerciseMuscleMapping(exercise_name=exercise_name.lower(),
                                        muscle_group_id=muscle_group.id,
                                        primary_muscle=primary)
        db.session.add(mapping)
        db.session.commit()
        return mapping
    return _make


@pytest.fixture
def make_workout(app):
    def _make(user, exercises=(), completed=True, created_at=None, completed_at=None, name='Session'):
        now = datetime.now(timezone.utc)
        workout = Workout(user_id=user.id, name=name, created_at=created_at or now)
        for values in exercises:
            workout.exercises.append(Exercise(**values))
        if completed:
            workout.complete(completed_at or created_at or now)
        db.session.add(workout)
        db.session.commit()
        return workout
    return _make


@pytest.fixture
def make_program(app):
    def _make(user, schedule, active=True, created_at=None, name='Program'):
        program = Program(user_id=user.id, name=name, schedule=schedule, is_active=active,
                          created_at=created_at or datetime.now(timezone.utc) - timedelta(days=30))
        db.session.add(program)
        db.session.commit()
        return program
    return _make
