import os
from dotenv import load_dotenv, find_dotenv
basedir = os.path.abspath(os.path.dirname(__file__))

ENV_FILE = find_dotenv()
if ENV_FILE:
    load_dotenv(ENV_FILE)

class Config:
    SECRET_KEY = os.getenv('APP_SECRET_KEY')
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
                              'sqlite:///' + os.path.join(basedir, 'coach.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SESSION_TYPE = 'filesystem'
    SESSION_FILE_DIR = os.getenv('SESSION_FILE_DIR', '/tmp/coach_session')
    SESSION_PERMANENT = False
    SESSION_USE_SIGNER = True

    # Grenzen voor /api/workouts?limit=
    WORKOUT_LIST_LIMIT = int(os.getenv('WORKOUT_LIST_LIMIT', 100))
    WORKOUT_LIST_MAX = int(os.getenv('WORKOUT_LIST_MAX', 500))

    # Optionele CSV met oefening -> spiergroep koppelingen (seed_muscles.py)
    MUSCLE_MAPPING_CSV = os.getenv('MUSCLE_MAPPING_CSV')

    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'
    LOG_LEVEL = os.getenv('LOG_LEVEL') or ('DEBUG' if DEBUG else 'INFO')
