from functools import wraps
import logging
import math
from flask import jsonify, request, current_app
from flask_login import current_user
from werkzeug.datastructures import MultiDict
from coach import db
from coach.models import Workout, Program, Goal

logger = logging.getLogger(__name__)

# Standaardworkout als het schema van een programma onbruikbaar is
DEFAULT_WORKOUT = {
    'name': 'Full Body Workout',
    'description': 'A balanced workout targeting multiple muscle groups',
    'exercises': [
        {
            'name': 'Push-ups',
            'sets': 3,
            'reps': '12-15',
            'notes': 'Focus on controlled movement and full range of motion'
        },
        {
            'name': 'Squats',
            'sets': 3,
            'reps': '10-12',
            'weight': 'Bodyweight',
            'notes': 'Keep chest up and drive through heels'
        },
        {
            'name': 'Pull-ups',
            'sets': 3,
            'reps': '5-8',
            'notes': 'Use assistance if needed, focus on form over quantity'
        }
    ]
}


def error(message, status):
    return jsonify({'success': False, 'message': message}), status


def request_json():
    # Lege of ongeldige body telt als leeg object
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def json_form(form_class, data=None):
    """
    Bouw een WTForms-formulier uit een JSON-body.

    Notities:
        - null-waarden en geneste objecten/lijsten worden weggelaten; die vallen buiten het formulier.
        - Getallen worden als tekst doorgegeven zodat WTForms ze zelf parseert en valideert.
    """
    data = request_json() if data is None else data
    formdata = MultiDict()
    for key, value in data.items():
        if value is None or isinstance(value, (dict, list)):
            continue
        if isinstance(value, bool):
            formdata[key] = 'y' if value else ''
        elif isinstance(value, (int, float)):
            formdata[key] = str(value)
        else:
            formdata[key] = value
    return form_class(formdata=formdata)


def form_errors(form):
    return jsonify({'success': False, 'message': 'Invalid data', 'errors': form.errors}), 400


def parse_limit(value):
    """
    Begrens de limit-parameter van /api/workouts.

    Returns:
        int: tussen 1 en WORKOUT_LIST_MAX; standaard WORKOUT_LIST_LIMIT.
    """
    default = current_app.config.get('WORKOUT_LIST_LIMIT', 100)
    maximum = current_app.config.get('WORKOUT_LIST_MAX', 500)
    if value is None:
        return default
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return default
    return min(max(limit, 1), maximum)


def owns_workout(f):
    #    Decorator die de workout ophaalt en eigendom controleert.
    @wraps(f)
    def decorated_function(workout_id, *args, **kwargs):
        workout = db.session.get(Workout, workout_id)
        if not workout or workout.user_id != current_user.id:
            logger.debug(f"Workout {workout_id} niet gevonden voor gebruiker {current_user.id}")
            return error('Workout not found', 404)
        return f(workout, *args, **kwargs)

    return decorated_function


def owns_program(f):
    #    Decorator die het programma ophaalt en eigendom controleert.
    @wraps(f)
    def decorated_function(program_id, *args, **kwargs):
        program = db.session.get(Program, program_id)
        if not program or program.user_id != current_user.id:
            logger.debug(f"Programma {program_id} niet gevonden voor gebruiker {current_user.id}")
            return error('Program not found', 404)
        return f(program, *args, **kwargs)

    return decorated_function


def activate_program(program, store):
    """Activeer een programma en deactiveer alle andere programma's van dezelfde gebruiker."""
    for other in store.list_user_programs(program.user_id):
        if other.id != program.id and other.is_active:
            other.is_active = False
    program.is_active = True


def owns_goal(f):
    #    Decorator die het doel ophaalt en eigendom controleert.
    @wraps(f)
    def decorated_function(goal_id, *args, **kwargs):
        goal = db.session.get(Goal, goal_id)
        if not goal or goal.user_id != current_user.id:
            logger.debug(f"Doel {goal_id} niet gevonden voor gebruiker {current_user.id}")
            return error('Goal not found', 404)
        return f(goal, *args, **kwargs)

    return decorated_function


def _round_half_up(value):
    return int(math.floor(value + 0.5))


def programmed_number(value):
    """
    Lees een getal uit een geprogrammeerde oefening.

    Returns:
        float, of None voor tekst als "Bodyweight", booleans en niet-eindige waarden.
    """
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_rep_range(reps):
    """
    Zet reps uit een programmaschema om naar één geheel getal.

    Notities:
        - Een bereik als "8-10" wordt het afgeronde midden (9); "12-15" wordt 14.
        - "10" en 10 blijven 10; onleesbare waarden ("AMRAP") geven None.
    """
    if isinstance(reps, str) and '-' in reps:
        low, _, high = reps.partition('-')
        low, high = programmed_number(low.strip()), programmed_number(high.strip())
        if low is None or high is None:
            return None
        return _round_half_up((low + high) / 2)
    number = programmed_number(reps.strip() if isinstance(reps, str) else reps)
    if number is None:
        return None
    return _round_half_up(number)
