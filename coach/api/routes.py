from flask import request, jsonify
from flask_wtf.csrf import generate_csrf
from flask_login import login_required, current_user
from wtforms import ValidationError
import logging
import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError

from .utils import (DEFAULT_WORKOUT, error, request_json, json_form, form_errors, parse_limit,
                    owns_workout, owns_program, owns_goal, activate_program, parse_rep_range, programmed_number)
from .. import db
from ..forms import WorkoutForm, ExerciseForm, ExerciseUpdateForm, ProgramForm, ProgramUpdateForm, \
    GoalForm, GoalUpdateForm, parse_schedule_payload
from ..models import Workout, Exercise, Program, Achievement, Goal
from ..progress import estimate_muscle_progress, build_heat_map, SubstringExerciseClassifier
from ..schedule import resolve_todays_entry, MalformedScheduleError
from ..store import WorkoutStore

logger = logging.getLogger(__name__)

# De blueprint wordt geïmporteerd vanuit api/__init__.py
from . import bp as api


@api.route('/health')
def health():
    try:
        db.session.execute(sa.text('SELECT 1'))
        database = 'ok'
    except SQLAlchemyError as e:
        logger.error(f"Database niet bereikbaar: {str(e)}")
        database = 'unavailable'
    return jsonify({'status': 'ok', 'database': database})


@api.route('/csrf-token')
def csrf_token():
    # Token voor de X-CSRFToken header bij POST/PATCH/DELETE
    return jsonify({'csrf_token': generate_csrf()})


# Workouts

@api.route('/workouts', methods=['GET'])
@login_required
def list_workouts():
    limit = parse_limit(request.args.get('limit'))
    workouts = WorkoutStore().list_user_workouts(current_user.id, limit=limit)
    logger.debug(f"{len(workouts)} workouts opgehaald voor gebruiker {current_user.id} (limit {limit})")
    return jsonify([workout.to_dict(include_exercises=True) for workout in workouts])


@api.route('/workouts/<int:workout_id>', methods=['GET'])
@login_required
@owns_workout
def get_workout(workout):
    return jsonify(workout.to_dict(include_exercises=True))


@api.route('/workouts', methods=['POST'])
@login_required
def create_workout():
    form = json_form(WorkoutForm)
    if not form.validate():
        logger.debug(f"Workout validatie mislukt: {form.errors}")
        return form_errors(form)

    workout = Workout(
        user_id=current_user.id,
        name=form.name.data.strip(),
        notes=form.notes.data or None,
        duration=form.duration.data
    )
    db.session.add(workout)
    db.session.commit()
    logger.debug(f"Workout aangemaakt: id={workout.id}, naam={workout.name}")
    return jsonify(workout.to_dict(include_exercises=True)), 201


@api.route('/workouts/<int:workout_id>/complete', methods=['POST'])
@login_required
@owns_workout
def complete_workout(workout):
    if workout.is_completed:
        return error('Workout already completed', 409)

    workout.complete()
    current_user.current_streak = (current_user.current_streak or 0) + 1
    achievement = Achievement(
        user_id=current_user.id,
        type='workout_complete',
        title='Great Work!',
        description=f"You've completed {workout.name}. Keep up the momentum!",
        data={'workout_id': workout.id, 'total_volume': workout.total_volume}
    )
    db.session.add(achievement)

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Voltooien van workout {workout.id} mislukt: {str(e)}", exc_info=True)
        return error('Failed to complete workout', 500)

    logger.debug(f"Workout {workout.id} voltooid, volume={workout.total_volume}, streak={current_user.current_streak}")
    return jsonify({
        'workout': workout.to_dict(include_exercises=True),
        'achievement': achievement.to_dict(),
        'current_streak': current_user.current_streak
    })


# Oefeningen

def _owned_workout(workout_id):
    workout = db.session.get(Workout, workout_id) if workout_id else None
    if not workout or workout.user_id != current_user.id:
        return None
    return workout


def _owned_exercise(exercise_id):
    exercise = db.session.get(Exercise, exercise_id)
    if not exercise or exercise.workout.user_id != current_user.id:
        return None
    return exercise


def _muscle_group_names(classifier, name):
    return [mapping.muscle_group.display_name for mapping in classifier.classify(name)]


@api.route('/exercises', methods=['GET'])
@login_required
def list_exercises():
    workout_id = request.args.get('workout_id', type=int)
    if not workout_id:
        return error('workout_id is required', 400)
    workout = _owned_workout(workout_id)
    if not workout:
        return error('Workout not found', 404)
    return jsonify([exercise.to_dict() for exercise in WorkoutStore().list_exercises_for_workout(workout.id)])


@api.route('/exercises', methods=['POST'])
@login_required
def create_exercise():
    data = request_json()
    form = json_form(ExerciseForm, data)
    if not form.validate():
        return form_errors(form)

    if not form.workout_id.data:
        return error('workout_id is required', 400)
    workout = _owned_workout(form.workout_id.data)
    if not workout:
        logger.error(f"Workout {form.workout_id.data} niet gevonden voor gebruiker {current_user.id}")
        return error('Workout not found', 404)

    muscle_groups = data.get('muscle_groups')
    if not isinstance(muscle_groups, list):
        # Leid de spiergroepen af uit de koppelingstabel als de client ze niet meestuurt
        muscle_groups = _muscle_group_names(SubstringExerciseClassifier(WorkoutStore()), form.name.data) or None

    exercise = Exercise(
        workout_id=workout.id,
        name=form.name.data.strip(),
        sets=form.sets.data,
        reps=form.reps.data,
        weight=form.weight.data,
        rpe=form.rpe.data,
        rest_time=form.rest_time.data,
        notes=form.notes.data or None,
        muscle_groups=muscle_groups
    )
    db.session.add(exercise)
    db.session.commit()
    logger.debug(f"Oefening toegevoegd: {exercise.name} aan workout {workout.id}")
    return jsonify(exercise.to_dict()), 201


@api.route('/exercises/from-program', methods=['POST'])
@login_required
def create_exercise_from_program():
    """
    Log een oefening precies zoals het programma van vandaag hem voorschrijft.

    Body:
        {"workout_id": 1, "programmed_exercise": {"name": "Bench Press", "sets": 3, "reps": "8-10", ...}}
    Notities:
        - Rep-bereiken worden het afgeronde midden; tekst als "Bodyweight" wordt genegeerd.
        - Spiergroepen komen uit de koppelingstabel.
    """
    data = request_json()
    workout_id = data.get('workout_id')
    if isinstance(workout_id, bool) or not isinstance(workout_id, int):
        return error('workout_id is required', 400)
    programmed = data.get('programmed_exercise')
    name = programmed.get('name') if isinstance(programmed, dict) else None
    if not isinstance(name, str) or not name.strip():
        return error('programmed_exercise with a name is required', 400)

    workout = _owned_workout(workout_id)
    if not workout:
        return error('Workout not found', 404)

    sets = programmed_number(programmed.get('sets'))
    weight = programmed_number(programmed.get('weight'))
    rpe = programmed_number(programmed.get('rpe'))
    reps = parse_rep_range(programmed.get('reps'))
    rest_time = programmed_number(programmed.get('rest_time', programmed.get('restTime')))
    name = name.strip()[:100]

    exercise = Exercise(
        workout_id=workout.id,
        name=name,
        sets=int(sets) if sets is not None and sets >= 0 else None,
        reps=reps if reps is not None and reps >= 0 else None,
        weight=weight if weight is not None and weight >= 0 else None,
        rpe=int(rpe) if rpe is not None and 1 <= rpe <= 10 else None,
        rest_time=int(rest_time) if rest_time is not None and rest_time >= 0 else None,
        notes='Completed as programmed',
        muscle_groups=_muscle_group_names(SubstringExerciseClassifier(WorkoutStore()), name) or None
    )
    db.session.add(exercise)
    db.session.commit()
    logger.debug(f"Geprogrammeerde oefening gelogd: {exercise.name}, reps={exercise.reps}, workout {workout.id}")
    return jsonify(exercise.to_dict()), 201


@api.route('/exercises/<int:exercise_id>', methods=['PATCH'])
@login_required
def update_exercise(exercise_id):
    exercise = _owned_exercise(exercise_id)
    if not exercise:
        return error('Exercise not found', 404)

    data = request_json()
    form = json_form(ExerciseUpdateForm, data)
    if not form.validate():
        return form_errors(form)

    # Alleen meegestuurde velden bijwerken; null wist een optionele waarde
    for field in ('sets', 'reps', 'weight', 'rpe', 'rest_time', 'notes'):
        if field in data:
            setattr(exercise, field, getattr(form, field).data if data[field] is not None else None)
    if form.name.data:
        exercise.name = form.name.data.strip()
    if 'muscle_groups' in data and (data['muscle_groups'] is None or isinstance(data['muscle_groups'], list)):
        exercise.muscle_groups = data['muscle_groups']

    db.session.commit()
    logger.debug(f"Oefening {exercise.id} bijgewerkt")
    return jsonify(exercise.to_dict())


@api.route('/exercises/<int:exercise_id>', methods=['DELETE'])
@login_required
def delete_exercise(exercise_id):
    exercise = _owned_exercise(exercise_id)
    if not exercise:
        return error('Exercise not found', 404)
    db.session.delete(exercise)
    db.session.commit()
    logger.debug(f"Oefening {exercise_id} verwijderd")
    return jsonify({'success': True})


@api.route('/exercises/<exercise_name>/muscle-groups', methods=['GET'])
def exercise_muscle_groups(exercise_name):
    classifier = SubstringExerciseClassifier(WorkoutStore())
    mappings = classifier.classify(exercise_name)
    if not mappings:
        logger.debug(f"Geen spiergroep-koppeling gevonden voor '{exercise_name}'")
    # Een spiergroep kan via meerdere koppelingen gevonden worden; toon hem één keer
    names = []
    for mapping in mappings:
        if mapping.muscle_group.display_name not in names:
            names.append(mapping.muscle_group.display_name)
    return jsonify(names)


# Programma's

@api.route('/programs', methods=['GET'])
@login_required
def list_programs():
    return jsonify([program.to_dict() for program in WorkoutStore().list_user_programs(current_user.id)])


@api.route('/programs/active', methods=['GET'])
@login_required
def get_active_program():
    program = WorkoutStore().get_active_program(current_user.id)
    return jsonify(program.to_dict() if program else None)


@api.route('/programs/<int:program_id>', methods=['GET'])
@login_required
@owns_program
def get_program(program):
    return jsonify(program.to_dict())


@api.route('/programs', methods=['POST'])
@login_required
def create_program():
    data = request_json()
    form = json_form(ProgramForm, data)
    if not form.validate():
        return form_errors(form)
    try:
        schedule = parse_schedule_payload(data.get('schedule'))
    except ValidationError as e:
        return jsonify({'success': False, 'message': 'Invalid program data', 'errors': {'schedule': [str(e)]}}), 400

    program = Program(
        user_id=current_user.id,
        name=form.name.data.strip(),
        description=form.description.data or None,
        schedule=schedule,
        ai_generated=form.ai_generated.data,
        is_active=False
    )
    db.session.add(program)
    db.session.flush()
    if form.is_active.data:
        activate_program(program, WorkoutStore())
    db.session.commit()
    logger.debug(f"Programma aangemaakt: id={program.id}, actief={program.is_active}")
    return jsonify(program.to_dict()), 201


@api.route('/programs/<int:program_id>/activate', methods=['POST'])
@login_required
@owns_program
def activate(program):
    activate_program(program, WorkoutStore())
    db.session.commit()
    logger.debug(f"Programma {program.id} geactiveerd voor gebruiker {current_user.id}")
    return jsonify(program.to_dict())


@api.route('/programs/<int:program_id>', methods=['PATCH'])
@login_required
@owns_program
def update_program(program):
    data = request_json()
    form = json_form(ProgramUpdateForm, data)
    if not form.validate():
        return form_errors(form)

    if form.name.data:
        program.name = form.name.data.strip()
    if 'description' in data:
        program.description = data['description'] or None
    if 'schedule' in data:
        try:
            program.schedule = parse_schedule_payload(data['schedule'])
        except ValidationError as e:
            return jsonify({'success': False, 'message': 'Invalid program data', 'errors': {'schedule': [str(e)]}}), 400
    if 'is_active' in data:
        if data['is_active']:
            activate_program(program, WorkoutStore())
        else:
            program.is_active = False

    db.session.commit()
    logger.debug(f"Programma {program.id} bijgewerkt")
    return jsonify(program.to_dict())


def _today_payload(program, result, completed_count):
    payload = {
        'program': program.to_dict(),
        'completed_count': completed_count,
        'day_index': result.day_index,
        'cycle_length': result.cycle_length,
        'day_label': result.day_label,
        'rest_day': result.rest_day,
        'fallback': False
    }
    if result.rest_day:
        payload.update({'workout': None, 'exercises': [], 'message': 'Today is a rest day'})
    else:
        payload.update({'workout': result.entry, 'exercises': result.exercises})
    return payload


# Deze route staat vóór /programs/<int:program_id>/today; 'active' is geen id
@api.route('/programs/active/today', methods=['GET'])
@login_required
def active_program_today():
    store = WorkoutStore()
    program = store.get_active_program(current_user.id)
    if not program:
        return error('Program not found or not active', 404)

    completed_count = store.count_completed_since(current_user.id, program.created_at)
    try:
        result = resolve_todays_entry(program.schedule, completed_count)
    except MalformedScheduleError as e:
        logger.error(f"Onbruikbaar schema in programma {program.id}: {str(e)}")
        return error('Invalid program schedule format', 400)

    logger.debug(f"Vandaag voor programma {program.id}: {result.day_label}, rustdag={result.rest_day}")
    return jsonify(_today_payload(program, result, completed_count))


@api.route('/programs/<int:program_id>/today', methods=['GET'])
@login_required
@owns_program
def program_today(program):
    store = WorkoutStore()
    completed_count = store.count_completed_since(current_user.id, program.created_at)
    try:
        result = resolve_todays_entry(program.schedule, completed_count)
    except MalformedScheduleError as e:
        # Geen bruikbaar schema: val terug op de standaardworkout
        logger.debug(f"Standaardworkout voor programma {program.id}: {str(e)}")
        return jsonify({
            'program': program.to_dict(),
            'completed_count': completed_count,
            'day_index': None,
            'cycle_length': None,
            'day_label': None,
            'rest_day': False,
            'fallback': True,
            'workout': DEFAULT_WORKOUT,
            'exercises': DEFAULT_WORKOUT['exercises']
        })
    return jsonify(_today_payload(program, result, completed_count))


# Spiergroepen en voortgang

@api.route('/muscle-groups', methods=['GET'])
def list_muscle_groups():
    return jsonify([group.to_dict() for group in WorkoutStore().list_muscle_groups()])


@api.route('/muscle-groups/<int:muscle_group_id>/progress', methods=['GET'])
@login_required
def muscle_group_progress(muscle_group_id):
    store = WorkoutStore()
    if not store.get_muscle_group(muscle_group_id):
        return error('Muscle group not found', 404)
    progress = estimate_muscle_progress(store, current_user.id, muscle_group_id)
    return jsonify(progress.to_dict())


@api.route('/progress/heat-map', methods=['GET'])
@login_required
def heat_map():
    heat_map_data = [
        {'muscle_group': muscle_group.to_dict(), 'progress': progress.to_dict()}
        for muscle_group, progress in build_heat_map(WorkoutStore(), current_user.id)
    ]
    logger.debug(f"Heat-map voor gebruiker {current_user.id}: {len(heat_map_data)} spiergroepen")
    return jsonify(heat_map_data)


# Prestaties

@api.route('/achievements', methods=['GET'])
@login_required
def list_achievements():
    achievements = db.session.scalars(
        sa.select(Achievement).where(Achievement.user_id == current_user.id)
        .order_by(Achievement.created_at.desc(), Achievement.id.desc())
    ).all()
    return jsonify([achievement.to_dict() for achievement in achievements])


@api.route('/achievements/<int:achievement_id>/viewed', methods=['PATCH'])
@login_required
def mark_achievement_viewed(achievement_id):
    achievement = db.session.get(Achievement, achievement_id)
    if not achievement or achievement.user_id != current_user.id:
        return error('Achievement not found', 404)
    achievement.is_viewed = True
    db.session.commit()
    return jsonify({'success': True})


# Doelen

@api.route('/goals', methods=['GET'])
@login_required
def list_goals():
    return jsonify([goal.to_dict() for goal in WorkoutStore().list_user_goals(current_user.id)])


@api.route('/goals', methods=['POST'])
@login_required
def create_goal():
    form = json_form(GoalForm)
    if not form.validate():
        logger.debug(f"Doel validatie mislukt: {form.errors}")
        return form_errors(form)

    goal = Goal(
        user_id=current_user.id,
        title=form.title.data.strip(),
        description=form.description.data or None,
        target_value=form.target_value.data,
        current_value=0.0,
        unit=form.unit.data or None,
        category=form.category.data.strip(),
        muscle_group=(form.muscle_group.data or '').strip().lower() or None,
        status=form.status.data or 'active',
        target_date=form.target_date.data
    )
    db.session.add(goal)
    db.session.commit()
    logger.debug(f"Doel aangemaakt: id={goal.id}, titel={goal.title}")
    return jsonify(goal.to_dict()), 201


@api.route('/goals/<int:goal_id>', methods=['PATCH'])
@login_required
@owns_goal
def update_goal(goal):
    data = request_json()
    form = json_form(GoalUpdateForm, data)
    if not form.validate():
        return form_errors(form)

    if form.title.data:
        goal.title = form.title.data.strip()
    if form.category.data:
        goal.category = form.category.data.strip()
    if form.status.data:
        goal.status = form.status.data
    # Optionele velden: null wist de waarde
    for field in ('description', 'target_value', 'unit', 'target_date'):
        if field in data:
            setattr(goal, field, getattr(form, field).data if data[field] is not None else None)
    if 'muscle_group' in data:
        goal.muscle_group = (form.muscle_group.data or '').strip().lower() or None
    if form.current_value.data is not None:
        goal.current_value = form.current_value.data

    db.session.commit()
    logger.debug(f"Doel {goal.id} bijgewerkt")
    return jsonify(goal.to_dict())
