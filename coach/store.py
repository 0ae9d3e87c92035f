import logging
import sqlalchemy as sa
from coach import db
from coach.models import Workout, Exercise, Program, MuscleGroup, ExerciseMuscleMapping, Goal

logger = logging.getLogger(__name__)


class WorkoutStore:
    """
    Leeslaag over de database voor de rekenfuncties in coach.schedule en coach.progress.

    Notities:
        - Werkt op de SQLAlchemy-sessie van het huidige request.
        - Schrijft nooit; mutaties blijven in de routes.
    """

    def __init__(self, session=None):
        self.session = session or db.session

    def list_completed_workouts_since(self, user_id, since=None):
        """
        Haal voltooide workouts van een gebruiker op, oudste eerst.

        Notities:
            - since vergelijkt met created_at (niet completed_at), zodat een
              programmawissel de cyclus opnieuw laat beginnen.
        """
        query = sa.select(Workout).where(
            Workout.user_id == user_id,
            Workout.is_completed.is_(True)
        )
        if since is not None:
            query = query.where(Workout.created_at >= since)
        return self.session.scalars(query.order_by(Workout.created_at, Workout.id)).all()

    def count_completed_since(self, user_id, since=None):
        query = sa.select(sa.func.count(Workout.id)).where(
            Workout.user_id == user_id,
            Workout.is_completed.is_(True)
        )
        if since is not None:
            query = query.where(Workout.created_at >= since)
        return self.session.scalar(query) or 0

    def list_user_workouts(self, user_id, limit=None):
        query = sa.select(Workout).where(Workout.user_id == user_id) \
            .order_by(Workout.created_at.desc(), Workout.id.desc())
        if limit:
            query = query.limit(limit)
        return self.session.scalars(query).all()

    def list_exercises_for_workout(self, workout_id):
        return self.session.scalars(
            sa.select(Exercise).where(Exercise.workout_id == workout_id).order_by(Exercise.id)
        ).all()

    def find_muscle_mappings_for_exercise_name(self, name):
        """
        Zoek spiergroep-koppelingen waarvan de opgeslagen naam in de gegeven naam voorkomt.

        Notities:
            - Hoofdletterongevoelig; "bench press" past op "Incline Bench Press".
            - Geen exacte match.
            - instr in plaats van LIKE, zodat _ en % in een naam letterlijk tellen.
        """
        if not name or not name.strip():
            return []
        query_name = sa.literal(name.strip().lower())
        return self.session.scalars(
            sa.select(ExerciseMuscleMapping)
            .where(sa.func.instr(query_name, sa.func.lower(ExerciseMuscleMapping.exercise_name)) > 0)
            .order_by(ExerciseMuscleMapping.id)
        ).all()

    def get_program(self, program_id):
        return self.session.get(Program, program_id)

    def get_active_program(self, user_id):
        return self.session.scalars(
            sa.select(Program).where(Program.user_id == user_id, Program.is_active.is_(True))
            .order_by(Program.created_at.desc())
        ).first()

    def list_user_programs(self, user_id):
        return self.session.scalars(
            sa.select(Program).where(Program.user_id == user_id).order_by(Program.created_at.desc())
        ).all()

    def list_user_goals(self, user_id):
        return self.session.scalars(
            sa.select(Goal).where(Goal.user_id == user_id).order_by(Goal.created_at.desc(), Goal.id.desc())
        ).all()

    def list_muscle_groups(self):
        return self.session.scalars(sa.select(MuscleGroup).order_by(MuscleGroup.id)).all()

    def get_muscle_group(self, muscle_group_id):
        return self.session.get(MuscleGroup, muscle_group_id)
