import json
import pytz
import sqlalchemy as sa
import sqlalchemy.orm as so
from datetime import date, datetime, timezone
from typing import Optional
from coach import db
from sqlalchemy.types import TypeDecorator, TEXT


def utcnow():
    return datetime.now(timezone.utc)


def ensure_utc(value):
    """
    Voeg UTC-tijdzone toe aan een naïeve datetime.

    Notities:
        - SQLite geeft DateTime-kolommen zonder tijdzone terug, ook als ze met tzinfo zijn opgeslagen.
        - Alle tijdstippen in de applicatie worden in UTC opgeslagen.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=pytz.UTC)
    return value


def isoformat(value):
    value = ensure_utc(value)
    return value.isoformat() if value else None


def set_volume(sets, reps, weight):
    # Alleen als sets, reps en gewicht alle drie bekend zijn
    if sets is None or reps is None or weight is None:
        return 0
    return sets * reps * weight


class JSONEncoded(TypeDecorator):
    """
    SQLAlchemy TypeDecorator om JSON-documenten als strings op te slaan in TEXT-velden.
    Notities:
        - Gebruikt voor Program.schedule, Exercise.muscle_groups en Achievement.data.
        - None blijft NULL zodat 'niet ingevuld' herkenbaar blijft.
        - Een opgeslagen string wordt ongewijzigd teruggegeven als het geen geldige JSON is;
          de schema-resolver beslist dan of het schema bruikbaar is.
    """
    impl = TEXT
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return json.dumps(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value


class User(db.Model):
    """
    Model voor gebruikers van PocketCoach.

    Notities:
        - Inloggen gebeurt buiten deze applicatie; Flask-Login laadt de gebruiker uit de sessie.
        - current_streak wordt opgehoogd bij elke voltooide workout.
    """
    id: so.Mapped[int] = so.mapped_column(primary_key=True)
    username: so.Mapped[str] = so.mapped_column(sa.String(64), unique=True, nullable=False)
    email: so.Mapped[Optional[str]] = so.mapped_column(sa.String(120), index=True, nullable=True)
    current_streak: so.Mapped[int] = so.mapped_column(default=0)
    created_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime(timezone=True), default=utcnow)
    workouts: so.WriteOnlyMapped['Workout'] = so.relationship(back_populates='user', cascade="all, delete-orphan")
    programs: so.WriteOnlyMapped['Program'] = so.relationship(back_populates='user', cascade="all, delete-orphan")
    achievements: so.WriteOnlyMapped['Achievement'] = so.relationship(back_populates='user', cascade="all, delete-orphan")
    goals: so.WriteOnlyMapped['Goal'] = so.relationship(back_populates='user', cascade="all, delete-orphan")

    @property
    def is_active(self):
        """Vlag of de gebruiker actief is (voor Flask-Login)."""
        return True

    @property
    def is_authenticated(self):
        """Vlag of de gebruiker is geauthenticeerd (voor Flask-Login)."""
        return True

    @property
    def is_anonymous(self):
        """Vlag of de gebruiker anoniem is (voor Flask-Login)."""
        return False

    def get_id(self):
        """Haal de gebruikers-ID op als string (voor Flask-Login)."""
        return str(self.id)

    def __repr__(self):
        return f'<User {self.username}>'

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'current_streak': self.current_streak,
            'created_at': isoformat(self.created_at)
        }


class Workout(db.Model):
    """
    Model voor een trainingssessie.

    Notities:
        - completed_at is gezet dan en slechts dan als is_completed waar is; zie complete().
        - total_volume wordt berekend bij voltooiing.
    """
    id: so.Mapped[int] = so.mapped_column(primary_key=True)
    user_id: so.Mapped[int] = so.mapped_column(sa.ForeignKey('user.id'), index=True)
    name: so.Mapped[str] = so.mapped_column(sa.String(100))
    notes: so.Mapped[Optional[str]] = so.mapped_column(sa.Text)
    duration: so.Mapped[Optional[int]] = so.mapped_column()
    total_volume: so.Mapped[float] = so.mapped_column(default=0.0)
    is_completed: so.Mapped[bool] = so.mapped_column(sa.Boolean, default=False)
    completed_at: so.Mapped[Optional[datetime]] = so.mapped_column(sa.DateTime(timezone=True), nullable=True)
    created_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime(timezone=True), default=utcnow, index=True)
    user: so.Mapped['User'] = so.relationship(back_populates='workouts')
    exercises: so.Mapped[list['Exercise']] = so.relationship(
        back_populates='workout',
        cascade="all, delete-orphan",
        order_by='Exercise.id'
    )

    def calculate_total_volume(self):
        """
        Tel het volume (sets * reps * gewicht) van alle oefeningen op.

        Returns:
            float: Totaal volume; oefeningen met ontbrekende waarden tellen als 0.
        """
        return float(sum(exercise.volume for exercise in self.exercises))

    def complete(self, when=None):
        """
        Markeer de workout als voltooid.

        Notities:
            - Zet is_completed, completed_at en total_volume in één keer.
            - De aanroeper controleert dat de workout nog niet voltooid was.
        """
        self.is_completed = True
        self.completed_at = when or utcnow()
        self.total_volume = self.calculate_total_volume()

    def __repr__(self):
        return f'<Workout {self.name}>'

    def to_dict(self, include_exercises=False):
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'notes': self.notes,
            'duration': self.duration,
            'total_volume': self.total_volume,
            'is_completed': self.is_completed,
            'completed_at': isoformat(self.completed_at),
            'created_at': isoformat(self.created_at)
        }
        if include_exercises:
            data['exercises'] = [exercise.to_dict() for exercise in self.exercises]
        return data


class Exercise(db.Model):
    """
    Model voor een oefening binnen een workout.
    Notities:
        - sets, reps en weight zijn los van elkaar optioneel (vrije gebruikersinvoer).
        - name is vrije tekst en dient als zoeksleutel voor spiergroep-koppelingen.
    """
    id: so.Mapped[int] = so.mapped_column(primary_key=True)
    workout_id: so.Mapped[int] = so.mapped_column(sa.ForeignKey('workout.id'), index=True)
    name: so.Mapped[str] = so.mapped_column(sa.String(100), index=True)
    sets: so.Mapped[Optional[int]] = so.mapped_column()
    reps: so.Mapped[Optional[int]] = so.mapped_column()
    weight: so.Mapped[Optional[float]] = so.mapped_column()
    rpe: so.Mapped[Optional[int]] = so.mapped_column()
    rest_time: so.Mapped[Optional[int]] = so.mapped_column()
    notes: so.Mapped[Optional[str]] = so.mapped_column(sa.Text)
    muscle_groups: so.Mapped[Optional[list]] = so.mapped_column(JSONEncoded, nullable=True)
    created_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime(timezone=True), default=utcnow)
    workout: so.Mapped['Workout'] = so.relationship(back_populates='exercises')

    @property
    def volume(self):
        """
        Volumebijdrage van deze oefening.

        Returns:
            float: sets * reps * weight, of 0 als een van de drie ontbreekt.
        """
        return set_volume(self.sets, self.reps, self.weight)

    def __repr__(self):
        return f'<Exercise {self.name} in {self.workout_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'workout_id': self.workout_id,
            'name': self.name,
            'sets': self.sets,
            'reps': self.reps,
            'weight': self.weight,
            'rpe': self.rpe,
            'rest_time': self.rest_time,
            'notes': self.notes,
            'muscle_groups': self.muscle_groups,
            'created_at': isoformat(self.created_at)
        }


class Program(db.Model):
    """
    Model voor trainingsprogramma's.

    Notities:
        - Maximaal één actief programma per gebruiker; dit wordt in de routes afgedwongen.
        - schedule is een semi-gestructureerd weekschema (zie coach.schedule).
    """
    id: so.Mapped[int] = so.mapped_column(primary_key=True)
    user_id: so.Mapped[int] = so.mapped_column(sa.ForeignKey('user.id'), index=True)
    name: so.Mapped[str] = so.mapped_column(sa.String(100))
    description: so.Mapped[Optional[str]] = so.mapped_column(sa.Text)
    is_active: so.Mapped[bool] = so.mapped_column(sa.Boolean, default=False)
    schedule: so.Mapped[Optional[dict]] = so.mapped_column(JSONEncoded, nullable=True)
    ai_generated: so.Mapped[bool] = so.mapped_column(sa.Boolean, default=False)
    created_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime(timezone=True), default=utcnow)
    user: so.Mapped['User'] = so.relationship(back_populates='programs')

    def __repr__(self):
        return f'<Program {self.name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'description': self.description,
            'is_active': self.is_active,
            'schedule': self.schedule,
            'ai_generated': self.ai_generated,
            'created_at': isoformat(self.created_at)
        }


class MuscleGroup(db.Model):
    """
    Referentietabel met spiergroepen voor de heat-map.
    Notities:
        - Wordt eenmalig gevuld door seed_muscles.py.
        - svg_id verwijst naar het element in de lichaamsvisualisatie van de client.
    """
    __tablename__ = 'muscle_group'
    id: so.Mapped[int] = so.mapped_column(primary_key=True)
    name: so.Mapped[str] = so.mapped_column(sa.String(50), unique=True, nullable=False)
    region: so.Mapped[str] = so.mapped_column(sa.String(20), nullable=False)
    display_name: so.Mapped[str] = so.mapped_column(sa.String(50), nullable=False)
    svg_id: so.Mapped[str] = so.mapped_column(sa.String(50), nullable=False)

    def __repr__(self):
        return f'<MuscleGroup {self.name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'region': self.region,
            'display_name': self.display_name,
            'svg_id': self.svg_id
        }


class ExerciseMuscleMapping(db.Model):
    """
    Koppeling tussen een (vrije) oefeningnaam en een spiergroep.
    Notities:
        - exercise_name wordt in kleine letters opgeslagen.
        - primary_muscle onderscheidt primaire en secundaire spieren.
    """
    __tablename__ = 'exercise_muscle_mapping'
    __table_args__ = (sa.UniqueConstraint('exercise_name', 'muscle_group_id'),)
    id: so.Mapped[int] = so.mapped_column(primary_key=True)
    exercise_name: so.Mapped[str] = so.mapped_column(sa.String(100), index=True, nullable=False)
    muscle_group_id: so.Mapped[int] = so.mapped_column(sa.ForeignKey('muscle_group.id', ondelete='CASCADE'), nullable=False)
    primary_muscle: so.Mapped[bool] = so.mapped_column(sa.Boolean, default=True)
    muscle_group: so.Mapped['MuscleGroup'] = so.relationship()

    def __repr__(self):
        return f'<ExerciseMuscleMapping {self.exercise_name} -> {self.muscle_group_id}>'


class Achievement(db.Model):
    """Prestaties, bijvoorbeeld bij het voltooien van een workout."""
    id: so.Mapped[int] = so.mapped_column(primary_key=True)
    user_id: so.Mapped[int] = so.mapped_column(sa.ForeignKey('user.id'), index=True)
    type: so.Mapped[str] = so.mapped_column(sa.String(50))
    title: so.Mapped[str] = so.mapped_column(sa.String(100))
    description: so.Mapped[Optional[str]] = so.mapped_column(sa.Text)
    data: so.Mapped[Optional[dict]] = so.mapped_column(JSONEncoded, nullable=True)
    is_viewed: so.Mapped[bool] = so.mapped_column(sa.Boolean, default=False)
    created_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime(timezone=True), default=utcnow)
    user: so.Mapped['User'] = so.relationship(back_populates='achievements')

    def __repr__(self):
        return f'<Achievement {self.type} for {self.user_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'title': self.title,
            'description': self.description,
            'data': self.data,
            'is_viewed': self.is_viewed,
            'created_at': isoformat(self.created_at)
        }


class Goal(db.Model):
    """
    Trainingsdoel van een gebruiker, bijvoorbeeld een doelgewicht voor bankdrukken.

    Notities:
        - category is vrije tekst zoals "strength", "muscle_building" of "endurance".
        - muscle_group verwijst op naam naar de spiergroep-referentietabel, maar is niet verplicht.
        - status is "active", "completed" of "paused".
    """
    id: so.Mapped[int] = so.mapped_column(primary_key=True)
    user_id: so.Mapped[int] = so.mapped_column(sa.ForeignKey('user.id'), index=True)
    title: so.Mapped[str] = so.mapped_column(sa.String(100))
    description: so.Mapped[Optional[str]] = so.mapped_column(sa.Text)
    target_value: so.Mapped[Optional[float]] = so.mapped_column()
    current_value: so.Mapped[float] = so.mapped_column(default=0.0)
    unit: so.Mapped[Optional[str]] = so.mapped_column(sa.String(20))
    category: so.Mapped[str] = so.mapped_column(sa.String(50))
    muscle_group: so.Mapped[Optional[str]] = so.mapped_column(sa.String(50))
    status: so.Mapped[str] = so.mapped_column(sa.String(20), default='active')
    target_date: so.Mapped[Optional[date]] = so.mapped_column(sa.Date, nullable=True)
    created_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime(timezone=True), default=utcnow)
    user: so.Mapped['User'] = so.relationship(back_populates='goals')

    def __repr__(self):
        return f'<Goal {self.title} for {self.user_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'title': self.title,
            'description': self.description,
            'target_value': self.target_value,
            'current_value': self.current_value,
            'unit': self.unit,
            'category': self.category,
            'muscle_group': self.muscle_group,
            'status': self.status,
            'target_date': self.target_date.isoformat() if self.target_date else None,
            'created_at': isoformat(self.created_at)
        }
