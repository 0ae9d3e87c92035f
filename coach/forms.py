import json
import math
from flask_wtf import FlaskForm
from wtforms import StringField, FloatField, IntegerField, BooleanField, DateField, ValidationError
from wtforms.fields.simple import TextAreaField
from wtforms.validators import DataRequired, Length, NumberRange, Optional, AnyOf, StopValidation
import logging

logger = logging.getLogger(__name__)

GOAL_STATUSES = ['active', 'completed', 'paused']


def not_blank(form, field):
    """
    Weiger een meegestuurde waarde die alleen uit spaties bestaat.

    Notities:
        - Staat vóór Optional() in de validatorketen; Optional() slaat witruimte anders stil over.
    """
    if field.raw_data and isinstance(field.raw_data[0], str) and not field.raw_data[0].strip():
        raise StopValidation(f'{field.label.text} cannot be blank.')


def check_finite(field):
    if field.data is not None and not math.isfinite(field.data):
        raise ValidationError('Must be a finite number.')


class JSONForm(FlaskForm):
    """
    Basisformulier voor JSON-requests.
    Notities:
        - CSRF wordt voor het hele request gecontroleerd door CSRFProtect (X-CSRFToken header),
          daarom staat de formulier-CSRF uit.
    """

    class Meta:
        csrf = False


class WorkoutForm(JSONForm):
    """
    Formulier voor het aanmaken van een workout.
    Notities:
        - Wordt gevuld via api.utils.json_form, die null-waarden weglaat.
    """
    name = StringField('Naam', validators=[DataRequired(), Length(min=1, max=100)])
    notes = TextAreaField('Notities', validators=[Optional()])
    duration = IntegerField('Duur (minuten)', validators=[Optional(), NumberRange(min=0, max=24 * 60)])


class ExerciseForm(JSONForm):
    """
    Formulier voor een oefening binnen een workout.
    Notities:
        - sets, reps en weight zijn optioneel; ontbrekende waarden tellen als 0 volume.
        - rpe (Rate of Perceived Exertion) ligt tussen 1 en 10.
    """
    workout_id = IntegerField('Workout', validators=[Optional()])
    name = StringField('Oefening', validators=[DataRequired(), Length(min=1, max=100)])
    sets = IntegerField('Sets', validators=[Optional(), NumberRange(min=0)])
    reps = IntegerField('Reps', validators=[Optional(), NumberRange(min=0)])
    weight = FloatField('Gewicht', validators=[Optional(), NumberRange(min=0)])
    rpe = IntegerField('RPE', validators=[Optional(), NumberRange(min=1, max=10)])
    rest_time = IntegerField('Rusttijd (seconden)', validators=[Optional(), NumberRange(min=0)])
    notes = TextAreaField('Notities', validators=[Optional()])

    def validate_weight(self, weight):
        # "inf" en "nan" komen door NumberRange heen
        check_finite(weight)


class ExerciseUpdateForm(ExerciseForm):
    """Gedeeltelijke update: de naam is niet verplicht, maar mag niet leeg zijn."""
    name = StringField('Name', validators=[not_blank, Optional(), Length(min=1, max=100)])


class ProgramForm(JSONForm):
    """
    Formulier voor trainingsprogramma's.
    Notities:
        - schedule valt buiten het formulier (genest JSON-object) en gaat via parse_schedule_payload.
    """
    name = StringField('Naam', validators=[DataRequired(), Length(min=1, max=100)])
    description = TextAreaField('Omschrijving', validators=[Optional()])
    is_active = BooleanField('Actief', default=False)
    ai_generated = BooleanField('AI-gegenereerd', default=False)

    def validate_name(self, name):
        if name.data and not name.data.strip():
            raise ValidationError('Name cannot be blank.')


class ProgramUpdateForm(ProgramForm):
    name = StringField('Name', validators=[not_blank, Optional(), Length(min=1, max=100)])


class GoalForm(JSONForm):
    """
    Formulier voor trainingsdoelen.
    Notities:
        - target_date in het formaat JJJJ-MM-DD.
        - current_value begint op 0 en wordt bij het bijwerken meegestuurd.
    """
    title = StringField('Title', validators=[DataRequired(), Length(min=1, max=100)])
    description = TextAreaField('Omschrijving', validators=[Optional()])
    target_value = FloatField('Doelwaarde', validators=[Optional()])
    current_value = FloatField('Huidige waarde', validators=[Optional()])
    unit = StringField('Eenheid', validators=[Optional(), Length(max=20)])
    category = StringField('Category', validators=[DataRequired(), Length(min=1, max=50)])
    muscle_group = StringField('Spiergroep', validators=[Optional(), Length(max=50)])
    status = StringField('Status', validators=[Optional(), AnyOf(GOAL_STATUSES)])
    target_date = DateField('Streefdatum', format='%Y-%m-%d', validators=[Optional()])

    def validate_target_value(self, target_value):
        check_finite(target_value)

    def validate_current_value(self, current_value):
        check_finite(current_value)


class GoalUpdateForm(GoalForm):
    title = StringField('Title', validators=[not_blank, Optional(), Length(min=1, max=100)])
    category = StringField('Category', validators=[not_blank, Optional(), Length(min=1, max=50)])


def parse_schedule_payload(value):
    """
    Normaliseer een meegestuurd schema.

    Returns:
        dict of None.
    Raises:
        ValidationError: Als het schema geen JSON-object is.
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            logger.debug(f"Ongeldig schema ontvangen: {e}")
            raise ValidationError('Schedule must be valid JSON.')
    if not isinstance(value, dict):
        raise ValidationError('Schedule must be a JSON object.')
    return value
