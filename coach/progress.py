"""
Spiergroep-voortgang voor de heat-map.

Per spiergroep worden frequentie, volume en het laatste trainingsmoment
berekend uit de voltooide workouts van een gebruiker, en daaruit een
intensiteit tussen 0 en 1:

    intensity = 0.7 * min(1, frequency / 10) + 0.3 * max(0, 1 - days / 14)

Spiergroepen worden onafhankelijk van elkaar berekend; er is geen
normalisatie over spiergroepen heen.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from coach.models import ensure_utc, isoformat, set_volume

logger = logging.getLogger(__name__)

FREQUENCY_WEIGHT = 0.7
RECENCY_WEIGHT = 0.3
FREQUENCY_CAP = 10
RECENCY_WINDOW_DAYS = 14
NEVER_WORKED_DAYS = 999
SECONDS_PER_DAY = 86400


@dataclass
class MuscleProgress:
    frequency: int = 0
    volume: float = 0
    last_worked: Optional[datetime] = None
    intensity: float = 0.0

    def to_dict(self):
        return {
            'frequency': self.frequency,
            'volume': self.volume,
            'last_worked': isoformat(self.last_worked),
            'intensity': self.intensity
        }


class ExerciseClassifier:
    """
    Bepaalt welke spiergroep-koppelingen bij een oefeningnaam horen.

    Notities:
        - Subklassen leveren mappings met minstens een muscle_group_id.
    """

    def classify(self, exercise_name):
        raise NotImplementedError


class SubstringExerciseClassifier(ExerciseClassifier):
    """
    Koppelt via een hoofdletterongevoelige substring-match in de mappingtabel.

    Notities:
        - Dubbele treffers (meerdere mappingrijen naar dezelfde spiergroep) worden niet samengevoegd.
        - Resultaten worden per naam onthouden zolang de classifier leeft (één berekening).
    """

    def __init__(self, store):
        self.store = store
        self._cache = {}

    def classify(self, exercise_name):
        key = (exercise_name or '').strip().lower()
        if key not in self._cache:
            self._cache[key] = list(self.store.find_muscle_mappings_for_exercise_name(key))
        return self._cache[key]


def days_since(last_worked, now):
    """Hele dagen tussen last_worked en now, of NEVER_WORKED_DAYS als er nooit getraind is."""
    if last_worked is None:
        return NEVER_WORKED_DAYS
    elapsed = (ensure_utc(now) - ensure_utc(last_worked)).total_seconds()
    return max(0, int(elapsed // SECONDS_PER_DAY))


def recency_score(days):
    return max(0.0, 1 - days / RECENCY_WINDOW_DAYS)


def frequency_score(frequency):
    return min(1.0, frequency / FREQUENCY_CAP)


def intensity_score(frequency, days):
    return FREQUENCY_WEIGHT * frequency_score(frequency) + RECENCY_WEIGHT * recency_score(days)


def exercise_volume(exercise):
    # Exercise-modellen hebben een volume-property; andere records niet
    volume = getattr(exercise, 'volume', None)
    if volume is not None:
        return volume
    return set_volume(exercise.sets, exercise.reps, exercise.weight)


def estimate_from_history(history, muscle_group_id, classifier, now=None):
    """
    Bereken de voortgang van één spiergroep uit reeds opgehaalde workouts.

    Args:
        history: lijst van (workout, exercises) paren.
        muscle_group_id: de gevraagde spiergroep.
        classifier: ExerciseClassifier voor oefeningnaam -> koppelingen.
        now: referentietijdstip, standaard nu (UTC).
    Returns:
        MuscleProgress
    Notities:
        - Frequentie telt oefening-treffers, niet workouts.
        - Onvoltooide workouts worden overgeslagen.
    """
    now = now or datetime.now(timezone.utc)
    progress = MuscleProgress()

    for workout, exercises in history:
        if not workout.is_completed:
            continue
        completed_at = ensure_utc(workout.completed_at)
        for exercise in exercises:
            for mapping in classifier.classify(exercise.name):
                if mapping.muscle_group_id != muscle_group_id:
                    continue
                progress.frequency += 1
                progress.volume += exercise_volume(exercise)
                if completed_at and (progress.last_worked is None or completed_at > progress.last_worked):
                    progress.last_worked = completed_at

    progress.intensity = intensity_score(progress.frequency, days_since(progress.last_worked, now))
    return progress


def load_history(store, user_id):
    workouts = store.list_completed_workouts_since(user_id)
    return [(workout, store.list_exercises_for_workout(workout.id)) for workout in workouts]


def estimate_muscle_progress(store, user_id, muscle_group_id, now=None, classifier=None):
    """
    Bereken frequentie, volume, laatste training en intensiteit voor één spiergroep.

    Returns:
        MuscleProgress; een spiergroep zonder historie geeft nullen en last_worked None.
    """
    classifier = classifier or SubstringExerciseClassifier(store)
    progress = estimate_from_history(load_history(store, user_id), muscle_group_id, classifier, now=now)
    logger.debug(f"Voortgang gebruiker {user_id}, spiergroep {muscle_group_id}: {progress}")
    return progress


def build_heat_map(store, user_id, now=None, classifier=None):
    """
    Voortgang voor alle spiergroepen, met één keer ophalen van de historie.

    Returns:
        list: [(MuscleGroup, MuscleProgress), ...] in volgorde van de referentietabel.
    """
    classifier = classifier or SubstringExerciseClassifier(store)
    history = load_history(store, user_id)
    now = now or datetime.now(timezone.utc)
    return [
        (muscle_group, estimate_from_history(history, muscle_group.id, classifier, now=now))
        for muscle_group in store.list_muscle_groups()
    ]
