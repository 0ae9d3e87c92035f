"""
Bepaling van de workout van vandaag binnen een programma.

Het schema van een programma kan drie vormen hebben, die in deze volgorde
worden herkend:

    1. {"days": [...]}                        -> ArrayDays
    2. {"weeks": [{"days": [...]}, ...]}      -> WeeklyNested
    3. {"0": {...}, "1": {...}, ...}          -> IndexedMap

De gekozen dag hangt alleen af van het aantal voltooide workouts sinds het
programma is aangemaakt, niet van de kalenderdatum. Het programma herhaalt
zich eindeloos (modulo).
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7


class ScheduleError(ValueError):
    """Basisklasse voor fouten in programmaschema's."""


class MalformedScheduleError(ScheduleError):
    """Het schema heeft geen herkende vorm of bevat geen dagen."""


@dataclass(frozen=True)
class ArrayDays:
    days: list

    tag = 'days'

    @property
    def cycle_length(self):
        return len(self.days)


@dataclass(frozen=True)
class WeeklyNested:
    weeks: list

    tag = 'weeks'

    @property
    def cycle_length(self):
        return len(self.weeks) * DAYS_PER_WEEK


@dataclass(frozen=True)
class IndexedMap:
    entries: dict
    keys: tuple = field(default=())

    tag = 'indexed'

    @property
    def cycle_length(self):
        return len(self.keys)


ScheduleShape = Union[ArrayDays, WeeklyNested, IndexedMap]


@dataclass(frozen=True)
class DayEntry:
    """Een trainingsdag uit het schema, met positie in de cyclus."""
    entry: Any
    day_index: int
    cycle_length: int
    key: Optional[str] = None

    rest_day = False

    @property
    def name(self):
        return self.entry.get('name') if isinstance(self.entry, dict) else None

    @property
    def description(self):
        return self.entry.get('description') if isinstance(self.entry, dict) else None

    @property
    def exercises(self):
        if isinstance(self.entry, dict):
            return self.entry.get('exercises') or []
        return []

    @property
    def day_label(self):
        return f"Day {self.day_index + 1} of {self.cycle_length}"


@dataclass(frozen=True)
class RestDay:
    """Rustdag: de geselecteerde dag is leeg of expliciet als rustdag gemarkeerd."""
    day_index: int
    cycle_length: int
    entry: Any = None
    key: Optional[str] = None

    rest_day = True

    @property
    def day_label(self):
        return f"Day {self.day_index + 1} of {self.cycle_length}"


def _numeric_key(key):
    try:
        return int(str(key).strip())
    except (TypeError, ValueError):
        return None


def parse_schedule(schedule):
    """
    Zet een opgeslagen schema om naar een Python-structuur.

    Notities:
        - Oudere programma's bewaren het schema als JSON-string.
    Raises:
        MalformedScheduleError: Als het schema ontbreekt of geen geldige JSON is.
    """
    if schedule is None:
        raise MalformedScheduleError("Program has no schedule")
    if isinstance(schedule, (str, bytes)):
        try:
            schedule = json.loads(schedule)
        except (TypeError, ValueError) as e:
            raise MalformedScheduleError(f"Schedule is not valid JSON: {e}") from e
    return schedule


def detect_shape(schedule):
    """
    Herken de vorm van een schema.

    Returns:
        ArrayDays | WeeklyNested | IndexedMap
    Raises:
        MalformedScheduleError: Als geen van de drie vormen past of de cyclus leeg is.
    """
    schedule = parse_schedule(schedule)
    if not isinstance(schedule, dict):
        raise MalformedScheduleError(f"Unsupported schedule type: {type(schedule).__name__}")

    days = schedule.get('days')
    if isinstance(days, list):
        if not days:
            raise MalformedScheduleError("Schedule has an empty 'days' list")
        return ArrayDays(days=days)

    weeks = schedule.get('weeks')
    if isinstance(weeks, list):
        has_days = any(isinstance(week, dict) and week.get('days') for week in weeks)
        if not has_days:
            raise MalformedScheduleError("Schedule has no days in any week")
        return WeeklyNested(weeks=weeks)

    numbered = []
    for key in schedule:
        number = _numeric_key(key)
        if number is not None:
            numbered.append((number, key))
    if not numbered:
        raise MalformedScheduleError("Schedule has no recognized days")
    keys = tuple(key for _, key in sorted(numbered, key=lambda pair: pair[0]))
    return IndexedMap(entries=schedule, keys=keys)


def _is_rest_day(entry):
    if entry is None:
        return True
    if isinstance(entry, dict):
        return bool(entry.get('isRestDay') or entry.get('is_rest_day'))
    return False


def resolve_todays_entry(schedule, completed_count):
    """
    Kies de workout van vandaag uit een programmaschema.

    Notities:
        - completed_count is het aantal voltooide workouts sinds het programma is aangemaakt.
        - Zuivere functie: dezelfde invoer geeft altijd dezelfde dag.
    Returns:
        DayEntry of RestDay.
    Raises:
        MalformedScheduleError: Als het schema niet bruikbaar is.
        ValueError: Als completed_count negatief is.
    """
    if completed_count < 0:
        raise ValueError(f"completed_count must be non-negative, got {completed_count}")

    shape = detect_shape(schedule)
    cycle_length = shape.cycle_length
    key = None

    if isinstance(shape, ArrayDays):
        day_index = completed_count % cycle_length
        entry = shape.days[day_index]
    elif isinstance(shape, WeeklyNested):
        week_number = (completed_count // DAYS_PER_WEEK) % len(shape.weeks)
        day_number = completed_count % DAYS_PER_WEEK
        day_index = week_number * DAYS_PER_WEEK + day_number
        week = shape.weeks[week_number]
        week_days = week.get('days') if isinstance(week, dict) else None
        entry = None
        if isinstance(week_days, list) and day_number < len(week_days):
            entry = week_days[day_number]
    else:
        day_index = completed_count % cycle_length
        key = shape.keys[day_index]
        entry = shape.entries[key]

    logger.debug(f"Schema {shape.tag}: {completed_count} voltooid, dag {day_index} van {cycle_length}")

    if _is_rest_day(entry):
        return RestDay(day_index=day_index, cycle_length=cycle_length, entry=entry, key=key)
    return DayEntry(entry=entry, day_index=day_index, cycle_length=cycle_length, key=key)
