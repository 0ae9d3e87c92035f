import json

import pytest

from coach.schedule import (resolve_todays_entry, detect_shape, MalformedScheduleError, ScheduleError,
                            ArrayDays, WeeklyNested, IndexedMap, DayEntry, RestDay)

PPL = {'days': [{'name': 'Push'}, {'name': 'Pull'}, {'name': 'Legs'}]}


def test_days_schedule_cycles_by_completed_count():
    result = resolve_todays_entry(PPL, 4)
    assert isinstance(result, DayEntry)
    assert result.day_index == 1
    assert result.cycle_length == 3
    assert result.entry == {'name': 'Pull'}
    assert result.day_label == 'Day 2 of 3'


def test_same_input_gives_same_day():
    assert resolve_todays_entry(PPL, 7) == resolve_todays_entry(PPL, 7)


@pytest.mark.parametrize('count', range(0, 12))
def test_days_schedule_repeats_every_cycle(count):
    first = resolve_todays_entry(PPL, count)
    again = resolve_todays_entry(PPL, count + len(PPL['days']))
    assert first.entry == again.entry
    assert first.day_index == again.day_index


def test_indexed_keys_sort_numerically():
    schedule = {'0': {'name': 'A'}, '10': {'name': 'B'}, '2': {'name': 'C'}}
    result = resolve_todays_entry(schedule, 1)
    assert result.entry == {'name': 'C'}
    assert result.key == '2'
    assert resolve_todays_entry(schedule, 2).entry == {'name': 'B'}


def test_indexed_schedule_ignores_non_numeric_keys():
    schedule = {'title': 'Split', '1': {'name': 'Upper'}, '0': {'name': 'Lower'}}
    assert resolve_todays_entry(schedule, 0).entry == {'name': 'Lower'}
    assert resolve_todays_entry(schedule, 1).cycle_length == 2


def test_weekly_schedule_selects_week_and_day():
    schedule = {'weeks': [
        {'days': [{'name': f'W1D{i}'} for i in range(7)]},
        {'days': [{'name': f'W2D{i}'} for i in range(7)]},
    ]}
    assert resolve_todays_entry(schedule, 3).entry == {'name': 'W1D3'}
    result = resolve_todays_entry(schedule, 9)
    assert result.entry == {'name': 'W2D2'}
    assert result.day_index == 9
    assert result.cycle_length == 14
    # Na twee weken begint het programma opnieuw
    assert resolve_todays_entry(schedule, 14).entry == {'name': 'W1D0'}


def test_weekly_schedule_missing_day_is_rest_day():
    schedule = {'weeks': [{'days': [{'name': 'Mon'}, {'name': 'Tue'}]}]}
    result = resolve_todays_entry(schedule, 5)
    assert isinstance(result, RestDay)
    assert result.rest_day is True
    assert result.day_index == 5


def test_explicit_rest_day_is_not_an_error():
    schedule = {'days': [{'name': 'Push'}, {'name': 'Rest', 'isRestDay': True}]}
    result = resolve_todays_entry(schedule, 1)
    assert isinstance(result, RestDay)
    assert result.entry == {'name': 'Rest', 'isRestDay': True}
    assert result.day_label == 'Day 2 of 2'


def test_snake_case_rest_flag_is_recognized():
    schedule = {'0': {'name': 'Off', 'is_rest_day': True}}
    assert resolve_todays_entry(schedule, 0).rest_day is True


def test_null_entry_is_rest_day():
    assert isinstance(resolve_todays_entry({'days': [None, {'name': 'Push'}]}, 0), RestDay)


def test_days_takes_precedence_over_other_shapes():
    schedule = {'days': [{'name': 'Array'}], 'weeks': [{'days': [{'name': 'Weekly'}]}], '0': {'name': 'Map'}}
    assert isinstance(detect_shape(schedule), ArrayDays)
    assert resolve_todays_entry(schedule, 0).entry == {'name': 'Array'}


def test_detect_shape_variants():
    assert isinstance(detect_shape({'weeks': [{'days': [{}]}]}), WeeklyNested)
    shape = detect_shape({'1': {}, '0': {}})
    assert isinstance(shape, IndexedMap)
    assert shape.keys == ('0', '1')


def test_json_string_schedule_is_parsed():
    assert resolve_todays_entry(json.dumps(PPL), 2).entry == {'name': 'Legs'}


@pytest.mark.parametrize('schedule', [
    {},
    {'days': []},
    {'weeks': []},
    {'weeks': [{'days': []}, {}]},
    {'name': 'no days here'},
    None,
    [],
    'not json',
])
def test_malformed_schedules_raise(schedule):
    with pytest.raises(MalformedScheduleError):
        resolve_todays_entry(schedule, 0)


def test_malformed_schedule_error_is_a_value_error():
    assert issubclass(MalformedScheduleError, ScheduleError)
    assert issubclass(MalformedScheduleError, ValueError)


def test_negative_count_is_rejected():
    with pytest.raises(ValueError):
        resolve_todays_entry(PPL, -1)


def test_day_entry_exposes_exercises():
    schedule = {'days': [{'name': 'Push', 'description': 'Chest day', 'exercises': [{'name': 'Bench Press'}]}]}
    result = resolve_todays_entry(schedule, 0)
    assert result.name == 'Push'
    assert result.description == 'Chest day'
    assert result.exercises == [{'name': 'Bench Press'}]
    assert resolve_todays_entry({'days': [{'name': 'Empty'}]}, 0).exercises == []
