import csv
import logging
import sys
import sqlalchemy as sa
from coach import db, create_app
from coach.models import MuscleGroup, ExerciseMuscleMapping
import chardet

logger = logging.getLogger(__name__)

# (name, region, display_name, svg_id)
DEFAULT_MUSCLE_GROUPS = [
    ('chest', 'upper', 'Chest', 'muscle-chest'),
    ('back', 'upper', 'Back', 'muscle-back'),
    ('shoulders', 'upper', 'Shoulders', 'muscle-shoulders'),
    ('biceps', 'upper', 'Biceps', 'muscle-biceps'),
    ('triceps', 'upper', 'Triceps', 'muscle-triceps'),
    ('forearms', 'upper', 'Forearms', 'muscle-forearms'),
    ('abs', 'core', 'Abs', 'muscle-abs'),
    ('quadriceps', 'lower', 'Quadriceps', 'muscle-quadriceps'),
    ('hamstrings', 'lower', 'Hamstrings', 'muscle-hamstrings'),
    ('glutes', 'lower', 'Glutes', 'muscle-glutes'),
    ('calves', 'lower', 'Calves', 'muscle-calves'),
]

# Alternatieve spiernamen in CSV-bestanden -> naam in de referentietabel
MUSCLE_ALIASES = {
    'pecs': 'chest',
    'pectorals': 'chest',
    'lats': 'back',
    'middle back': 'back',
    'upper back': 'back',
    'lower back': 'back',
    'traps': 'back',
    'delts': 'shoulders',
    'deltoids': 'shoulders',
    'abdominals': 'abs',
    'core': 'abs',
    'obliques': 'abs',
    'quads': 'quadriceps',
    'glute': 'glutes',
    'hamstring': 'hamstrings',
    'calf': 'calves',
}

TRUE_VALUES = {'1', 'true', 'yes', 'y', 'primary'}


def detect_encoding(file_path):
    with open(file_path, 'rb') as f:
        raw_data = f.read()
        result = chardet.detect(raw_data)
        return result['encoding'] or 'utf-8'


def detect_delimiter(file_path, encoding):
    with open(file_path, newline='', encoding=encoding, errors='replace') as csvfile:
        first_line = csvfile.readline().strip()
        delimiters = [',', ';', '\t']
        max_fields = 0
        best_delimiter = ','
        for delimiter in delimiters:
            fields = first_line.split(delimiter)
            if len(fields) > max_fields:
                max_fields = len(fields)
                best_delimiter = delimiter
        return best_delimiter


def map_muscle_name(muscle):
    """Zet een spiernaam uit een CSV om naar de naam in de referentietabel."""
    muscle = (muscle or '').strip().lower()
    return MUSCLE_ALIASES.get(muscle, muscle)


def seed_muscle_groups():
    """
    Vul de spiergroep-referentietabel.

    Notities:
        - Bestaande spiergroepen (op naam) worden overgeslagen; veilig om opnieuw te draaien.
    Returns:
        int: aantal toegevoegde spiergroepen.
    """
    existing = set(db.session.scalars(sa.select(MuscleGroup.name)).all())
    added = 0
    for name, region, display_name, svg_id in DEFAULT_MUSCLE_GROUPS:
        if name in existing:
            continue
        db.session.add(MuscleGroup(name=name, region=region, display_name=display_name, svg_id=svg_id))
        added += 1
    db.session.commit()
    logger.info(f"{added} spiergroepen toegevoegd")
    return added


def seed_exercise_mappings(csv_file_path):
    """
    Lees oefening -> spiergroep koppelingen uit een CSV-bestand.

    Notities:
        - Verwachte kolommen: exercise, muscle en optioneel primary.
        - Encoding en scheidingsteken worden automatisch bepaald.
        - Onbekende spieren en dubbele koppelingen worden overgeslagen.
    Returns:
        int: aantal toegevoegde koppelingen.
    """
    encoding = detect_encoding(csv_file_path)
    delimiter = detect_delimiter(csv_file_path, encoding)
    logger.debug(f"Encoding {encoding}, scheidingsteken '{delimiter}' voor {csv_file_path}")

    groups = {group.name: group.id for group in db.session.scalars(sa.select(MuscleGroup)).all()}
    existing = {tuple(row) for row in db.session.execute(
        sa.select(ExerciseMuscleMapping.exercise_name, ExerciseMuscleMapping.muscle_group_id)
    ).all()}

    added = 0
    with open(csv_file_path, newline='', encoding=encoding, errors='replace') as csvfile:
        reader = csv.DictReader(csvfile, delimiter=delimiter)
        fieldnames = [f.strip().lower() for f in (reader.fieldnames or [])]
        if not {'exercise', 'muscle'}.issubset(fieldnames):
            logger.error(f"CSV mist kolommen exercise/muscle: {reader.fieldnames}")
            return 0
        reader.fieldnames = fieldnames

        for row_number, row in enumerate(reader, start=1):
            exercise_name = (row.get('exercise') or '').strip().lower()
            muscle_name = map_muscle_name(row.get('muscle'))
            if not exercise_name or not muscle_name:
                logger.debug(f"Rij {row_number} overgeslagen: lege oefening of spier")
                continue
            muscle_group_id = groups.get(muscle_name)
            if muscle_group_id is None:
                logger.debug(f"Rij {row_number} overgeslagen: onbekende spier '{muscle_name}'")
                continue
            if (exercise_name, muscle_group_id) in existing:
                continue

            primary = (row.get('primary') or 'true').strip().lower() in TRUE_VALUES
            db.session.add(ExerciseMuscleMapping(
                exercise_name=exercise_name,
                muscle_group_id=muscle_group_id,
                primary_muscle=primary
            ))
            existing.add((exercise_name, muscle_group_id))
            added += 1

    db.session.commit()
    logger.info(f"{added} koppelingen toegevoegd uit {csv_file_path}")
    return added


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    app = create_app()
    with app.app_context():
        db.create_all()
        seed_muscle_groups()
        csv_file_path = argv[0] if argv else app.config.get('MUSCLE_MAPPING_CSV')
        if csv_file_path:
            seed_exercise_mappings(csv_file_path)


if __name__ == '__main__':
    main()
