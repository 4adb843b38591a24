import importlib.util
from pathlib import Path

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect, text

MIGRATION = Path(__file__).resolve().parents[1] / "migrations" / "versions" / "001_initial.py"


def load_migration():
    spec = importlib.util.spec_from_file_location("migration_001_initial", MIGRATION)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def run(engine, step):
    with engine.begin() as connection:
        context = MigrationContext.configure(connection)
        with Operations.context(context):
            step()


def test_initial_migration_upgrade_and_downgrade():
    migration = load_migration()
    engine = create_engine("sqlite://")

    run(engine, migration.upgrade)
    tables = set(inspect(engine).get_table_names())
    assert {"users", "classes", "subjects", "teacher_subjects", "student_subjects",
            "experiments", "quizzes", "questions", "quiz_attempts"} <= tables

    uniques = inspect(engine).get_unique_constraints("quiz_attempts")
    assert any(set(u["column_names"]) == {"quiz_id", "student_id"} for u in uniques)

    with engine.connect() as connection:
        names = [row[0] for row in connection.execute(text("SELECT name FROM classes ORDER BY id"))]
    assert names == ["SE", "TE", "BE"]

    run(engine, migration.downgrade)
    assert inspect(engine).get_table_names() == []
