from pathlib import Path

import pytest
from typer.testing import CliRunner

from database import SQLiteGraphStore
from main import app
from models import EventRole


@pytest.fixture
def db(tmp_path: Path) -> str:
    return str(tmp_path / "cli.db")


def invoke(*args: str):
    return CliRunner().invoke(app, list(args), catch_exceptions=False)


def seed(db: str) -> None:
    assert invoke("add-person", "Ann", "Lee", "--birth", "1950-01-01", "--db", db).exit_code == 0
    assert invoke("add-person", "Bob", "Lee", "--birth", "1980-01-01", "--db", db).exit_code == 0
    assert invoke("add-person", "Cal", "Lee", "--birth", "2005-01-01", "--db", db).exit_code == 0
    assert invoke("add-relationship", "1", "parent", "2", "--db", db).exit_code == 0
    assert invoke("add-relationship", "2", "parent", "3", "--db", db).exit_code == 0


def test_init_db(db):
    result = invoke("init-db", "--db", db)
    assert result.exit_code == 0
    assert Path(db).exists()


def test_add_person_reports_id(db):
    result = invoke("add-person", "Ann", "Lee", "--birth", "25 NOV 1954", "--db", db)
    assert result.exit_code == 0
    assert "with id 1" in result.output


def test_invalid_person_exits_nonzero(db):
    result = invoke("add-person", "Ann", "Lee", "--birth", "1950-01-01", "--death", "1940-01-01", "--db", db)
    assert result.exit_code == 1
    assert "death_date" in result.output


def test_cycle_rejected(db):
    seed(db)
    result = invoke("add-relationship", "3", "parent", "1", "--db", db)
    assert result.exit_code == 1
    assert "circular ancestry" in result.output


def test_spouse_without_date_rejected(db):
    seed(db)
    result = invoke("add-relationship", "1", "spouse", "2", "--db", db)
    assert result.exit_code == 1
    assert "start_date" in result.output


def test_unknown_person(db):
    invoke("init-db", "--db", db)
    result = invoke("ancestors", "42", "--db", db)
    assert result.exit_code == 1
    assert "not found" in result.output


def test_ancestors_table(db):
    seed(db)
    result = invoke("ancestors", "3", "--db", db)
    assert result.exit_code == 0
    assert "Bob Lee" in result.output
    assert "Ann Lee" in result.output


def test_descendants_limit(db):
    seed(db)
    result = invoke("descendants", "1", "-n", "1", "--db", db)
    assert result.exit_code == 0
    assert "Bob Lee" in result.output
    assert "Cal Lee" not in result.output


def test_path(db):
    seed(db)
    result = invoke("path", "1", "3", "--db", db)
    assert result.exit_code == 0
    assert "Ann Lee is parent of Bob Lee" in result.output


def test_delete_relationship_removes_both_rows(db):
    seed(db)
    result = invoke("delete-relationship", "2", "--db", db)
    assert result.exit_code == 0
    assert "No ancestors recorded" in invoke("ancestors", "2", "--db", db).output


def test_add_event(db):
    seed(db)
    result = invoke("add-event", "residence", "--person", "1", "--person", "2", "--date", "1990", "--db", db)
    assert result.exit_code == 0
    assert "Added event 1" in result.output


def test_audit_clean(db):
    seed(db)
    result = invoke("audit", "--db", db)
    assert result.exit_code == 0
    assert "No problems found" in result.output


def test_add_event_without_role_links_as_primary(db):
    seed(db)
    assert invoke("add-event", "residence", "--person", "1", "--date", "1990", "--db", db).exit_code == 0
    store = SQLiteGraphStore(db)
    try:
        [(_, role)] = store.events_for_person(1)
    finally:
        store.close()
    assert role == EventRole.PRIMARY
