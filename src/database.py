"""SQLite storage for persons, relationships and events."""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
import sqlite3
from typing import Protocol

from log import get_logger
from models import (
    Event,
    EventRole,
    EventType,
    Gender,
    Person,
    PersonEvent,
    Relationship,
    RelationshipQualifier,
    RelationshipType,
)
from parsing import format_date, to_date
from relationship_rules import inverse_type

logger = get_logger(__name__)

SCHEMA = """
    CREATE TABLE IF NOT EXISTS person (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        project_id INTEGER,
        first_name TEXT NOT NULL CHECK (first_name <> ''),
        middle_name TEXT,
        last_name TEXT NOT NULL CHECK (last_name <> ''),
        maiden_name TEXT,
        gender TEXT,
        birth_date TEXT,
        birth_location TEXT,
        death_date TEXT,
        death_location TEXT,
        notes TEXT
    );

    CREATE TABLE IF NOT EXISTS relationship (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        person1_id INTEGER NOT NULL,
        person2_id INTEGER NOT NULL,
        relationship_type TEXT NOT NULL,
        relationship_qualifier TEXT,
        start_date TEXT,
        end_date TEXT,
        notes TEXT,
        CHECK (person1_id <> person2_id),
        FOREIGN KEY (person1_id) REFERENCES person(id) ON DELETE CASCADE,
        FOREIGN KEY (person2_id) REFERENCES person(id) ON DELETE CASCADE
    );

    CREATE INDEX IF NOT EXISTS idx_relationship_person1 ON relationship(person1_id);
    CREATE INDEX IF NOT EXISTS idx_relationship_person2 ON relationship(person2_id);

    CREATE TABLE IF NOT EXISTS event (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        event_type TEXT NOT NULL,
        event_date TEXT,
        event_location TEXT,
        description TEXT
    );

    CREATE TABLE IF NOT EXISTS person_event (
        person_id INTEGER NOT NULL,
        event_id INTEGER NOT NULL,
        role TEXT,
        notes TEXT,
        PRIMARY KEY (person_id, event_id),
        FOREIGN KEY (person_id) REFERENCES person(id) ON DELETE CASCADE,
        FOREIGN KEY (event_id) REFERENCES event(id) ON DELETE CASCADE
    );
"""


class GraphStore(Protocol):
    """The read and write operations the tree service needs from persistence."""

    def transaction(self): ...

    def get_person(self, person_id: int) -> Person | None: ...

    def get_persons(self, person_ids: Iterable[int]) -> dict[int, Person]: ...

    def persons_for_project(self, project_id: int | None) -> list[Person]: ...

    def insert_person(self, person: Person) -> Person: ...

    def update_person(self, person: Person) -> Person: ...

    def delete_person(self, person_id: int) -> bool: ...

    def get_relationship(self, relationship_id: int) -> Relationship | None: ...

    def relationships_for_persons(self, person_ids: Iterable[int]) -> list[Relationship]: ...

    def relationships_in_component(self, person_ids: Iterable[int]) -> list[Relationship]: ...

    def relationships_for_project(self, project_id: int | None) -> list[Relationship]: ...

    def find_inverse(self, relationship: Relationship) -> Relationship | None: ...

    def insert_relationship(self, relationship: Relationship) -> Relationship: ...

    def update_relationship(self, relationship: Relationship) -> Relationship: ...

    def delete_relationship(self, relationship_id: int) -> bool: ...

    def get_event(self, event_id: int) -> Event | None: ...

    def insert_event(self, event: Event) -> Event: ...

    def update_event(self, event: Event) -> Event: ...

    def link_person_event(self, link: PersonEvent) -> PersonEvent: ...

    def events_for_person(self, person_id: int) -> list[tuple[Event, EventRole | None]]: ...

    def persons_for_event(self, event_id: int) -> list[tuple[Person, EventRole | None]]: ...


def _enum(enum_type, value):
    return enum_type(value) if value else None


def _row_to_person(row: sqlite3.Row) -> Person:
    return Person(
        id=row["id"],
        project_id=row["project_id"],
        first_name=row["first_name"],
        middle_name=row["middle_name"],
        last_name=row["last_name"],
        maiden_name=row["maiden_name"],
        gender=_enum(Gender, row["gender"]),
        birth_date=to_date(row["birth_date"]),
        birth_location=row["birth_location"],
        death_date=to_date(row["death_date"]),
        death_location=row["death_location"],
        notes=row["notes"],
    )


def _row_to_relationship(row: sqlite3.Row) -> Relationship:
    return Relationship(
        id=row["id"],
        person1_id=row["person1_id"],
        person2_id=row["person2_id"],
        relationship_type=RelationshipType(row["relationship_type"]),
        relationship_qualifier=_enum(RelationshipQualifier, row["relationship_qualifier"]),
        start_date=to_date(row["start_date"]),
        end_date=to_date(row["end_date"]),
        notes=row["notes"],
    )


def _row_to_event(row: sqlite3.Row) -> Event:
    return Event(
        id=row["id"],
        event_type=EventType(row["event_type"]),
        event_date=to_date(row["event_date"]),
        event_location=row["event_location"],
        description=row["description"],
    )


def _value(member) -> str | None:
    return member.value if member is not None else None


def _placeholders(values: list) -> str:
    return ", ".join("?" for _ in values)


class SQLiteGraphStore:
    """
    GraphStore backed by a single SQLite file.

    Writes must run inside `transaction()`, which takes SQLite's write lock up
    front (BEGIN IMMEDIATE). A read-check-write sequence inside one
    transaction therefore cannot interleave with another writer.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = db_path
        self.conn = create_database(db_path)
        self._depth = 0

    def close(self) -> None:
        self.conn.close()

    @contextmanager
    def transaction(self) -> Iterator["SQLiteGraphStore"]:
        if self._depth:
            # Nested use joins the outer transaction
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        self.conn.execute("BEGIN IMMEDIATE")
        self._depth = 1
        try:
            yield self
        except BaseException:
            self.conn.execute("ROLLBACK")
            logger.debug("store.rollback", db_path=str(self.db_path))
            raise
        else:
            self.conn.execute("COMMIT")
        finally:
            self._depth = 0

    # Persons

    def get_person(self, person_id: int) -> Person | None:
        row = self.conn.execute("SELECT * FROM person WHERE id = ?", (person_id,)).fetchone()
        return _row_to_person(row) if row else None

    def get_persons(self, person_ids: Iterable[int]) -> dict[int, Person]:
        ids = list(set(person_ids))
        if not ids:
            return {}
        rows = self.conn.execute(f"SELECT * FROM person WHERE id IN ({_placeholders(ids)})", ids)
        return {row["id"]: _row_to_person(row) for row in rows}

    def persons_for_project(self, project_id: int | None) -> list[Person]:
        if project_id is None:
            rows = self.conn.execute("SELECT * FROM person ORDER BY id")
        else:
            rows = self.conn.execute("SELECT * FROM person WHERE project_id = ? ORDER BY id", (project_id,))
        return [_row_to_person(row) for row in rows]

    def insert_person(self, person: Person) -> Person:
        cursor = self.conn.execute(
            """
            INSERT INTO person
            (project_id, first_name, middle_name, last_name, maiden_name, gender,
             birth_date, birth_location, death_date, death_location, notes)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                person.project_id,
                person.first_name,
                person.middle_name,
                person.last_name,
                person.maiden_name,
                _value(person.gender),
                format_date(person.birth_date),
                person.birth_location,
                format_date(person.death_date),
                person.death_location,
                person.notes,
            ),
        )
        person.id = cursor.lastrowid
        logger.debug("store.person_inserted", person_id=person.id)
        return person

    def update_person(self, person: Person) -> Person:
        self.conn.execute(
            """
            UPDATE person SET
                project_id = ?, first_name = ?, middle_name = ?, last_name = ?, maiden_name = ?,
                gender = ?, birth_date = ?, birth_location = ?, death_date = ?, death_location = ?,
                notes = ?
            WHERE id = ?
            """,
            (
                person.project_id,
                person.first_name,
                person.middle_name,
                person.last_name,
                person.maiden_name,
                _value(person.gender),
                format_date(person.birth_date),
                person.birth_location,
                format_date(person.death_date),
                person.death_location,
                person.notes,
                person.id,
            ),
        )
        return person

    def delete_person(self, person_id: int) -> bool:
        # Relationship and person_event rows go with it (ON DELETE CASCADE)
        cursor = self.conn.execute("DELETE FROM person WHERE id = ?", (person_id,))
        return cursor.rowcount > 0

    # Relationships

    def get_relationship(self, relationship_id: int) -> Relationship | None:
        row = self.conn.execute("SELECT * FROM relationship WHERE id = ?", (relationship_id,)).fetchone()
        return _row_to_relationship(row) if row else None

    def relationships_for_persons(self, person_ids: Iterable[int]) -> list[Relationship]:
        ids = list(set(person_ids))
        if not ids:
            return []
        marks = _placeholders(ids)
        rows = self.conn.execute(
            f"SELECT * FROM relationship WHERE person1_id IN ({marks}) OR person2_id IN ({marks}) ORDER BY id",
            ids + ids,
        )
        return [_row_to_relationship(row) for row in rows]

    def relationships_in_component(self, person_ids: Iterable[int]) -> list[Relationship]:
        """Every relationship row reachable from `person_ids`, following edges of any type."""
        found: dict[int, Relationship] = {}
        visited: set[int] = set()
        frontier = set(person_ids)
        while frontier:
            visited |= frontier
            next_frontier: set[int] = set()
            for rel in self.relationships_for_persons(frontier):
                found[rel.id] = rel
                next_frontier.update((rel.person1_id, rel.person2_id))
            frontier = next_frontier - visited
        return [found[key] for key in sorted(found)]

    def relationships_for_project(self, project_id: int | None) -> list[Relationship]:
        if project_id is None:
            rows = self.conn.execute("SELECT * FROM relationship ORDER BY id")
        else:
            rows = self.conn.execute(
                """
                SELECT r.* FROM relationship r
                JOIN person p ON p.id = r.person1_id
                WHERE p.project_id = ?
                ORDER BY r.id
                """,
                (project_id,),
            )
        return [_row_to_relationship(row) for row in rows]

    def find_inverse(self, relationship: Relationship) -> Relationship | None:
        row = self.conn.execute(
            """
            SELECT * FROM relationship
            WHERE person1_id = ? AND person2_id = ? AND relationship_type = ?
            ORDER BY id LIMIT 1
            """,
            (
                relationship.person2_id,
                relationship.person1_id,
                inverse_type(relationship.relationship_type).value,
            ),
        ).fetchone()
        return _row_to_relationship(row) if row else None

    def insert_relationship(self, relationship: Relationship) -> Relationship:
        cursor = self.conn.execute(
            """
            INSERT INTO relationship
            (person1_id, person2_id, relationship_type, relationship_qualifier, start_date, end_date, notes)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                relationship.person1_id,
                relationship.person2_id,
                relationship.relationship_type.value,
                _value(relationship.relationship_qualifier),
                format_date(relationship.start_date),
                format_date(relationship.end_date),
                relationship.notes,
            ),
        )
        relationship.id = cursor.lastrowid
        logger.debug("store.relationship_inserted", relationship_id=relationship.id)
        return relationship

    def update_relationship(self, relationship: Relationship) -> Relationship:
        self.conn.execute(
            """
            UPDATE relationship SET
                person1_id = ?, person2_id = ?, relationship_type = ?, relationship_qualifier = ?,
                start_date = ?, end_date = ?, notes = ?
            WHERE id = ?
            """,
            (
                relationship.person1_id,
                relationship.person2_id,
                relationship.relationship_type.value,
                _value(relationship.relationship_qualifier),
                format_date(relationship.start_date),
                format_date(relationship.end_date),
                relationship.notes,
                relationship.id,
            ),
        )
        return relationship

    def delete_relationship(self, relationship_id: int) -> bool:
        cursor = self.conn.execute("DELETE FROM relationship WHERE id = ?", (relationship_id,))
        return cursor.rowcount > 0

    # Events

    def get_event(self, event_id: int) -> Event | None:
        row = self.conn.execute("SELECT * FROM event WHERE id = ?", (event_id,)).fetchone()
        return _row_to_event(row) if row else None

    def insert_event(self, event: Event) -> Event:
        cursor = self.conn.execute(
            "INSERT INTO event (event_type, event_date, event_location, description) VALUES (?, ?, ?, ?)",
            (event.event_type.value, format_date(event.event_date), event.event_location, event.description),
        )
        event.id = cursor.lastrowid
        return event

    def update_event(self, event: Event) -> Event:
        self.conn.execute(
            "UPDATE event SET event_type = ?, event_date = ?, event_location = ?, description = ? WHERE id = ?",
            (
                event.event_type.value,
                format_date(event.event_date),
                event.event_location,
                event.description,
                event.id,
            ),
        )
        return event

    def link_person_event(self, link: PersonEvent) -> PersonEvent:
        self.conn.execute(
            "INSERT OR REPLACE INTO person_event (person_id, event_id, role, notes) VALUES (?, ?, ?, ?)",
            (link.person_id, link.event_id, _value(link.role), link.notes),
        )
        return link

    def events_for_person(self, person_id: int) -> list[tuple[Event, EventRole | None]]:
        """Events linked to a person, each paired with the person's role in it."""
        rows = self.conn.execute(
            """
            SELECT e.*, pe.role AS link_role FROM event e
            JOIN person_event pe ON pe.event_id = e.id
            WHERE pe.person_id = ?
            ORDER BY e.event_date, e.id
            """,
            (person_id,),
        )
        return [(_row_to_event(row), _enum(EventRole, row["link_role"])) for row in rows]

    def persons_for_event(self, event_id: int) -> list[tuple[Person, EventRole | None]]:
        rows = self.conn.execute(
            """
            SELECT p.*, pe.role AS link_role FROM person p
            JOIN person_event pe ON pe.person_id = p.id
            WHERE pe.event_id = ?
            ORDER BY p.id
            """,
            (event_id,),
        )
        return [(_row_to_person(row), _enum(EventRole, row["link_role"])) for row in rows]


def create_database(db_path: Path | str) -> sqlite3.Connection:
    """Open (creating if needed) the SQLite database with person, relationship and event tables."""
    # isolation_level=None: transactions are opened explicitly by SQLiteGraphStore.transaction
    conn = sqlite3.connect(db_path, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.executescript(SCHEMA)
    return conn
