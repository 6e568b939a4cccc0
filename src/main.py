"""Command-line interface for the family tree store."""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from config import load_settings
from database import SQLiteGraphStore
from errors import NotFoundError, ValidationFailed
from log import configure_logging
from models import (
    EventRole,
    ValidationIssue,
    coerce_role,
    event_from_payload,
    person_from_payload,
    relationship_from_payload,
)
from service import FamilyTreeService

app = typer.Typer(
    name="famtree",
    help="Family tree relationship graph with chronology validation",
    add_completion=False,
)
console = Console()

DbOption = typer.Option(None, "--db", help="SQLite database file (default: FAMTREE_DB_PATH or family_tree.db)")


@contextmanager
def open_service(db: Path | None) -> Iterator[FamilyTreeService]:
    settings = load_settings()
    configure_logging(settings.log_level)
    store = SQLiteGraphStore(db or settings.db_path)
    try:
        yield FamilyTreeService(store, thresholds=settings.thresholds)
    except NotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    except ValidationFailed as e:
        console.print("[red]Validation failed:[/red]")
        for field_name, messages in e.errors_by_field.items():
            for message in messages:
                console.print(f"  [red]{field_name}[/red]: {message}")
        raise typer.Exit(1)
    finally:
        store.close()


def print_warnings(warnings: list[ValidationIssue]) -> None:
    for issue in warnings:
        console.print(f"[yellow]Warning:[/yellow] {issue.message}")


@app.command("init-db")
def init_db(db: Optional[Path] = DbOption):
    """Create the database tables."""
    with open_service(db) as service:
        console.print(f"[green]Database ready at {service.store.db_path}[/green]")


@app.command("add-person")
def add_person(
    first_name: str = typer.Argument(..., help="Given name"),
    last_name: str = typer.Argument(..., help="Surname"),
    middle_name: Optional[str] = typer.Option(None, "--middle"),
    maiden_name: Optional[str] = typer.Option(None, "--maiden"),
    gender: Optional[str] = typer.Option(None, "--gender", "-g", help="male, female, other or unknown"),
    birth: Optional[str] = typer.Option(None, "--birth", "-b", help="Birth date"),
    birth_location: Optional[str] = typer.Option(None, "--birth-location"),
    death: Optional[str] = typer.Option(None, "--death", "-d", help="Death date"),
    death_location: Optional[str] = typer.Option(None, "--death-location"),
    project: Optional[int] = typer.Option(None, "--project", "-p", help="Project id"),
    db: Optional[Path] = DbOption,
):
    """Add a person."""
    with open_service(db) as service:
        person = person_from_payload(
            {
                "first_name": first_name,
                "last_name": last_name,
                "middle_name": middle_name,
                "maiden_name": maiden_name,
                "gender": gender,
                "birth_date": birth,
                "birth_location": birth_location,
                "death_date": death,
                "death_location": death_location,
                "project_id": project,
            }
        )
        person, warnings = service.create_person(person)
        print_warnings(warnings)
        console.print(f"[green]Added {person.display_name} with id {person.id}[/green]")


@app.command("add-relationship")
def add_relationship(
    person1_id: int = typer.Argument(..., help="First person id"),
    relationship_type: str = typer.Argument(..., help="e.g. parent: person1 is the parent of person2"),
    person2_id: int = typer.Argument(..., help="Second person id"),
    qualifier: Optional[str] = typer.Option(None, "--qualifier", "-q", help="biological, adoptive, step, foster or in-law"),
    start: Optional[str] = typer.Option(None, "--start", help="Start date (marriage date for spouses)"),
    end: Optional[str] = typer.Option(None, "--end", help="End date"),
    notes: Optional[str] = typer.Option(None, "--notes"),
    db: Optional[Path] = DbOption,
):
    """Add a relationship and its inverse."""
    with open_service(db) as service:
        relationship = relationship_from_payload(
            {
                "person1_id": person1_id,
                "person2_id": person2_id,
                "relationship_type": relationship_type,
                "relationship_qualifier": qualifier,
                "start_date": start,
                "end_date": end,
                "notes": notes,
            }
        )
        relationship, warnings = service.create_relationship(relationship)
        print_warnings(warnings)
        console.print(f"[green]Added relationship {relationship.id}[/green]")


@app.command("delete-relationship")
def delete_relationship(
    relationship_id: int = typer.Argument(..., help="Relationship id (either direction)"),
    db: Optional[Path] = DbOption,
):
    """Delete a relationship and its inverse."""
    with open_service(db) as service:
        deleted = service.delete_relationship(relationship_id)
        console.print(f"[green]Deleted relationship rows {', '.join(map(str, deleted))}[/green]")


@app.command("add-event")
def add_event(
    event_type: str = typer.Argument(..., help="e.g. birth, marriage, census"),
    person_ids: Optional[List[int]] = typer.Option(None, "--person", help="Linked person id (repeatable)"),
    role: Optional[str] = typer.Option(None, "--role", help="Role of every linked person (default: primary)"),
    event_date: Optional[str] = typer.Option(None, "--date"),
    location: Optional[str] = typer.Option(None, "--location"),
    description: Optional[str] = typer.Option(None, "--description"),
    db: Optional[Path] = DbOption,
):
    """Add an event linked to one or more persons."""
    with open_service(db) as service:
        event = event_from_payload(
            {
                "event_type": event_type,
                "event_date": event_date,
                "event_location": location,
                "description": description,
            }
        )
        link_role = coerce_role(role) or EventRole.PRIMARY
        event, warnings = service.create_event(event, {pid: link_role for pid in person_ids or []})
        print_warnings(warnings)
        console.print(f"[green]Added event {event.id}[/green]")


def _print_generations(service: FamilyTreeService, title: str, entries) -> None:
    persons = service.store.get_persons(e.person_id for e in entries)
    table = Table(title=title)
    table.add_column("Generation", justify="right")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Birth")
    table.add_column("Death")
    for entry in entries:
        person = persons[entry.person_id]
        table.add_row(
            str(entry.generation),
            str(person.id),
            person.display_name,
            str(person.birth_date or ""),
            str(person.death_date or ""),
        )
    console.print(table)


@app.command()
def ancestors(
    person_id: int = typer.Argument(...),
    generations: Optional[int] = typer.Option(None, "--generations", "-n", help="Maximum generations"),
    db: Optional[Path] = DbOption,
):
    """List a person's ancestors, nearest first."""
    with open_service(db) as service:
        entries = service.get_ancestors(person_id, generations)
        if not entries:
            console.print("No ancestors recorded")
            return
        _print_generations(service, f"Ancestors of {person_id}", entries)


@app.command()
def descendants(
    person_id: int = typer.Argument(...),
    generations: Optional[int] = typer.Option(None, "--generations", "-n", help="Maximum generations"),
    db: Optional[Path] = DbOption,
):
    """List a person's descendants, nearest first."""
    with open_service(db) as service:
        entries = service.get_descendants(person_id, generations)
        if not entries:
            console.print("No descendants recorded")
            return
        _print_generations(service, f"Descendants of {person_id}", entries)


@app.command()
def path(
    person1_id: int = typer.Argument(...),
    person2_id: int = typer.Argument(...),
    max_depth: int = typer.Option(5, "--max-depth"),
    db: Optional[Path] = DbOption,
):
    """Show the shortest chain of relationships linking two persons."""
    with open_service(db) as service:
        chain = service.find_path(person1_id, person2_id, max_depth)
        if not chain:
            console.print(f"No relationship path within {max_depth} steps")
            return
        persons = service.store.get_persons(
            {r.person1_id for r in chain} | {r.person2_id for r in chain}
        )
        for rel in chain:
            console.print(
                f"{persons[rel.person1_id].display_name} is {rel.relationship_type.value} of "
                f"{persons[rel.person2_id].display_name}"
            )


@app.command()
def audit(
    project: Optional[int] = typer.Option(None, "--project", "-p", help="Limit to one project"),
    db: Optional[Path] = DbOption,
):
    """Check the stored tree for cycles, contradictions and impossible dates."""
    with open_service(db) as service:
        result = service.audit(project)

    if not result.errors and not result.warnings:
        console.print("[green]No problems found[/green]")
        return

    table = Table(title="Audit")
    table.add_column("Severity")
    table.add_column("Check", style="dim")
    table.add_column("Message")
    for issue in result.errors + result.warnings:
        color = "red" if issue.severity.value == "error" else "yellow"
        table.add_row(f"[{color}]{issue.severity.value}[/{color}]", issue.check.value, issue.message)
    console.print(table)

    if result.errors:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
