"""Relationship write validation and whole-tree consistency audits."""

from collections import Counter
from collections.abc import Callable, Collection, Iterable, Mapping
from datetime import date
from itertools import combinations

import networkx as nx

from chronology import (
    validate_age,
    validate_grandparent_age_difference,
    validate_marriage,
    validate_parent_child_age_difference,
    validate_sibling_age_difference,
    validate_sibling_group,
)
from config import DEFAULT_THRESHOLDS, ChronologyThresholds
from cross_validation import validate_relationship_dates
from graph import build_lineage_graph
from models import Check, Person, Relationship, RelationshipType, ValidationResult
from relationship_rules import (
    canonical_key,
    inverse_type,
    is_descent,
    is_symmetric,
    validate_type_qualifier,
)


def _label(person_id: int, persons: Mapping[int, Person]) -> str:
    person = persons.get(person_id)
    if person is None:
        return f"person {person_id}"
    return f"{person.display_name} ({person_id})"


def _check_self_relation(candidate: Relationship) -> ValidationResult:
    result = ValidationResult()
    if candidate.person1_id == candidate.person2_id:
        result.error(Check.SELF_RELATION, "Cannot relate a person to themself", "person2_id")
    return result


def _check_required_fields(candidate: Relationship) -> ValidationResult:
    result = ValidationResult()
    if candidate.relationship_type == RelationshipType.SPOUSE and not candidate.start_date:
        result.error(
            Check.REQUIRED_FIELD,
            "Marriage date (start_date) is required for spouse relationships",
            "start_date",
        )
    return result


def _check_date_range(candidate: Relationship) -> ValidationResult:
    result = ValidationResult()
    if candidate.start_date and candidate.end_date and candidate.start_date >= candidate.end_date:
        result.error(Check.DATE_RANGE, "Start date must be before end date", "end_date")
    return result


def _check_duplicate(
    candidate: Relationship, snapshot: list[Relationship], persons: Mapping[int, Person]
) -> ValidationResult:
    result = ValidationResult()
    key = canonical_key(candidate)
    if any(canonical_key(rel) == key for rel in snapshot):
        result.error(
            Check.DUPLICATE,
            f"A '{candidate.relationship_type.value}' relationship already exists between "
            f"{_label(candidate.person1_id, persons)} and {_label(candidate.person2_id, persons)}",
            "relationship_type",
        )
    return result


def _check_contradiction(
    candidate: Relationship, snapshot: list[Relationship], persons: Mapping[int, Person]
) -> ValidationResult:
    """Reject an edge whose reverse is already recorded, e.g. parent(A, B) when B is A's parent."""
    result = ValidationResult()
    key = canonical_key(candidate)
    if is_symmetric(key[0]):
        return result

    _, subject, obj = key
    for rel in snapshot:
        existing = canonical_key(rel)
        if (existing[1], existing[2]) != (obj, subject):
            continue
        if existing[0] == key[0] or (is_descent(existing) and is_descent(key)):
            result.error(
                Check.CONTRADICTION,
                f"{_label(obj, persons)} is already recorded as {existing[0].value} of "
                f"{_label(subject, persons)}; {_label(subject, persons)} cannot also be "
                f"{key[0].value} of {_label(obj, persons)}",
                "relationship_type",
            )
            break
    return result


def _descent_graph(relationships: Iterable[Relationship]) -> nx.DiGraph:
    """Elder → younger digraph of every recorded ancestry edge: parent/child and grandparent/grandchild."""
    relationships = list(relationships)
    G = build_lineage_graph(relationships)
    for rel in relationships:
        key = canonical_key(rel)
        if key[0] == RelationshipType.GRANDPARENT:
            G.add_edge(key[1], key[2])
    return G


def _check_cycle(
    candidate: Relationship, snapshot: list[Relationship], persons: Mapping[int, Person]
) -> ValidationResult:
    """
    Reject a parent/child or grandparent/grandchild edge that closes a loop in
    the ancestry graph.

    The graph was acyclic before this write, so only paths from the new
    younger person back to the new elder need checking.
    """
    result = ValidationResult()
    key = canonical_key(candidate)
    if not is_descent(key):
        return result

    _, elder, younger = key
    descent = _descent_graph(snapshot)
    if elder in descent and younger in descent and nx.has_path(descent, younger, elder):
        path = nx.shortest_path(descent, younger, elder)
        chain = " → ".join(_label(node, persons) for node in path + [younger])
        result.error(
            Check.CYCLE,
            f"Relationship would create a circular ancestry: {chain}",
            "person2_id",
        )
    return result


def _check_chronology(
    candidate: Relationship,
    persons: Mapping[int, Person],
    today: date | None,
    thresholds: ChronologyThresholds,
) -> ValidationResult:
    result = ValidationResult()
    person1 = persons.get(candidate.person1_id)
    person2 = persons.get(candidate.person2_id)
    if person1 is None or person2 is None:
        return result

    rtype = candidate.relationship_type
    if rtype == RelationshipType.SPOUSE:
        return result.extend(validate_marriage(person1, person2, candidate, today, thresholds))

    if rtype == RelationshipType.PARENT:
        result.extend(validate_parent_child_age_difference(person1, person2, thresholds))
    elif rtype == RelationshipType.CHILD:
        result.extend(validate_parent_child_age_difference(person2, person1, thresholds))
    elif rtype == RelationshipType.GRANDPARENT:
        result.extend(validate_grandparent_age_difference(person1, person2, thresholds))
    elif rtype == RelationshipType.GRANDCHILD:
        result.extend(validate_grandparent_age_difference(person2, person1, thresholds))
    elif rtype == RelationshipType.SIBLING:
        result.extend(validate_sibling_age_difference(person1, person2, thresholds))
    result.extend(validate_relationship_dates(candidate, person1, person2))
    return result


def validate_relationship_write(
    candidate: Relationship,
    existing: Iterable[Relationship],
    persons: Mapping[int, Person] | None = None,
    *,
    ignore_ids: Collection[int] = (),
    today: date | None = None,
    thresholds: ChronologyThresholds = DEFAULT_THRESHOLDS,
) -> ValidationResult:
    """
    Validate a proposed relationship create or update.

    Args:
        candidate: The relationship being written.
        existing: Snapshot of relationship rows around both endpoints. For the
            cycle check it must cover their connected component.
        persons: Person records by id, used for the chronology checks. Persons
            missing from the mapping skip those checks.
        ignore_ids: Row ids to leave out of the snapshot, e.g. the row being
            updated and its mirror. The candidate's own id is always ignored.

    Returns:
        A ValidationResult. The structural and graph checks run in order and
        stop at the first one that fails; on success the chronology errors and
        warnings are returned.
    """
    persons = persons or {}
    skip = set(ignore_ids)
    if candidate.id is not None:
        skip.add(candidate.id)
    snapshot = [rel for rel in existing if rel.id is None or rel.id not in skip]

    checks: list[Callable[[], ValidationResult]] = [
        lambda: _check_self_relation(candidate),
        lambda: validate_type_qualifier(candidate.relationship_type, candidate.relationship_qualifier),
        lambda: _check_required_fields(candidate),
        lambda: _check_date_range(candidate),
        lambda: _check_duplicate(candidate, snapshot, persons),
        lambda: _check_contradiction(candidate, snapshot, persons),
        lambda: _check_cycle(candidate, snapshot, persons),
    ]
    for check in checks:
        result = check()
        if not result.is_valid:
            return result

    return _check_chronology(candidate, persons, today, thresholds)


def validate_graph(
    relationships: Iterable[Relationship],
    persons: Iterable[Person] = (),
    today: date | None = None,
    thresholds: ChronologyThresholds = DEFAULT_THRESHOLDS,
) -> ValidationResult:
    """
    Audit an existing family tree for:
    - Cycles in parent-child relationships
    - Duplicate and contradictory relationship rows
    - Relationship rows with no inverse row
    - Impossible ages and relationship chronology
    - Birth spacing among children of the same parents

    Intended for trees written before the per-write checks existed, or edited
    out of band. Returns errors and warnings rather than raising.
    """
    relationships = list(relationships)
    people = {p.id: p for p in persons}
    result = ValidationResult()

    # Check for cycles
    lineage = build_lineage_graph(relationships)
    try:
        cycle = nx.find_cycle(_descent_graph(relationships), orientation="original")
        cycle_nodes = [edge[0] for edge in cycle]
        result.error(
            Check.CYCLE,
            "Cycle detected in ancestry relationships: "
            + " → ".join(_label(node, people) for node in cycle_nodes + cycle_nodes[:1]),
        )
    except nx.NetworkXNoCycle:
        pass

    # Exact duplicate rows
    row_counts = Counter((r.relationship_type, r.person1_id, r.person2_id) for r in relationships)
    for (rtype, p1, p2), count in row_counts.items():
        if count > 1:
            result.error(
                Check.DUPLICATE,
                f"'{rtype.value}' relationship from {_label(p1, people)} to {_label(p2, people)} "
                f"is stored {count} times",
            )

    # Reverse edges of directional types
    keys = {canonical_key(r) for r in relationships}
    for rtype, subject, obj in sorted(keys, key=lambda k: (k[0].value, str(k[1]), str(k[2]))):
        if is_symmetric(rtype) or not str(subject) < str(obj):
            continue
        if (rtype, obj, subject) in keys:
            result.error(
                Check.CONTRADICTION,
                f"{_label(subject, people)} and {_label(obj, people)} are each recorded as "
                f"{rtype.value} of the other",
            )

    # Missing inverse rows
    stored = set(row_counts)
    for rtype, p1, p2 in row_counts:
        if (inverse_type(rtype), p2, p1) not in stored:
            result.warn(
                Check.INVERSE_MISSING,
                f"'{rtype.value}' relationship from {_label(p1, people)} to {_label(p2, people)} "
                f"has no inverse '{inverse_type(rtype).value}' row",
            )

    # Per-person and per-edge chronology
    for person in people.values():
        result.extend(validate_age(person, today, thresholds))

    # Children of the same recorded parents, checked as one sibling set
    families: dict[frozenset, list[int]] = {}
    for child in lineage.nodes:
        parents = frozenset(lineage.predecessors(child))
        if parents:
            families.setdefault(parents, []).append(child)
    grouped: set[frozenset] = set()
    for children in families.values():
        members = [people[c] for c in sorted(children, key=str) if c in people]
        if len(members) < 2:
            continue
        result.extend(validate_sibling_group(members, thresholds))
        grouped.update(frozenset(pair) for pair in combinations([m.id for m in members], 2))

    seen: set = set()
    for rel in relationships:
        key = canonical_key(rel)
        if key in seen:
            continue
        seen.add(key)
        if key[0] == RelationshipType.SIBLING and frozenset(key[1:]) in grouped:
            continue
        result.extend(_check_chronology(rel, people, today, thresholds))

    return result
