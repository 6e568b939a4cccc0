"""NetworkX graph building and ancestry traversal."""

from collections.abc import Iterable, Iterator
from itertools import islice
from typing import Any, Literal

import networkx as nx

from models import GenerationEntry, Person, Relationship, RelationshipType


def build_relationship_graph(
    relationships: Iterable[Relationship], persons: Iterable[Person] = ()
) -> nx.MultiDiGraph:
    """
    Build a directed multigraph of every relationship row.

    Nodes are person ids (with `person_name`, `birth_date` and `death_date`
    attributes when the person is supplied); each row becomes one edge keyed
    by its relationship id.
    """
    G = nx.MultiDiGraph()

    # Note: use 'person_name' instead of 'name' to keep the attribute unambiguous
    for person in persons:
        G.add_node(
            person.id,
            person_name=person.display_name,
            birth_date=person.birth_date,
            death_date=person.death_date,
        )

    for rel in relationships:
        G.add_edge(
            rel.person1_id,
            rel.person2_id,
            key=rel.id,
            relationship_type=rel.relationship_type,
            relationship=rel,
        )

    return G


def build_lineage_graph(relationships: Iterable[Relationship]) -> nx.DiGraph:
    """
    Build the parent → child digraph.

    A `parent` row (p1, p2) gives the edge p1 → p2 and a `child` row (p1, p2)
    gives p2 → p1, so a parent/child pair stored in both directions collapses
    into a single edge. All other relationship types are ignored.
    """
    G = nx.DiGraph()
    for rel in relationships:
        if rel.relationship_type == RelationshipType.PARENT:
            G.add_edge(rel.person1_id, rel.person2_id)
        elif rel.relationship_type == RelationshipType.CHILD:
            G.add_edge(rel.person2_id, rel.person1_id)
    return G


def _iter_generations(
    G: nx.DiGraph, person_id: int, max_generations: int | None
) -> Iterator[GenerationEntry]:
    if person_id not in G:
        return
    # bfs_layers never revisits a node, which also guards against cycles in legacy data
    layers = islice(nx.bfs_layers(G, [person_id]), 1, None)
    for generation, layer in enumerate(layers, start=1):
        if max_generations is not None and generation > max_generations:
            return
        for node in sorted(layer, key=str):
            yield GenerationEntry(person_id=node, generation=generation)


def iter_ancestors(
    person_id: int,
    relationships: Iterable[Relationship],
    max_generations: int | None = None,
) -> Iterator[GenerationEntry]:
    """
    Lazily yield the ancestors of `person_id`, nearest generation first.

    Parents are generation 1, grandparents generation 2, and so on. A person
    reachable along several lines (a common ancestor) is yielded once, at its
    smallest generation.
    """
    lineage = build_lineage_graph(relationships)
    return _iter_generations(lineage.reverse(copy=False), person_id, max_generations)


def iter_descendants(
    person_id: int,
    relationships: Iterable[Relationship],
    max_generations: int | None = None,
) -> Iterator[GenerationEntry]:
    """Lazily yield the descendants of `person_id`, children first."""
    lineage = build_lineage_graph(relationships)
    return _iter_generations(lineage, person_id, max_generations)


def get_ancestors(
    person_id: int,
    relationships: Iterable[Relationship],
    max_generations: int | None = None,
) -> list[GenerationEntry]:
    return list(iter_ancestors(person_id, relationships, max_generations))


def get_descendants(
    person_id: int,
    relationships: Iterable[Relationship],
    max_generations: int | None = None,
) -> list[GenerationEntry]:
    return list(iter_descendants(person_id, relationships, max_generations))


def build_pedigree(
    person_id: int,
    relationships: Iterable[Relationship],
    generations: int = 3,
    direction: Literal["ancestors", "descendants"] = "ancestors",
) -> dict[str, Any]:
    """
    Build a nested pedigree (or descendant chart) rooted at `person_id`.

    Returns {"person_id": id, "parents": [...]} for ancestors, or
    {"person_id": id, "children": [...]} for descendants, `generations` levels deep.
    """
    lineage = build_lineage_graph(relationships)
    if direction == "ancestors":
        key, neighbors = "parents", lineage.predecessors
    else:
        key, neighbors = "children", lineage.successors

    def build(node: int, depth: int, path: frozenset) -> dict[str, Any]:
        entry: dict[str, Any] = {"person_id": node, key: []}
        if depth >= generations or node not in lineage:
            return entry
        for other in sorted(neighbors(node), key=str):
            if other in path:
                continue
            entry[key].append(build(other, depth + 1, path | {other}))
        return entry

    return build(person_id, 0, frozenset({person_id}))


def find_relationship_path(
    person1_id: int,
    person2_id: int,
    relationships: Iterable[Relationship],
    max_depth: int = 5,
) -> list[Relationship]:
    """
    Shortest chain of relationship rows linking two persons, following edges in
    either direction. Returns an empty list when the persons are the same, not
    connected, or further apart than `max_depth` edges.
    """
    if person1_id == person2_id:
        return []

    G = build_relationship_graph(relationships)
    if person1_id not in G or person2_id not in G:
        return []

    undirected = G.to_undirected(as_view=True)
    paths = nx.single_source_shortest_path(undirected, person1_id, cutoff=max_depth)
    node_path = paths.get(person2_id)
    if node_path is None:
        return []

    chain: list[Relationship] = []
    for u, v in zip(node_path, node_path[1:]):
        # Prefer the row stored in the walking direction when both directions exist
        edge_data = G.get_edge_data(u, v) or G.get_edge_data(v, u)
        first_key = sorted(edge_data, key=str)[0]
        chain.append(edge_data[first_key]["relationship"])
    return chain
