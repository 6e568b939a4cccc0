"""Relationship type semantics: qualifier compatibility, inverses and edge identity."""

from models import Check, Relationship, RelationshipQualifier, RelationshipType, ValidationResult

T = RelationshipType
Q = RelationshipQualifier

DISALLOWED_QUALIFIERS: dict[RelationshipType, frozenset[RelationshipQualifier]] = {
    T.SPOUSE: frozenset({Q.BIOLOGICAL, Q.ADOPTIVE, Q.FOSTER}),
    T.PARENT: frozenset({Q.IN_LAW}),
    T.CHILD: frozenset({Q.IN_LAW}),
}

INVERSE_TYPES: dict[RelationshipType, RelationshipType] = {
    T.PARENT: T.CHILD,
    T.CHILD: T.PARENT,
    T.GRANDPARENT: T.GRANDCHILD,
    T.GRANDCHILD: T.GRANDPARENT,
    T.AUNT_UNCLE: T.NIECE_NEPHEW,
    T.NIECE_NEPHEW: T.AUNT_UNCLE,
    T.SPOUSE: T.SPOUSE,
    T.SIBLING: T.SIBLING,
    T.COUSIN: T.COUSIN,
}

SYMMETRIC_TYPES = frozenset(t for t, inverse in INVERSE_TYPES.items() if t == inverse)

# Types whose canonical form reads "person1 is the elder side of person2"
CANONICAL_DIRECTIONAL = frozenset({T.PARENT, T.GRANDPARENT, T.AUNT_UNCLE})

# Canonical types that place person1 in person2's direct ancestry
DESCENT_TYPES = frozenset({T.PARENT, T.GRANDPARENT})

EdgeKey = tuple[RelationshipType, int, int]


def validate_type_qualifier(
    relationship_type: RelationshipType,
    relationship_qualifier: RelationshipQualifier | None,
) -> ValidationResult:
    result = ValidationResult()
    if relationship_qualifier is None:
        return result
    if relationship_qualifier in DISALLOWED_QUALIFIERS.get(relationship_type, ()):
        result.error(
            Check.TYPE_QUALIFIER,
            f"'{relationship_qualifier.value}' is not a valid qualifier for "
            f"{relationship_type.value} relationships",
            "relationship_qualifier",
        )
    return result


def inverse_type(relationship_type: RelationshipType) -> RelationshipType:
    return INVERSE_TYPES[relationship_type]


def is_symmetric(relationship_type: RelationshipType) -> bool:
    return relationship_type in SYMMETRIC_TYPES


def canonical_key(relationship: Relationship) -> EdgeKey:
    """
    Direction-normalized identity of a relationship row.

    `child(B, A)` folds into `parent(A, B)`; symmetric types order the pair,
    so `spouse(A, B)` and `spouse(B, A)` share one key.
    """
    rtype, p1, p2 = relationship.relationship_type, relationship.person1_id, relationship.person2_id
    if rtype in SYMMETRIC_TYPES:
        return (rtype, min(p1, p2), max(p1, p2))
    if rtype in CANONICAL_DIRECTIONAL:
        return (rtype, p1, p2)
    return (inverse_type(rtype), p2, p1)


def is_descent(key: EdgeKey) -> bool:
    return key[0] in DESCENT_TYPES


def inverse_of(relationship: Relationship) -> Relationship:
    """The mirror row: endpoints swapped, inverse type, same qualifier, dates and notes."""
    return Relationship(
        person1_id=relationship.person2_id,
        person2_id=relationship.person1_id,
        relationship_type=inverse_type(relationship.relationship_type),
        relationship_qualifier=relationship.relationship_qualifier,
        start_date=relationship.start_date,
        end_date=relationship.end_date,
        notes=relationship.notes,
    )
