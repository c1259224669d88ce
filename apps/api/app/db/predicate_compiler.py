"""Compile predicate trees (app.core.predicates) into SQLAlchemy statements over notes.

Field names are Note attributes ("parent_type") or alias-qualified columns
of the joined link tables ("teams_middle.team_id").
"""

import logging

from sqlalchemy import Select, and_, false, func, or_, select, true
from sqlalchemy.orm import aliased

from app.core.predicates import And, FeedQuery, Leaf, Op, Or, Predicate
from app.db.models import Note, NoteTeam, NoteUser

logger = logging.getLogger(__name__)

teams_middle = aliased(NoteTeam, name="teams_middle")
users_middle = aliased(NoteUser, name="users_middle")
note_user = aliased(NoteUser, name="note_user")

ALIASES = {
    "teams_middle": teams_middle,
    "users_middle": users_middle,
    "note_user": note_user,
}

# Join name -> (alias, ON clause)
JOINS = {
    "teams": (teams_middle, teams_middle.note_id == Note.id),
    "users": (users_middle, users_middle.note_id == Note.id),
    "note_user": (note_user, and_(note_user.note_id == Note.id, Note.related_type == "Email")),
}


def resolve_column(field: str):
    """Map a predicate field name to a column expression."""
    if "." in field:
        alias_name, column_name = field.split(".", 1)
        alias = ALIASES.get(alias_name)
        if alias is None or not hasattr(alias, column_name):
            raise ValueError(f"Unknown predicate field: {field}")
        return getattr(alias, column_name)

    column = Note.__table__.columns.get(field)
    if column is None:
        raise ValueError(f"Unknown predicate field: {field}")
    return getattr(Note, field)


def compile_predicate(predicate: Predicate):
    """Translate one predicate node into a SQL expression."""
    if isinstance(predicate, And):
        if not predicate.items:
            return true()
        return and_(*(compile_predicate(item) for item in predicate.items))
    if isinstance(predicate, Or):
        if not predicate.items:
            return false()
        return or_(*(compile_predicate(item) for item in predicate.items))
    if isinstance(predicate, Leaf):
        return _compile_leaf(predicate)
    raise ValueError(f"Unsupported predicate node: {predicate!r}")


def _compile_leaf(leaf: Leaf):
    column = resolve_column(leaf.field)

    if leaf.op == Op.EQ:
        return column.is_(None) if leaf.value is None else column == leaf.value
    if leaf.op == Op.NE:
        return column.is_not(None) if leaf.value is None else column != leaf.value
    if leaf.op == Op.GT:
        return column > leaf.value
    if leaf.op == Op.IN:
        values = list(leaf.value or ())
        return column.in_(values) if values else false()
    if leaf.op == Op.NOT_IN:
        values = list(leaf.value or ())
        # NOT IN () matches every non-null value
        return column.not_in(values) if values else column.is_not(None)
    if leaf.op == Op.IS_NULL:
        return column.is_(None)
    if leaf.op == Op.NOT_NULL:
        return column.is_not(None)
    raise ValueError(f"Unsupported operator: {leaf.op}")


def _matching_ids(query: FeedQuery) -> Select:
    """Ids of notes satisfying the query (deduplicated when joins multiply rows)."""
    stmt = select(Note.id)
    for join in query.joins:
        if join.name not in JOINS:
            raise ValueError(f"Unknown predicate join: {join.name}")
        alias, on_clause = JOINS[join.name]
        stmt = stmt.outerjoin(alias, on_clause)
    stmt = stmt.where(compile_predicate(query.where))
    if query.distinct or query.joins:
        stmt = stmt.distinct()
    return stmt


def build_select(query: FeedQuery, offset: int = 0, limit: int | None = None) -> Select:
    """Page of notes matching the query, newest (highest number) first."""
    logger.debug("Stream query: %s", query.to_dict())
    ids = _matching_ids(query).subquery()
    stmt = (
        select(Note)
        .where(Note.id.in_(select(ids.c.id)))
        .order_by(Note.number.desc())
        .offset(offset)
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    return stmt


def build_count(query: FeedQuery) -> Select:
    """Count of distinct notes matching the query, ignoring pagination."""
    ids = _matching_ids(query).subquery()
    return select(func.count()).select_from(ids)
