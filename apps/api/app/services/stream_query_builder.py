"""Stream query assembly.

The base query selects entries attached to the target record. Access
clauses are then layered on in a fixed order:

1. portal access (portal viewers)
2. team/ownership access (non-portal viewers with team/own restricted types)
3. ignored scopes (types the viewer cannot read)
4. status visibility (target's status field hidden from the viewer)

Each clause is a pure function (FeedQuery, context) -> FeedQuery that
returns the query unchanged when it does not apply.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable
from uuid import UUID

from app.core.predicates import (
    FeedQuery,
    Join,
    all_of,
    any_of,
    eq,
    gt,
    in_,
    is_null,
    ne,
    not_in,
    not_null,
)
from app.core.scopes import get_status_field
from app.db.enums import (
    NOTE_TYPES_EMAIL,
    NOTE_TYPES_UPDATES,
    AclAction,
    EntityType,
    NoteType,
    StreamPrimaryFilter,
)
from app.schemas.auth import Viewer
from app.services import acl_service
from app.services.stream_visibility_service import VisibilityScopeRules, get_visibility_rules


@dataclass(frozen=True)
class FeedQueryContext:
    """Everything the clause steps need, resolved once per query."""
    viewer: Viewer
    scope: str
    record_id: UUID
    rules: VisibilityScopeRules
    email_readable: bool = False
    status_field_hidden: bool = False


def build_context(viewer: Viewer, scope: str, record_id: UUID) -> FeedQueryContext:
    status_field = get_status_field(scope)
    return FeedQueryContext(
        viewer=viewer,
        scope=scope,
        record_id=record_id,
        rules=get_visibility_rules(viewer),
        email_readable=acl_service.check_scope(viewer, EntityType.EMAIL.value, AclAction.READ),
        status_field_hidden=bool(status_field)
        and not acl_service.check_field(viewer, scope, status_field),
    )


# =============================================================================
# Base Query
# =============================================================================

def build_base_query(
    ctx: FeedQueryContext,
    primary_filter: str | None = None,
    after: datetime | None = None,
) -> FeedQuery:
    """Entries attached to the target (portal: directly and not internal)."""
    on_target = all_of(eq("parent_type", ctx.scope), eq("parent_id", ctx.record_id))

    if ctx.viewer.is_portal:
        query = FeedQuery().with_condition(
            all_of(on_target, eq("is_internal", False))
        )
    else:
        on_super_parent = all_of(
            eq("super_parent_type", ctx.scope),
            eq("super_parent_id", ctx.record_id),
        )
        query = FeedQuery().with_condition(any_of(on_target, on_super_parent))

    if primary_filter == StreamPrimaryFilter.POSTS.value:
        query = query.with_condition(eq("type", NoteType.POST.value))
    elif primary_filter == StreamPrimaryFilter.UPDATES.value:
        query = query.with_condition(in_("type", sorted(NOTE_TYPES_UPDATES)))

    if after is not None:
        query = query.with_condition(gt("created_at", after))

    return query


# =============================================================================
# Clauses
# =============================================================================

def apply_portal_access(query: FeedQuery, ctx: FeedQueryContext) -> FeedQuery:
    """Portal: related records must be fully readable, or an Email the viewer received."""
    if not ctx.viewer.is_portal:
        return query

    branches = [
        is_null("related_id"),
        all_of(not_null("related_id"), not_in("related_type", ctx.rules.not_all)),
    ]

    if ctx.email_readable:
        query = query.with_join(Join("note_user"))
        branches.append(
            all_of(
                not_null("related_id"),
                eq("related_type", EntityType.EMAIL.value),
                eq("note_user.user_id", ctx.viewer.user_id),
            )
        )

    return query.with_condition(any_of(*branches))


def apply_team_access(query: FeedQuery, ctx: FeedQueryContext) -> FeedQuery:
    """Entries about team/own restricted types need team or user linkage to the viewer."""
    if ctx.viewer.is_portal:
        return query

    rules = ctx.rules
    if not rules.only_team and not rules.only_own:
        return query

    query = query.with_distinct().with_join(Join("teams")).with_join(Join("users"))

    # Assumes related and parent linkage are not both relevant: entries with a
    # related record are judged by it alone.
    unrestricted = any_of(
        all_of(
            not_null("related_id"),
            not_in("related_type", rules.restricted),
        ),
        all_of(
            is_null("related_id"),
            eq("super_parent_id", ctx.record_id),
            eq("super_parent_type", ctx.scope),
            not_null("parent_id"),
            not_in("parent_type", rules.restricted),
        ),
        all_of(
            is_null("related_id"),
            eq("parent_type", ctx.scope),
            eq("parent_id", ctx.record_id),
        ),
    )

    team_restricted = all_of(
        _of_types(rules.only_team),
        any_of(
            in_("teams_middle.team_id", sorted(ctx.viewer.team_ids, key=str)),
            eq("users_middle.user_id", ctx.viewer.user_id),
        ),
    )

    own_restricted = all_of(
        _of_types(rules.only_own),
        eq("users_middle.user_id", ctx.viewer.user_id),
    )

    return query.with_condition(any_of(unrestricted, team_restricted, own_restricted))


def _of_types(types: tuple[str, ...]):
    """Entry is about one of the types (related record if any, else parent)."""
    return any_of(
        all_of(not_null("related_id"), in_("related_type", types)),
        all_of(is_null("related_id"), in_("parent_type", types)),
    )


def apply_ignore_scopes(query: FeedQuery, ctx: FeedQueryContext) -> FeedQuery:
    """Hide entries related to, or posted on, records the viewer cannot read."""
    rules = ctx.rules

    if rules.ignore_related:
        query = query.with_condition(
            any_of(is_null("related_type"), not_in("related_type", rules.ignore_related))
        )

    if rules.ignore_parent:
        query = query.with_condition(
            any_of(is_null("parent_type"), not_in("parent_type", rules.ignore_parent))
        )

    if EntityType.EMAIL.value in rules.ignore_related:
        query = query.with_condition(not_in("type", sorted(NOTE_TYPES_EMAIL)))

    return query


def apply_status_ignore(query: FeedQuery, ctx: FeedQueryContext) -> FeedQuery:
    """Hide status changes when the viewer cannot read the target's status field."""
    if not ctx.status_field_hidden:
        return query
    return query.with_condition(ne("type", NoteType.STATUS.value))


CLAUSES: tuple[Callable[[FeedQuery, FeedQueryContext], FeedQuery], ...] = (
    apply_portal_access,
    apply_team_access,
    apply_ignore_scopes,
    apply_status_ignore,
)


def assemble_feed_query(base: FeedQuery, ctx: FeedQueryContext) -> FeedQuery:
    """Layer every access clause onto the base query, in order."""
    query = base
    for clause in CLAUSES:
        query = clause(query, ctx)
    return query
