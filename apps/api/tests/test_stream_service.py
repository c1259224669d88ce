"""
Stream service tests.

Tests cover:
- find / find_updates authorization gates
- Ordering, pagination and distinct counting
- Portal, team/ownership, hidden-scope and status visibility rules
- Hydration (attachments, parent / related names) and redaction
- Posting to a stream
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from app.db.enums import NoteTargetType, NoteType, UserType
from app.db.models import Case, Contact, Email, NoteTeam, NoteUser
from app.schemas.stream import NoteCreate, SearchParams
from app.services import stream_service
from app.services.stream_service import BadRequestError, ForbiddenError, NotFoundError
from conftest import (
    make_account,
    make_attachment,
    make_note,
    make_role,
    make_user,
    make_viewer,
)


AUDIT = {"audit": "yes"}


def _params(**kwargs) -> SearchParams:
    return stream_service.parse_search_params(**kwargs)


def _numbers(collection) -> list[int]:
    return [item.number for item in collection.items]


@pytest.fixture
def account(db):
    return make_account(db, name="Acme")


@pytest.fixture
def auditor(db, team_a):
    """Regular user in Team A with audit permission."""
    return make_user(db, teams=(team_a,), roles=(make_role(db, permissions=AUDIT),))


# =============================================================================
# Search parameters
# =============================================================================


def test_default_search_params():
    params = _params()
    assert params.offset == 0
    assert params.max_size == 20
    assert params.primary_filter is None


def test_max_size_above_limit_is_bad_request():
    with pytest.raises(BadRequestError):
        _params(max_size=100000)


def test_unknown_primary_filter_is_bad_request():
    with pytest.raises(BadRequestError):
        _params(primary_filter="everything")


def test_negative_offset_is_bad_request():
    with pytest.raises(BadRequestError):
        _params(offset=-1)


def test_after_with_offset_is_normalized_to_utc():
    plus_five = timezone(timedelta(hours=5))
    params = _params(after=datetime(2026, 3, 1, 17, 30, tzinfo=plus_five))

    assert params.after == datetime(2026, 3, 1, 12, 30)


def test_naive_after_is_kept():
    assert _params(after=datetime(2026, 3, 1, 12, 30)).after == datetime(2026, 3, 1, 12, 30)


# =============================================================================
# find
# =============================================================================


def test_find_returns_entries_newest_first_with_attachments(db, auditor, account):
    e1 = make_note(db, parent_type="Account", parent_id=account.id, post="<p>first</p>")
    make_attachment(db, parent_type="Note", parent_id=e1.id, name="a.pdf")
    make_note(db, note_type=NoteType.CREATE, parent_type="Account", parent_id=account.id)
    make_note(db, parent_type="Account", parent_id=account.id, post="<p>third</p>")

    result = stream_service.find(db, make_viewer(db, auditor), "Account", account.id, _params())

    assert result.total == 3
    assert _numbers(result) == [3, 2, 1]
    assert [a.name for a in result.items[2].attachments] == ["a.pdf"]
    assert result.items[1].attachments == []


def test_find_paginates_and_counts_all(db, auditor, account):
    for _ in range(5):
        make_note(db, parent_type="Account", parent_id=account.id)

    result = stream_service.find(
        db, make_viewer(db, auditor), "Account", account.id, _params(offset=1, max_size=2)
    )

    assert _numbers(result) == [4, 3]
    assert result.total == 5


def test_find_after_is_offset_independent(db, auditor, account):
    make_note(db, parent_type="Account", parent_id=account.id)
    viewer = make_viewer(db, auditor)
    hour_ago = datetime.now(timezone.utc) - timedelta(hours=1)
    same_moment = hour_ago.astimezone(timezone(timedelta(hours=5)))

    as_utc = stream_service.find(db, viewer, "Account", account.id, _params(after=hour_ago))
    as_offset = stream_service.find(
        db, viewer, "Account", account.id, _params(after=same_moment)
    )

    assert as_utc.total == 1
    assert as_offset.total == 1


def test_find_after_excludes_older_entries(db, auditor, account):
    make_note(db, parent_type="Account", parent_id=account.id)
    later = datetime.now(timezone.utc) + timedelta(hours=1)

    result = stream_service.find(
        db, make_viewer(db, auditor), "Account", account.id, _params(after=later)
    )

    assert result.total == 0


def test_find_posts_primary_filter(db, auditor, account):
    make_note(db, parent_type="Account", parent_id=account.id)
    make_note(db, note_type=NoteType.UPDATE, parent_type="Account", parent_id=account.id)

    result = stream_service.find(
        db, make_viewer(db, auditor), "Account", account.id, _params(primary_filter="posts")
    )

    assert [item.type for item in result.items] == ["Post"]


def test_find_includes_super_parent_entries(db, auditor, account):
    contact = Contact(id=uuid.uuid4(), first_name="Jane", last_name="Doe", account_id=account.id)
    db.add(contact)
    db.flush()
    make_note(
        db,
        parent_type="Contact",
        parent_id=contact.id,
        super_parent_type="Account",
        super_parent_id=account.id,
    )
    other = make_account(db, name="Other")
    make_note(db, parent_type="Account", parent_id=other.id)

    result = stream_service.find(db, make_viewer(db, auditor), "Account", account.id, _params())

    assert result.total == 1
    assert result.items[0].parent_name == "Jane Doe"


def test_find_rejects_user_scope(db, auditor):
    with pytest.raises(ForbiddenError):
        stream_service.find(db, make_viewer(db, auditor), "User", auditor.id, _params())


def test_find_missing_record(db, auditor):
    with pytest.raises(NotFoundError):
        stream_service.find(db, make_viewer(db, auditor), "Account", uuid.uuid4(), _params())


def test_find_requires_stream_access(db, account):
    user = make_user(db, roles=(make_role(db, data={"Account": {"read": "all", "stream": "no"}}),))

    with pytest.raises(ForbiddenError):
        stream_service.find(db, make_viewer(db, user), "Account", account.id, _params())


def test_find_rejects_scope_without_stream(db, auditor):
    email = Email(id=uuid.uuid4(), name="Hello")
    db.add(email)
    db.flush()

    with pytest.raises(ForbiddenError):
        stream_service.find(db, make_viewer(db, auditor), "Email", email.id, _params())


# =============================================================================
# find_updates
# =============================================================================


def test_find_updates_returns_only_updates(db, auditor, account):
    make_note(db, parent_type="Account", parent_id=account.id)
    make_note(db, note_type=NoteType.UPDATE, parent_type="Account", parent_id=account.id)
    make_note(db, note_type=NoteType.STATUS, parent_type="Account", parent_id=account.id)

    result = stream_service.find_updates(
        db, make_viewer(db, auditor), "Account", account.id, _params(primary_filter="posts")
    )

    assert [item.type for item in result.items] == ["Status", "Update"]
    assert result.total == 2


def test_find_updates_rejects_portal(db, portal_user, account):
    with pytest.raises(ForbiddenError):
        stream_service.find_updates(
            db, make_viewer(db, portal_user), "Account", account.id, _params()
        )


def test_find_updates_requires_audit(db, regular_user, account):
    with pytest.raises(ForbiddenError):
        stream_service.find_updates(
            db, make_viewer(db, regular_user), "Account", account.id, _params()
        )


def test_find_updates_missing_record(db, auditor):
    with pytest.raises(NotFoundError):
        stream_service.find_updates(
            db, make_viewer(db, auditor), "Account", uuid.uuid4(), _params()
        )


def test_find_updates_requires_read_access(db, account):
    user = make_user(
        db, roles=(make_role(db, data={"Account": {"read": "no"}}, permissions=AUDIT),)
    )

    with pytest.raises(ForbiddenError):
        stream_service.find_updates(db, make_viewer(db, user), "Account", account.id, _params())


def test_find_updates_on_user_requires_admin(db, auditor, admin_user):
    target = make_user(db)
    make_note(db, note_type=NoteType.UPDATE, parent_type="User", parent_id=target.id)

    with pytest.raises(ForbiddenError):
        stream_service.find_updates(db, make_viewer(db, auditor), "User", target.id, _params())

    result = stream_service.find_updates(
        db, make_viewer(db, admin_user), "User", target.id, _params()
    )
    assert result.total == 1


def test_find_updates_redacts_hidden_fields(db, account):
    role = make_role(
        db,
        field_data={"Account": {"industry": {"read": "no"}}},
        permissions=AUDIT,
    )
    user = make_user(db, roles=(role,))
    make_note(
        db,
        note_type=NoteType.UPDATE,
        parent_type="Account",
        parent_id=account.id,
        data={
            "fields": ["name", "industry"],
            "attributes": {
                "was": {"name": "Acme", "industry": "Retail"},
                "became": {"name": "Acme Corp", "industry": "Finance"},
            },
        },
    )

    result = stream_service.find_updates(
        db, make_viewer(db, user), "Account", account.id, _params()
    )

    assert result.items[0].data == {
        "fields": ["name"],
        "attributes": {"was": {"name": "Acme"}, "became": {"name": "Acme Corp"}},
    }


# =============================================================================
# Portal visibility
# =============================================================================


@pytest.fixture
def portal_with_email(db):
    role = make_role(
        db,
        data={"Account": {"read": "all", "stream": "all"}, "Email": {"read": "own"}},
        is_portal=True,
    )
    return make_user(db, UserType.PORTAL, roles=(role,))


def _email_note(db, account, recipients=()):
    email = Email(id=uuid.uuid4(), name="Re: order")
    db.add(email)
    db.flush()
    return make_note(
        db,
        note_type=NoteType.EMAIL_RECEIVED,
        parent_type="Account",
        parent_id=account.id,
        related_type="Email",
        related_id=email.id,
        user_ids=[r.id for r in recipients],
    )


def test_portal_never_sees_internal_entries(db, portal_user, account):
    make_note(db, parent_type="Account", parent_id=account.id, is_internal=True)
    visible = make_note(db, parent_type="Account", parent_id=account.id)

    result = stream_service.find(db, make_viewer(db, portal_user), "Account", account.id, _params())

    assert [item.id for item in result.items] == [visible.id]


def test_portal_hides_entries_related_to_restricted_types(db, portal_user, account):
    lead_id = uuid.uuid4()
    make_note(
        db,
        note_type=NoteType.CREATE_RELATED,
        parent_type="Account",
        parent_id=account.id,
        related_type="Lead",
        related_id=lead_id,
    )

    result = stream_service.find(db, make_viewer(db, portal_user), "Account", account.id, _params())

    assert result.total == 0


def test_portal_sees_emails_it_received(db, portal_with_email, account):
    received = _email_note(db, account, recipients=(portal_with_email,))
    _email_note(db, account)

    result = stream_service.find(
        db, make_viewer(db, portal_with_email), "Account", account.id, _params()
    )

    assert [item.id for item in result.items] == [received.id]
    assert result.items[0].related_name == "Re: order"


def test_portal_without_email_access_sees_no_emails(db, portal_user, account):
    _email_note(db, account, recipients=(portal_user,))

    result = stream_service.find(db, make_viewer(db, portal_user), "Account", account.id, _params())

    assert result.total == 0


# =============================================================================
# Team / ownership visibility
# =============================================================================


def _lead_note(db, account, teams=(), users=()):
    note = make_note(
        db,
        note_type=NoteType.CREATE_RELATED,
        parent_type="Account",
        parent_id=account.id,
        related_type="Lead",
        related_id=uuid.uuid4(),
    )
    for team in teams:
        db.add(NoteTeam(note_id=note.id, team_id=team.id))
    for user in users:
        db.add(NoteUser(note_id=note.id, user_id=user.id))
    db.flush()
    return note


def test_team_restricted_entries_need_shared_team_or_user_link(db, team_a, team_b, account):
    role = make_role(db, data={"Lead": {"read": "team"}})
    user = make_user(db, teams=(team_a,), roles=(role,))

    shared = _lead_note(db, account, teams=(team_a,))
    _lead_note(db, account, teams=(team_b,))
    linked = _lead_note(db, account, users=(user,))
    plain = make_note(db, parent_type="Account", parent_id=account.id)

    result = stream_service.find(db, make_viewer(db, user), "Account", account.id, _params())

    assert {item.id for item in result.items} == {shared.id, linked.id, plain.id}
    assert result.total == 3


def test_own_restricted_entries_need_user_link(db, team_a, account):
    role = make_role(db, data={"Lead": {"read": "own"}})
    user = make_user(db, teams=(team_a,), roles=(role,))

    _lead_note(db, account, teams=(team_a,))
    linked = _lead_note(db, account, users=(user,))

    result = stream_service.find(db, make_viewer(db, user), "Account", account.id, _params())

    assert [item.id for item in result.items] == [linked.id]


def test_joined_entries_are_counted_once(db, team_a, team_b, account):
    role = make_role(db, data={"Lead": {"read": "team"}})
    user = make_user(db, teams=(team_a, team_b), roles=(role,))
    note = _lead_note(db, account, teams=(team_a, team_b), users=(user,))

    result = stream_service.find(db, make_viewer(db, user), "Account", account.id, _params())

    assert [item.id for item in result.items] == [note.id]
    assert result.total == 1


# =============================================================================
# Hidden scopes and status visibility
# =============================================================================


def test_entries_on_hidden_parent_type_are_excluded(db, account):
    role = make_role(db, data={"Contact": {"read": "no"}})
    user = make_user(db, roles=(role,))
    contact = Contact(id=uuid.uuid4(), last_name="Doe", account_id=account.id)
    db.add(contact)
    db.flush()
    make_note(
        db,
        parent_type="Contact",
        parent_id=contact.id,
        super_parent_type="Account",
        super_parent_id=account.id,
    )
    visible = make_note(db, parent_type="Account", parent_id=account.id)

    result = stream_service.find(db, make_viewer(db, user), "Account", account.id, _params())

    assert [item.id for item in result.items] == [visible.id]


def test_email_entries_hidden_when_email_unreadable(db, account):
    role = make_role(db, data={"Email": {"read": "no"}})
    user = make_user(db, roles=(role,))
    _email_note(db, account)

    result = stream_service.find(db, make_viewer(db, user), "Account", account.id, _params())

    assert result.total == 0


def _case_with_status_change(db):
    case = Case(id=uuid.uuid4(), name="Broken widget")
    db.add(case)
    db.flush()
    make_note(db, note_type=NoteType.STATUS, parent_type="Case", parent_id=case.id)
    make_note(db, parent_type="Case", parent_id=case.id)
    return case


def test_status_entries_hidden_when_status_field_hidden(db):
    case = _case_with_status_change(db)
    role = make_role(db, field_data={"Case": {"status": {"read": "no"}}})
    user = make_user(db, roles=(role,))

    result = stream_service.find(db, make_viewer(db, user), "Case", case.id, _params())

    assert [item.type for item in result.items] == ["Post"]


def test_status_entries_shown_when_status_field_visible(db, regular_user):
    case = _case_with_status_change(db)

    result = stream_service.find(db, make_viewer(db, regular_user), "Case", case.id, _params())

    assert [item.type for item in result.items] == ["Post", "Status"]


# =============================================================================
# Posting
# =============================================================================


def test_create_post_sanitizes_and_sets_super_parent(db, regular_user, account):
    contact = Contact(id=uuid.uuid4(), last_name="Doe", account_id=account.id)
    db.add(contact)
    db.flush()

    note = stream_service.create_post(
        db,
        make_viewer(db, regular_user),
        "Contact",
        contact.id,
        NoteCreate(post="<p>Hi</p><script>alert(1)</script>"),
    )

    assert note.type == "Post"
    assert note.post == "<p>Hi</p>"
    assert note.super_parent_type == "Account"
    assert note.super_parent_id == account.id
    assert note.created_by_name == regular_user.display_name


def test_create_post_portal_cannot_post_internal(db, portal_user, account):
    note = stream_service.create_post(
        db,
        make_viewer(db, portal_user),
        "Account",
        account.id,
        NoteCreate(post="Question", is_internal=True),
    )

    assert note.is_internal is False


def test_create_post_requires_stream_access(db, account):
    user = make_user(db, roles=(make_role(db, data={"Account": {"read": "all", "stream": "no"}}),))

    with pytest.raises(ForbiddenError):
        stream_service.create_post(
            db, make_viewer(db, user), "Account", account.id, NoteCreate(post="Hi")
        )


def test_created_posts_get_increasing_numbers(db, regular_user, account):
    viewer = make_viewer(db, regular_user)
    first = stream_service.create_post(db, viewer, "Account", account.id, NoteCreate(post="a"))
    second = stream_service.create_post(db, viewer, "Account", account.id, NoteCreate(post="b"))

    assert second.number == first.number + 1


def test_team_targeted_note_is_stored_with_links(db, team_a, account):
    note = make_note(
        db,
        parent_type="Account",
        parent_id=account.id,
        target_type=NoteTargetType.TEAMS.value,
        team_ids=[team_a.id],
    )

    assert db.query(NoteTeam).filter(NoteTeam.note_id == note.id).count() == 1
