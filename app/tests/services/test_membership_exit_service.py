import uuid
from datetime import datetime, timezone

from app.models.notification import Notification, NotificationRecipient
from app.models.program import Program
from app.models.program_membership import ProgramMembership
from app.services.membership_exit_service import ExitOutcome, MembershipExitService
from app.services.notification_service import NotificationService
from app.tests.factories import RecordingConnection, add_membership, create_member, create_program, membership

SAME_DAY = datetime(2026, 2, 1, tzinfo=timezone.utc)


def _svc(registry=None):
    return MembershipExitService(NotificationService(registry))


def _recipients(db, notification_type):
    n = db.query(Notification).filter_by(type=notification_type).one()
    rows = db.query(NotificationRecipient).filter_by(notification_id=n.id).all()
    return n, {r.member_id for r in rows}


def _mark_left(db, program, member):
    row = membership(db, program, member)
    row.status = "left"
    db.commit()


def _active_admin_invariant_holds(db, program):
    db.expire_all()
    active = db.query(ProgramMembership).filter_by(program_id=program.id, status="active").all()
    return not active or any(m.role == "admin" for m in active)


def test_last_admin_leaving_promotes_remaining_member(db, registry):
    a = create_member(db, "alice")
    b = create_member(db, "bob")
    program = create_program(db, created_by=a.id)
    add_membership(db, program, a, "admin", joined_offset_days=0)
    add_membership(db, program, b, "member", joined_offset_days=1)
    bob_stream = RecordingConnection()
    registry.register(b.id, bob_stream)

    result = _svc(registry).resolve_exit(db, program_id=program.id, exiting_member_id=a.id, actor_member_id=a.id)
    db.commit()

    assert result.outcome == ExitOutcome.promoted
    assert result.program_deleted is False
    assert result.new_admin_member_id == b.id
    assert membership(db, program, b).role == "admin"

    _, role_changed_to = _recipients(db, "program.role_changed")
    assert role_changed_to == {b.id}

    transferred, transferred_to = _recipients(db, "program.admin_transferred")
    assert transferred_to == {b.id}
    assert transferred.actor_member_id == b.id

    assert bob_stream.types() == ["program.role_changed", "program.admin_transferred"]


def test_sole_member_exit_soft_deletes_program(db, registry):
    a = create_member(db, "alice")
    program = create_program(db, created_by=a.id)
    add_membership(db, program, a, "admin")
    alice_stream = RecordingConnection()
    registry.register(a.id, alice_stream)

    result = _svc(registry).resolve_exit(
        db,
        program_id=program.id,
        exiting_member_id=a.id,
        include_exiting_member_in_recipients=True,
    )
    db.commit()

    assert result.outcome == ExitOutcome.deleted
    assert result.program_deleted is True
    assert result.new_admin_member_id is None

    db.expire_all()
    assert db.get(Program, program.id).is_deleted is True
    assert db.query(Notification).filter_by(type="program.role_changed").count() == 0

    _, deleted_to = _recipients(db, "program.deleted")
    assert deleted_to == {a.id}
    assert alice_stream.types() == ["program.deleted"]


def test_sole_member_exit_without_exiting_recipient_sends_nothing(db):
    a = create_member(db, "alice")
    program = create_program(db)
    add_membership(db, program, a, "admin")

    result = _svc().resolve_exit(db, program_id=program.id, exiting_member_id=a.id)
    db.commit()

    assert result.program_deleted is True
    assert db.query(Notification).count() == 0


def test_soft_delete_clears_creator_when_requested(db):
    a = create_member(db, "alice")
    program = create_program(db, created_by=a.id)
    add_membership(db, program, a, "admin")

    _svc().resolve_exit(db, program_id=program.id, exiting_member_id=a.id, update_created_by=True)
    db.commit()

    db.expire_all()
    p = db.get(Program, program.id)
    assert p.is_deleted is True
    assert p.created_by is None


def test_oldest_remaining_member_is_promoted(db):
    a = create_member(db, "alice")
    b = create_member(db, "bob")
    c = create_member(db, "carol")
    program = create_program(db)
    add_membership(db, program, a, "admin", joined_offset_days=0)
    add_membership(db, program, b, "logger", joined_offset_days=5)
    add_membership(db, program, c, "member", joined_offset_days=2)

    result = _svc().resolve_exit(db, program_id=program.id, exiting_member_id=a.id)
    db.commit()

    assert result.new_admin_member_id == c.id
    assert membership(db, program, c).role == "admin"
    assert membership(db, program, b).role == "logger"

    _, transferred_to = _recipients(db, "program.admin_transferred")
    assert transferred_to == {b.id, c.id}


def test_promotion_tie_breaks_on_lowest_member_id(db):
    low = create_member(db, "zed", member_id=uuid.UUID(int=1))
    high = create_member(db, "amy", member_id=uuid.UUID(int=2))
    admin = create_member(db, "boss", member_id=uuid.UUID(int=3))
    program = create_program(db)
    add_membership(db, program, admin, "admin", joined_at=datetime(2026, 1, 1, tzinfo=timezone.utc))
    # insertion order deliberately favours the higher id
    add_membership(db, program, high, "member", joined_at=SAME_DAY)
    add_membership(db, program, low, "member", joined_at=SAME_DAY)

    result = _svc().resolve_exit(db, program_id=program.id, exiting_member_id=admin.id)
    db.commit()

    assert result.new_admin_member_id == low.id


def test_remaining_admin_means_no_promotion(db):
    a = create_member(db, "alice")
    b = create_member(db, "bob")
    c = create_member(db, "carol")
    program = create_program(db)
    add_membership(db, program, a, "admin", joined_offset_days=0)
    add_membership(db, program, b, "admin", joined_offset_days=1)
    add_membership(db, program, c, "member", joined_offset_days=2)

    result = _svc().resolve_exit(db, program_id=program.id, exiting_member_id=a.id)
    db.commit()

    assert result.outcome == ExitOutcome.unchanged
    assert membership(db, program, c).role == "member"
    assert db.query(Notification).count() == 0


def test_creator_exit_leaves_surviving_program_unattributed(db):
    a = create_member(db, "alice")
    b = create_member(db, "bob")
    program = create_program(db, created_by=a.id)
    add_membership(db, program, a, "admin", joined_offset_days=0)
    add_membership(db, program, b, "admin", joined_offset_days=1)

    _svc().resolve_exit(db, program_id=program.id, exiting_member_id=a.id, update_created_by=True)
    db.commit()

    db.expire_all()
    p = db.get(Program, program.id)
    assert p.is_deleted is False
    assert p.created_by is None


def test_creator_kept_when_not_requested(db):
    a = create_member(db, "alice")
    b = create_member(db, "bob")
    program = create_program(db, created_by=a.id)
    add_membership(db, program, a, "admin", joined_offset_days=0)
    add_membership(db, program, b, "admin", joined_offset_days=1)

    _svc().resolve_exit(db, program_id=program.id, exiting_member_id=a.id)
    db.commit()

    db.expire_all()
    assert db.get(Program, program.id).created_by == a.id


def test_repeated_exit_is_noop_after_delete(db):
    a = create_member(db, "alice")
    program = create_program(db)
    add_membership(db, program, a, "admin")
    svc = _svc()

    first = svc.resolve_exit(db, program_id=program.id, exiting_member_id=a.id, include_exiting_member_in_recipients=True)
    db.commit()
    second = svc.resolve_exit(db, program_id=program.id, exiting_member_id=a.id, include_exiting_member_in_recipients=True)
    db.commit()

    assert first.program_deleted is True
    assert second.outcome == ExitOutcome.unchanged
    assert second.program_deleted is False
    assert db.query(Notification).count() == 1


def test_repeated_exit_is_noop_after_promotion(db):
    a = create_member(db, "alice")
    b = create_member(db, "bob")
    program = create_program(db)
    add_membership(db, program, a, "admin", joined_offset_days=0)
    add_membership(db, program, b, "member", joined_offset_days=1)
    svc = _svc()

    _mark_left(db, program, a)
    svc.resolve_exit(db, program_id=program.id, exiting_member_id=a.id)
    db.commit()
    again = svc.resolve_exit(db, program_id=program.id, exiting_member_id=a.id)
    db.commit()

    assert again.outcome == ExitOutcome.unchanged
    assert db.query(Notification).filter_by(type="program.role_changed").count() == 1


def test_exit_of_non_member_is_safe(db):
    a = create_member(db, "alice")
    stranger = create_member(db, "stranger")
    program = create_program(db)
    add_membership(db, program, a, "admin")

    result = _svc().resolve_exit(db, program_id=program.id, exiting_member_id=stranger.id)
    db.commit()

    assert result.outcome == ExitOutcome.unchanged
    assert membership(db, program, a).role == "admin"
    assert db.query(Notification).count() == 0


def test_missing_program_is_noop(db):
    a = create_member(db, "alice")

    result = _svc().resolve_exit(db, program_id=uuid.uuid4(), exiting_member_id=a.id)

    assert result.outcome == ExitOutcome.unchanged
    assert result.program_deleted is False


def test_admin_invariant_holds_across_exit_sequence(db):
    members = [create_member(db, f"m{i}") for i in range(5)]
    program = create_program(db)
    roles = ["admin", "logger", "member", "admin", "member"]
    for i, (m, role) in enumerate(zip(members, roles)):
        add_membership(db, program, m, role, joined_offset_days=i)
    svc = _svc()

    for m in [members[0], members[3], members[1], members[4]]:
        _mark_left(db, program, m)
        svc.resolve_exit(db, program_id=program.id, exiting_member_id=m.id)
        db.commit()
        assert _active_admin_invariant_holds(db, program)

    assert membership(db, program, members[2]).role == "admin"

    _mark_left(db, program, members[2])
    result = svc.resolve_exit(db, program_id=program.id, exiting_member_id=members[2].id)
    db.commit()
    assert result.program_deleted is True
