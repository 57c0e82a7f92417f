from sqlalchemy import text

from app.db.commit_hooks import pending_after_commit, run_after_commit
from app.models.enums import NotificationType
from app.models.notification import Notification
from app.services.notification_service import NotificationService
from app.tests.factories import RecordingConnection, create_member, create_program


def test_hook_runs_only_after_commit(db):
    fired = []
    create_member(db, "alice")

    db.execute(text("SELECT 1"))
    run_after_commit(db, lambda: fired.append("pushed"))

    assert fired == []
    assert pending_after_commit(db) == 1

    db.commit()

    assert fired == ["pushed"]
    assert pending_after_commit(db) == 0


def test_hook_is_discarded_on_rollback(db):
    fired = []
    db.execute(text("SELECT 1"))
    run_after_commit(db, lambda: fired.append("pushed"))

    db.rollback()
    db.commit()

    assert fired == []
    assert pending_after_commit(db) == 0


def test_hook_runs_immediately_without_transaction(db):
    fired = []
    assert not db.in_transaction()

    run_after_commit(db, lambda: fired.append("pushed"))

    assert fired == ["pushed"]


def test_failing_hook_does_not_block_others(db):
    fired = []

    def boom():
        raise RuntimeError("stream exploded")

    db.execute(text("SELECT 1"))
    run_after_commit(db, boom)
    run_after_commit(db, lambda: fired.append("second"))

    db.commit()

    assert fired == ["second"]



def test_hook_from_rolled_back_savepoint_is_dropped(db):
    fired = []
    db.execute(text("SELECT 1"))
    run_after_commit(db, lambda: fired.append("outer"))

    savepoint = db.begin_nested()
    run_after_commit(db, lambda: fired.append("inner"))
    assert pending_after_commit(db) == 2
    savepoint.rollback()

    assert pending_after_commit(db) == 1

    db.commit()

    assert fired == ["outer"]
    assert pending_after_commit(db) == 0


def test_hook_from_released_savepoint_waits_for_outer_commit(db):
    fired = []
    db.execute(text("SELECT 1"))

    savepoint = db.begin_nested()
    run_after_commit(db, lambda: fired.append("inner"))
    savepoint.commit()

    assert fired == []
    assert pending_after_commit(db) == 1

    db.commit()

    assert fired == ["inner"]


def test_released_savepoint_hooks_drop_with_outer_rollback(db):
    fired = []
    db.execute(text("SELECT 1"))

    savepoint = db.begin_nested()
    run_after_commit(db, lambda: fired.append("inner"))
    savepoint.commit()
    db.rollback()

    assert fired == []
    assert pending_after_commit(db) == 0


def test_notification_in_rolled_back_savepoint_is_not_pushed(db, registry):
    alice = create_member(db, "alice")
    bob = create_member(db, "bob")
    program = create_program(db, created_by=alice.id)
    conn = RecordingConnection()
    registry.register(bob.id, conn)
    svc = NotificationService(registry)

    db.execute(text("SELECT 1"))
    savepoint = db.begin_nested()
    svc.notify(
        db,
        type=NotificationType.PROGRAM_DELETED,
        program_id=program.id,
        title="Program deleted",
        body=f"{program.name} was deleted because no members remain.",
        recipient_ids=[bob.id],
    )
    savepoint.rollback()
    db.commit()

    assert db.query(Notification).count() == 0
    assert conn.payloads == []
