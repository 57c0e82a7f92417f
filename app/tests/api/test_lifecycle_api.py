import uuid

from app.models.member import Member
from app.models.program import Program
from app.tests.factories import RecordingConnection, add_membership, auth_headers, create_member, create_program, membership


def test_leave_program_promotes_and_returns_result(client, db, registry):
    a = create_member(db, "alice")
    b = create_member(db, "bob")
    program = create_program(db)
    add_membership(db, program, a, "admin", joined_offset_days=0)
    add_membership(db, program, b, "member", joined_offset_days=1)
    bob_stream = RecordingConnection()
    registry.register(b.id, bob_stream)

    r = client.post(f"/api/v1/programs/{program.id}/leave", headers=auth_headers(a))

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["result"]["outcome"] == "promoted"
    assert body["result"]["program_deleted"] is False
    assert body["result"]["new_admin_member_id"] == str(b.id)
    assert bob_stream.types() == [
        "program.role_changed",
        "program.admin_transferred",
        "program.member_left",
    ]
    assert membership(db, program, a).status == "left"


def test_leave_program_requires_auth(client, db):
    program = create_program(db)
    r = client.post(f"/api/v1/programs/{program.id}/leave")
    assert r.status_code in (401, 403)


def test_leave_program_conflict_when_not_member(client, db):
    a = create_member(db, "alice")
    b = create_member(db, "bob")
    program = create_program(db)
    add_membership(db, program, a, "admin")

    r = client.post(f"/api/v1/programs/{program.id}/leave", headers=auth_headers(b))

    assert r.status_code == 409


def test_leave_unknown_program_is_404(client, db):
    a = create_member(db, "alice")
    r = client.post(f"/api/v1/programs/{uuid.uuid4()}/leave", headers=auth_headers(a))
    assert r.status_code == 404


def test_remove_member_forbidden_for_non_admin(client, db):
    a = create_member(db, "alice")
    b = create_member(db, "bob")
    c = create_member(db, "carol")
    program = create_program(db)
    add_membership(db, program, a, "admin", joined_offset_days=0)
    add_membership(db, program, b, "member", joined_offset_days=1)
    add_membership(db, program, c, "member", joined_offset_days=2)

    r = client.delete(f"/api/v1/programs/{program.id}/members/{c.id}", headers=auth_headers(b))

    assert r.status_code == 403
    assert membership(db, program, c).status == "active"


def test_remove_member_by_program_admin(client, db):
    a = create_member(db, "alice")
    b = create_member(db, "bob")
    program = create_program(db)
    add_membership(db, program, a, "admin", joined_offset_days=0)
    add_membership(db, program, b, "member", joined_offset_days=1)

    r = client.delete(f"/api/v1/programs/{program.id}/members/{b.id}", headers=auth_headers(a))

    assert r.status_code == 200, r.text
    assert r.json()["result"]["outcome"] == "unchanged"
    assert membership(db, program, b).status == "removed"


def test_delete_account(client, db):
    m = create_member(db, "mallory")
    program = create_program(db, created_by=m.id)
    add_membership(db, program, m, "admin")
    m_id, p_id = m.id, program.id

    r = client.delete("/api/v1/auth/account", headers=auth_headers(m))

    assert r.status_code == 200, r.text
    assert r.json()["programs"][0]["program_deleted"] is True
    db.expire_all()
    assert db.get(Member, m_id) is None
    assert db.get(Program, p_id).is_deleted is True


def test_delete_account_blocked_for_global_admin(client, db):
    root = create_member(db, "root", global_role="global_admin")

    r = client.delete("/api/v1/auth/account", headers=auth_headers(root))

    assert r.status_code == 403


def test_admin_delete_member(client, db):
    root = create_member(db, "root", global_role="global_admin")
    m = create_member(db, "mallory")
    m_id = m.id

    r = client.delete(f"/api/v1/members/{m_id}", headers=auth_headers(root))

    assert r.status_code == 200, r.text
    db.expire_all()
    assert db.get(Member, m_id) is None


def test_admin_delete_member_forbidden_for_standard(client, db):
    a = create_member(db, "alice")
    m = create_member(db, "mallory")

    r = client.delete(f"/api/v1/members/{m.id}", headers=auth_headers(a))

    assert r.status_code == 403


def test_admin_delete_unknown_member_is_404(client, db):
    root = create_member(db, "root", global_role="global_admin")
    r = client.delete(f"/api/v1/members/{uuid.uuid4()}", headers=auth_headers(root))
    assert r.status_code == 404


def test_invalid_token_is_rejected(client, db):
    program = create_program(db)
    r = client.post(
        f"/api/v1/programs/{program.id}/leave",
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert r.status_code == 401
