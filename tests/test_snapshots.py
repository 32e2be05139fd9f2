"""
Snapshot Tests - log attività e ripristino dai backup
"""
from datetime import datetime, timedelta, timezone

import pytest

from fastclub.club.snapshots import AdminActivityService, parse_restorable_table
from fastclub.database import TableName
from fastclub.exceptions import PermissionDeniedError, RecordNotFoundError, ValidationError
from fakes import OWNER_ID


def iso(hours_ago: float) -> str:
    return (datetime.now(timezone.utc) - timedelta(hours=hours_ago)).isoformat()


@pytest.fixture
def member_row(db):
    return db.seed("members", {
        "id": "m1", "user_id": OWNER_ID, "first_name": "Anna", "last_name": "Verdi",
        "email": "anna.nuova@example.it", "status": "inactive", "current_position": "Tesoriere",
        "notes": "modificata per errore",
    })[0]


@pytest.fixture
def member_snapshot(db, member_row):
    data = {
        "id": "m1", "user_id": OWNER_ID, "first_name": "Anna", "last_name": "Verdi",
        "email": "anna@example.it", "status": "active", "current_position": None,
        "membership_start_date": "2020-07-01", "notes": None,
    }
    return db.seed("data_snapshots", {
        "id": "s1", "club_owner_id": OWNER_ID, "table_name": "members",
        "record_id": "m1", "snapshot_data": data, "created_at": iso(2),
    })[0]


class TestParseRestorableTable:

    def test_known_table(self):
        assert parse_restorable_table("members") == TableName.members

    def test_unknown_table(self):
        with pytest.raises(ValidationError):
            parse_restorable_table("users; drop table members")

    def test_not_restorable(self):
        """Tabella esistente ma fuori dall'insieme ripristinabile"""
        with pytest.raises(ValidationError):
            parse_restorable_table("section_requests")


class TestAdminActivityService:

    async def test_admin_only(self, member_session):
        with pytest.raises(PermissionDeniedError):
            AdminActivityService(member_session)

    async def test_restore_members_replaces_row(self, db, admin_session, member_snapshot):
        """Il record viene sovrascritto con snapshot_data"""
        response = await AdminActivityService(admin_session).restore("s1")

        row = next(r for r in db.rows("members") if r["id"] == "m1")
        for field, value in member_snapshot["snapshot_data"].items():
            assert row[field] == value
        assert response.record_id == "m1"
        assert response.table_name == "members"
        assert response.table_label == "Soci"
        assert "email" in response.restored_fields

    async def test_restore_unknown_snapshot(self, admin_session):
        with pytest.raises(RecordNotFoundError):
            await AdminActivityService(admin_session).restore("missing")

    async def test_restore_other_club_snapshot(self, db, admin_session, member_row):
        db.seed("data_snapshots", {
            "id": "s9", "club_owner_id": "another-club", "table_name": "members",
            "record_id": "m1", "snapshot_data": {}, "created_at": iso(1),
        })
        with pytest.raises(RecordNotFoundError):
            await AdminActivityService(admin_session).restore("s9")

    async def test_restore_rejects_unexpected_columns(self, db, admin_session, member_row):
        db.seed("data_snapshots", {
            "id": "s2", "club_owner_id": OWNER_ID, "table_name": "members", "record_id": "m1",
            "snapshot_data": {"id": "m1", "user_id": OWNER_ID, "first_name": "Anna", "last_name": "Verdi",
                              "email": "a@b.it", "status": "active", "is_admin": True},
            "created_at": iso(1),
        })
        db.reset_calls()

        with pytest.raises(ValidationError):
            await AdminActivityService(admin_session).restore("s2")
        assert ("members", "update") not in db.calls

    async def test_restore_rejects_mismatched_id(self, db, admin_session, member_row):
        db.seed("data_snapshots", {
            "id": "s3", "club_owner_id": OWNER_ID, "table_name": "members", "record_id": "m1",
            "snapshot_data": {"id": "m2", "user_id": OWNER_ID, "first_name": "Anna", "last_name": "Verdi",
                              "email": "a@b.it", "status": "active"},
            "created_at": iso(1),
        })
        with pytest.raises(ValidationError):
            await AdminActivityService(admin_session).restore("s3")

    async def test_restore_non_restorable_table(self, db, admin_session):
        db.seed("data_snapshots", {
            "id": "s4", "club_owner_id": OWNER_ID, "table_name": "profiles", "record_id": OWNER_ID,
            "snapshot_data": {"role": "admin"}, "created_at": iso(1),
        })
        with pytest.raises(ValidationError):
            await AdminActivityService(admin_session).restore("s4")

    async def test_list_snapshots_window(self, db, admin_session, member_snapshot):
        db.seed("data_snapshots", {
            "id": "old", "club_owner_id": OWNER_ID, "table_name": "members", "record_id": "m1",
            "snapshot_data": {}, "created_at": iso(48),
        })
        snapshots = await AdminActivityService(admin_session).list_snapshots()
        assert [s.id for s in snapshots] == ["s1"]

    async def test_list_activities_newest_first(self, db, admin_session):
        db.seed(
            "admin_activity_log",
            {"id": "a1", "club_owner_id": OWNER_ID, "action_type": "INSERT", "table_name": "members",
             "created_at": iso(3)},
            {"id": "a2", "club_owner_id": OWNER_ID, "action_type": "UPDATE", "table_name": "members",
             "created_at": iso(1)},
            {"id": "a3", "club_owner_id": "another-club", "action_type": "DELETE", "table_name": "goals",
             "created_at": iso(1)},
        )
        activities = await AdminActivityService(admin_session).list_activities()
        assert [a.id for a in activities] == ["a2", "a1"]

    async def test_cleanup_calls_rpc(self, db, admin_session):
        await AdminActivityService(admin_session).cleanup_old_snapshots()
        assert ("rpc", "cleanup_old_snapshots") in db.calls

    async def test_restore_goal_with_status(self, db, admin_session):
        db.seed("goals", {"id": "g1", "user_id": OWNER_ID, "title": "Rinominato", "progress": 90,
                          "status": "completed"})
        db.seed("data_snapshots", {
            "id": "s5", "club_owner_id": OWNER_ID, "table_name": "goals", "record_id": "g1",
            "snapshot_data": {"id": "g1", "user_id": OWNER_ID, "title": "Nuovi soci", "description": None,
                              "target_date": "2027-06-30", "progress": 40, "status": "active",
                              "created_at": "2026-09-01T10:00:00+00:00",
                              "updated_at": "2026-09-02T10:00:00+00:00"},
            "created_at": iso(1),
        })

        response = await AdminActivityService(admin_session).restore("s5")

        goal = db.rows("goals")[0]
        assert (goal["title"], goal["progress"], goal["status"]) == ("Nuovi soci", 40, "active")
        assert response.table_label == "Obiettivi"

    async def test_restore_rejects_other_club_row(self, db, admin_session, member_row):
        """Il backup non può riscrivere il record con il proprietario di un altro club"""
        db.seed("data_snapshots", {
            "id": "s6", "club_owner_id": OWNER_ID, "table_name": "members", "record_id": "m1",
            "snapshot_data": {"id": "m1", "user_id": "another-club", "first_name": "Anna",
                              "last_name": "Verdi", "email": "a@b.it", "status": "active"},
            "created_at": iso(1),
        })
        db.reset_calls()

        with pytest.raises(ValidationError):
            await AdminActivityService(admin_session).restore("s6")
        assert ("members", "update") not in db.calls
        assert db.rows("members")[0]["user_id"] == OWNER_ID

    async def test_restore_only_touches_own_rows(self, db, admin_session):
        db.seed("members", {"id": "m7", "user_id": "another-club", "first_name": "Ezio", "last_name": "Blu",
                            "email": "ezio@example.it", "status": "active"})
        db.seed("data_snapshots", {
            "id": "s7", "club_owner_id": OWNER_ID, "table_name": "members", "record_id": "m7",
            "snapshot_data": {"id": "m7", "user_id": OWNER_ID, "first_name": "Anna",
                              "last_name": "Verdi", "email": "a@b.it", "status": "active"},
            "created_at": iso(1),
        })

        with pytest.raises(RecordNotFoundError):
            await AdminActivityService(admin_session).restore("s7")
        assert db.rows("members")[0]["first_name"] == "Ezio"
