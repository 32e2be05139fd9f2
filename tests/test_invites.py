"""
Invite / Public Page Tests - inviti, soci del club, pagina pubblica, lista d'attesa
"""
from datetime import date

import pytest

from fastclub.club.invites import ClubInviteService
from fastclub.club.models import AppSection, InviteCreate, WaitingListEntry
from fastclub.club.public_page import PublicPageService, WaitingListService, public_url
from fastclub.exceptions import BackendError, PermissionDeniedError, RecordNotFoundError, ValidationError
from fakes import MEMBER_ID, OTHER_ID, OWNER_ID


def invite_payload(**overrides):
    data = {
        "email": "nuovo.socio@example.it",
        "first_name": "Marco",
        "last_name": "Blu",
        "permissions": [AppSection.soci],
    }
    data.update(overrides)
    return InviteCreate(**data)


class TestClubInvites:

    async def test_member_cannot_manage_invites(self, member_session):
        with pytest.raises(PermissionDeniedError):
            ClubInviteService(member_session)

    async def test_create_invite_sends_email(self, db, admin_session):
        response = await ClubInviteService(admin_session).create_invite(invite_payload())

        assert response.email_sent
        assert response.warning is None
        stored = db.rows("club_invites")[0]
        assert stored["user_id"] == OWNER_ID
        assert stored["permissions"] == ["soci"]
        assert stored["invite_token"]
        assert db.functions.invocations == [("send-club-invite", {"inviteId": stored["id"]})]

    async def test_email_failure_keeps_invite(self, db, admin_session):
        """Email non inviata: invito salvato e avviso nella risposta"""
        def fail(body):
            raise Exception("SMTP non disponibile")

        db.functions.handlers["send-club-invite"] = fail
        response = await ClubInviteService(admin_session).create_invite(invite_payload())

        assert not response.email_sent
        assert "SMTP non disponibile" in response.warning
        assert len(db.rows("club_invites")) == 1

    async def test_function_error_payload_is_a_failure(self, db, admin_session):
        db.functions.handlers["send-club-invite"] = lambda body: {"success": False, "error": "invito scaduto"}
        response = await ClubInviteService(admin_session).create_invite(invite_payload())
        assert not response.email_sent

    async def test_list_and_delete(self, db, admin_session):
        service = ClubInviteService(admin_session)
        created = await service.create_invite(invite_payload())

        assert [i["id"] for i in await service.list_invites()] == [created.invite["id"]]
        await service.delete_invite(created.invite["id"])
        assert await service.list_invites() == []
        with pytest.raises(RecordNotFoundError):
            await service.delete_invite(created.invite["id"])

    async def test_list_members_with_names(self, db, admin_session):
        db.seed("club_members", {"user_id": "ghost", "club_owner_id": OWNER_ID, "role": "member",
                                 "status": "active", "joined_at": "2026-03-01T10:00:00+00:00"})
        db.reset_calls()

        members = await ClubInviteService(admin_session).list_members()

        names = {m["user_id"]: m["full_name"] for m in members}
        assert names == {"ghost": "Nome non disponibile", OTHER_ID: "Giulia Neri", MEMBER_ID: "Luca Bianchi"}
        assert [m["user_id"] for m in members] == ["ghost", OTHER_ID, MEMBER_ID]
        assert db.calls == [("club_members", "select"), ("profiles", "select")]

    async def test_pricing(self, admin_session):
        pricing = await ClubInviteService(admin_session).pricing()
        assert pricing.member_count == 3
        assert pricing.price == 15.0

    async def test_pricing_fallbacks(self, db, admin_session):
        db.rpc_handlers["get_club_member_count"] = lambda p: None
        db.rpc_handlers["calculate_club_price"] = lambda p: None

        pricing = await ClubInviteService(admin_session).pricing()
        assert pricing.member_count == 1
        assert pricing.price == 15.0


class TestPublicPage:

    async def test_public_page(self, db):
        db.seed(
            "prefecture_events",
            {"user_id": OWNER_ID, "title": "Passato", "event_date": "2026-01-10"},
            {"user_id": OWNER_ID, "title": "Cena degli auguri", "event_date": "2026-12-18"},
            {"user_id": OWNER_ID, "title": "Visita del governatore", "event_date": "2026-11-05"},
            {"user_id": "another-club", "title": "Altro club", "event_date": "2026-11-06"},
        )

        page = await PublicPageService(db).get_public_page("rotary-bolzano", today=date(2026, 10, 19))

        assert page.club_name == "Rotary Club Bolzano"
        assert page.president_name == "Mario Rossi"
        assert page.public_url == "https://fastclub.it/club/rotary-bolzano"
        assert [e["title"] for e in page.upcoming_events] == ["Visita del governatore", "Cena degli auguri"]
        assert {m.full_name for m in page.members} == {"Luca Bianchi", "Giulia Neri"}

    async def test_inactive_members_hidden(self, db):
        db.seed("club_members", {"user_id": "left", "club_owner_id": OWNER_ID, "status": "inactive"})
        page = await PublicPageService(db).get_public_page("rotary-bolzano")
        assert "left" not in [m.user_id for m in page.members]

    async def test_unknown_slug(self, db):
        with pytest.raises(RecordNotFoundError):
            await PublicPageService(db).get_public_page("non-esiste")

    def test_public_url_without_slug(self):
        assert public_url({"club_slug": None}) is None


class DuplicateKeyError(Exception):
    code = "23505"


def waiting_entry(**overrides):
    data = {"first_name": "Carlo", "last_name": "Russo", "club_name": "Rotary Club Trento",
            "city": "Trento", "email": "carlo@example.it"}
    data.update(overrides)
    return WaitingListEntry(**data)


class TestWaitingList:

    async def test_join(self, db):
        row = await WaitingListService(db).join(waiting_entry(club_name="  Rotary Club Trento "))

        assert row["club_name"] == "Rotary Club Trento"
        stored = db.rows("waiting_list")[0]
        assert stored["email"] == "carlo@example.it"
        assert "user_id" not in stored

    async def test_blank_field_no_calls(self, db):
        db.reset_calls()
        with pytest.raises(ValidationError) as exc:
            await WaitingListService(db).join(waiting_entry(city="   "))
        assert exc.value.field == "city"
        assert db.calls == []

    async def test_duplicate_email(self, db):
        db.errors[("waiting_list", "insert")] = DuplicateKeyError("duplicate key value")
        with pytest.raises(ValidationError) as exc:
            await WaitingListService(db).join(waiting_entry())
        assert exc.value.field == "email"

    async def test_other_backend_errors_propagate(self, db):
        db.failures.add(("waiting_list", "insert"))
        with pytest.raises(BackendError):
            await WaitingListService(db).join(waiting_entry())
