"""
Permission Tests - sezioni accessibili, responsabili, gestione permessi
"""
import pytest

from fastclub.club.models import ALL_SECTIONS, AppSection
from fastclub.club.permissions import (
    MemberPermissionsManager,
    PermissionResolver,
    ResponsibilityLookup,
)
from fastclub.exceptions import ValidationError
from fakes import MEMBER_ID, OTHER_ID, OUTSIDER_ID, OWNER_ID, grant, make_session


class TestPermissionResolver:
    """Risoluzione delle sezioni accessibili"""

    async def test_admin_has_every_section_without_reading(self, db):
        """L'admin vede tutto senza leggere member_permissions"""
        resolver = PermissionResolver(OWNER_ID, True, db)
        sections = await resolver.refresh()

        assert sections == set(ALL_SECTIONS)
        assert all(resolver.has_permission(s) for s in AppSection)
        assert ("member_permissions", "select") not in db.calls

    async def test_member_sections_match_rows(self, db):
        """has_permission vero solo se esiste la riga (user, sezione)"""
        grant(db, MEMBER_ID, AppSection.tesoreria)
        grant(db, MEMBER_ID, AppSection.soci, responsible=True)

        resolver = PermissionResolver(MEMBER_ID, False, db)
        await resolver.refresh()

        assert resolver.accessible_sections() == {AppSection.tesoreria, AppSection.soci}
        assert resolver.has_permission(AppSection.soci)
        assert not resolver.has_permission(AppSection.presidenza)

    async def test_zero_grants_gives_empty_set(self, db):
        resolver = PermissionResolver(MEMBER_ID, False, db)
        assert await resolver.refresh() == set()

    async def test_read_error_gives_empty_set(self, db):
        """Errore di lettura -> nessuna sezione"""
        grant(db, MEMBER_ID, AppSection.tesoreria)
        db.failures.add(("member_permissions", "select"))

        resolver = PermissionResolver(MEMBER_ID, False, db)
        assert await resolver.refresh() == set()

    async def test_unknown_section_rows_are_ignored(self, db):
        db.seed("member_permissions", {"user_id": MEMBER_ID, "club_owner_id": OWNER_ID, "section": "archivio"})
        grant(db, MEMBER_ID, AppSection.soci)

        resolver = PermissionResolver(MEMBER_ID, False, db)
        assert await resolver.refresh() == {AppSection.soci}

    async def test_changes_visible_only_after_refresh(self, db):
        """Nessuna cache oltre la sessione: serve refresh()"""
        resolver = PermissionResolver(MEMBER_ID, False, db)
        await resolver.refresh()
        grant(db, MEMBER_ID, AppSection.segreteria)

        assert not resolver.has_permission(AppSection.segreteria)
        await resolver.refresh()
        assert resolver.has_permission(AppSection.segreteria)


class TestResponsibilityLookup:
    """Responsabile di sezione"""

    async def test_responsible_found(self, db):
        grant(db, MEMBER_ID, AppSection.tesoreria, responsible=True)
        grant(db, OTHER_ID, AppSection.tesoreria)

        responsible = await ResponsibilityLookup(OTHER_ID, db).responsible_for(AppSection.tesoreria)

        assert responsible is not None
        assert responsible.full_name == "Luca Bianchi"
        assert responsible.email == "luca.bianchi@example.it"

    async def test_no_responsible(self, db):
        grant(db, MEMBER_ID, AppSection.tesoreria)
        assert await ResponsibilityLookup(MEMBER_ID, db).responsible_for(AppSection.tesoreria) is None

    async def test_missing_email_falls_back(self, db):
        grant(db, OTHER_ID, AppSection.soci, responsible=True)

        responsible = await ResponsibilityLookup(MEMBER_ID, db).responsible_for(AppSection.soci)

        assert responsible.full_name == "Giulia Neri"
        assert responsible.email == "Email non disponibile"

    async def test_first_row_wins_with_two_responsibles(self, db):
        """Nessun vincolo di unicità: vince la prima riga"""
        grant(db, MEMBER_ID, AppSection.soci, responsible=True)
        grant(db, OTHER_ID, AppSection.soci, responsible=True)

        responsible = await ResponsibilityLookup(MEMBER_ID, db).responsible_for(AppSection.soci)
        assert responsible.full_name == "Luca Bianchi"

    async def test_owner_resolves_to_self(self, db):
        """Il proprietario non è in club_members: fallback al proprio id"""
        grant(db, MEMBER_ID, AppSection.soci, responsible=True)

        lookup = ResponsibilityLookup(OWNER_ID, db)
        assert lookup.resolve_tenant() == OWNER_ID
        assert (await lookup.responsible_for(AppSection.soci)).full_name == "Luca Bianchi"

    async def test_failure_returns_none(self, db):
        """Errori registrati e trattati come nessun responsabile"""
        grant(db, MEMBER_ID, AppSection.soci, responsible=True)
        db.failures.add(("rpc", "get_club_owner_id"))

        assert await ResponsibilityLookup(MEMBER_ID, db).responsible_for(AppSection.soci) is None

    async def test_outsider_sees_no_responsible(self, db):
        grant(db, MEMBER_ID, AppSection.soci, responsible=True)
        assert await ResponsibilityLookup(OUTSIDER_ID, db).responsible_for(AppSection.soci) is None

    async def test_is_responsible(self, db):
        grant(db, MEMBER_ID, AppSection.soci, responsible=True)
        grant(db, OTHER_ID, AppSection.soci)

        assert await ResponsibilityLookup(MEMBER_ID, db).is_responsible(OWNER_ID, AppSection.soci)
        assert not await ResponsibilityLookup(OTHER_ID, db).is_responsible(OWNER_ID, AppSection.soci)


class TestMemberPermissionsManager:
    """Assegnazione dei permessi da parte dell'admin"""

    async def test_replaces_all_grants(self, db):
        grant(db, MEMBER_ID, AppSection.presidenza)
        manager = MemberPermissionsManager(OWNER_ID, db)

        rows = await manager.set_member_permissions(
            MEMBER_ID,
            [AppSection.soci, AppSection.tesoreria],
            [AppSection.tesoreria]
        )

        assert {r["section"] for r in rows} == {"soci", "tesoreria"}
        stored = await manager.get_member_permissions(MEMBER_ID)
        assert {r["section"]: r["is_responsible"] for r in stored} == {"soci": False, "tesoreria": True}

        session = await make_session(db, MEMBER_ID)
        assert not session.has_permission(AppSection.presidenza)
        assert session.has_permission(AppSection.tesoreria)

    async def test_responsible_requires_section(self, db):
        """Responsabile senza accesso alla sezione -> errore prima di scrivere"""
        manager = MemberPermissionsManager(OWNER_ID, db)

        with pytest.raises(ValidationError):
            await manager.set_member_permissions(MEMBER_ID, [AppSection.soci], [AppSection.tesoreria])
        assert db.calls == []

    async def test_empty_sections_removes_everything(self, db):
        grant(db, MEMBER_ID, AppSection.soci)
        manager = MemberPermissionsManager(OWNER_ID, db)

        assert await manager.set_member_permissions(MEMBER_ID, []) == []
        assert await manager.get_member_permissions(MEMBER_ID) == []

    async def test_second_responsible_is_only_warned(self, db):
        """Il controllo non è atomico: il secondo responsabile viene salvato"""
        grant(db, OTHER_ID, AppSection.soci, responsible=True)
        manager = MemberPermissionsManager(OWNER_ID, db)

        await manager.set_member_permissions(MEMBER_ID, [AppSection.soci], [AppSection.soci])

        holders = [r["user_id"] for r in db.rows("member_permissions") if r["is_responsible"]]
        assert sorted(holders) == sorted([OTHER_ID, MEMBER_ID])
