"""
Pytest configuration and fixtures for FastClub tests
"""

import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from fastclub.auth.session import SessionContext  # noqa: E402
from fakes import MEMBER_ID, OTHER_ID, OUTSIDER_ID, OWNER_ID, FakeSupabase, make_session  # noqa: E402


@pytest.fixture
def db() -> FakeSupabase:
    """Club con proprietario (admin), due membri e un utente senza club"""
    fake = FakeSupabase()
    fake.seed(
        "profiles",
        {"user_id": OWNER_ID, "full_name": "Mario Rossi", "role": "admin",
         "club_name": "Rotary Club Bolzano", "club_slug": "rotary-bolzano",
         "president_name": "Mario Rossi", "secretary_name": "Anna Verdi"},
        {"user_id": MEMBER_ID, "full_name": "Luca Bianchi", "role": "member"},
        {"user_id": OTHER_ID, "full_name": "Giulia Neri", "role": "member"},
        {"user_id": OUTSIDER_ID, "full_name": "Paolo Gialli", "role": "member"},
    )
    fake.seed(
        "club_members",
        {"user_id": MEMBER_ID, "club_owner_id": OWNER_ID, "role": "member",
         "status": "active", "joined_at": "2026-01-10T10:00:00+00:00"},
        {"user_id": OTHER_ID, "club_owner_id": OWNER_ID, "role": "treasurer",
         "status": "active", "joined_at": "2026-02-10T10:00:00+00:00"},
    )
    fake.emails = {
        OWNER_ID: "mario.rossi@example.it",
        MEMBER_ID: "luca.bianchi@example.it",
    }
    return fake


@pytest.fixture
async def admin_session(db) -> SessionContext:
    return await make_session(db, OWNER_ID)


@pytest.fixture
async def member_session(db) -> SessionContext:
    return await make_session(db, MEMBER_ID)
