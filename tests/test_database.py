"""
Database Tests - client Supabase condiviso e wrapper delle query
"""
import pytest

from fastclub.config import get_settings
from fastclub.database import execute, first_row, get_supabase_client, reset_supabase_client
from fastclub.exceptions import BackendError
from fakes import FakeResponse, FakeSupabase


@pytest.fixture
def supabase_env(monkeypatch):
    """Client singleton azzerato prima e dopo il test"""
    monkeypatch.setenv("SUPABASE_URL", "https://progetto.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "anon-key")
    monkeypatch.setenv("SUPABASE_SERVICE_KEY", "")
    get_settings.cache_clear()
    reset_supabase_client()
    yield monkeypatch
    reset_supabase_client()
    get_settings.cache_clear()


class TestSupabaseClient:

    def test_singleton(self, supabase_env):
        created = []

        def fake_create(url, key):
            created.append((url, key))
            return object()

        supabase_env.setattr("fastclub.database.supabase_client.create_client", fake_create)

        first = get_supabase_client()
        assert get_supabase_client() is first
        assert created == [("https://progetto.supabase.co", "anon-key")]

        reset_supabase_client()
        assert get_supabase_client() is not first
        assert len(created) == 2

    def test_service_key_preferred(self, supabase_env):
        supabase_env.setenv("SUPABASE_SERVICE_KEY", "service-key")
        get_settings.cache_clear()
        keys = []
        supabase_env.setattr(
            "fastclub.database.supabase_client.create_client",
            lambda url, key: keys.append(key) or object()
        )

        get_supabase_client()
        assert keys == ["service-key"]

    def test_missing_configuration(self, supabase_env):
        supabase_env.setenv("SUPABASE_URL", "")
        get_settings.cache_clear()
        with pytest.raises(ValueError):
            get_supabase_client()


class _Query:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error

    def execute(self):
        if self.error:
            raise self.error
        return self.response


class TestExecute:

    def test_rows(self):
        assert execute(_Query(FakeResponse([{"id": 1}])), "test") == [{"id": 1}]

    def test_no_response(self):
        assert execute(_Query(None), "test") == []
        assert first_row(_Query(None), "test") is None

    def test_scalar_data_wrapped(self):
        assert execute(_Query(FakeResponse(7)), "test") == [7]

    def test_error_becomes_backend_error(self):
        with pytest.raises(BackendError) as exc:
            execute(_Query(error=RuntimeError("connessione rifiutata")), "lettura soci")
        assert "lettura soci" in str(exc.value)
        assert "connessione rifiutata" in str(exc.value)

    def test_first_row_from_fake(self):
        db = FakeSupabase()
        db.seed("profiles", {"user_id": "u1"})
        assert first_row(db.table("profiles").select("*").eq("user_id", "u1").maybe_single(), "test")["user_id"] == "u1"
