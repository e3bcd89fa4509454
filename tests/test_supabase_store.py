from types import SimpleNamespace

import pytest
from postgrest.exceptions import APIError

from auto_appraisal.db.store import ACTIVE_STATUSES, COMPLETED_STATUSES
from auto_appraisal.db.supabase_store import SupabaseStore
from auto_appraisal.errors import ConfigurationError, StoreError, UniqueViolation


class Query:
    """Records the builder calls made against one table"""

    def __init__(self, table, data=None, error=None):
        self.table = table
        self.calls = []
        self.data = data if data is not None else []
        self.error = error

    def __getattr__(self, name):
        def record(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return record

    async def execute(self):
        if self.error:
            raise self.error
        return SimpleNamespace(data=self.data)


class Client:
    def __init__(self, data=None, error=None):
        self.queries = []
        self.data = data
        self.error = error

    def table(self, name):
        q = Query(name, self.data, self.error)
        self.queries.append(q)
        return q


def make_store(**kwargs):
    client = Client(**kwargs)
    return SupabaseStore(client, "https://proj.supabase.co/", "anon", "claim-photos"), client


async def test_active_list_query():
    store, client = make_store(data=[{"id": 1}])
    rows = await store.list_claims(("id", "status"), ACTIVE_STATUSES, order_by="created_at", descending=True)

    assert rows == [{"id": 1}]
    [q] = client.queries
    assert q.table == "claims"
    assert q.calls == [
        ("select", ("id,status",), {}),
        ("or_", ("status.is.null,status.in.(SCHEDULED,IN_PROGRESS)",), {}),
        ("order", ("created_at",), {"desc": True}),
    ]


async def test_completed_list_query():
    store, client = make_store()
    await store.list_claims(("id",), COMPLETED_STATUSES, order_by="appointment_start")
    assert client.queries[0].calls[1] == ("eq", ("status", "COMPLETED"), {})
    assert client.queries[0].calls[2] == ("order", ("appointment_start",), {"desc": False})


async def test_override_updates_by_claim_number():
    store, client = make_store()
    await store.update_claims({"customer_name": "X"}, "claim_number", "CLM-1")
    assert client.queries[0].calls == [
        ("update", ({"customer_name": "X"},), {}),
        ("eq", ("claim_number", "CLM-1"), {}),
    ]


async def test_unique_violation_is_recognised():
    error = APIError({"message": "duplicate key value", "code": "23505", "hint": None, "details": None})
    store, _ = make_store(error=error)
    with pytest.raises(UniqueViolation):
        await store.insert_claim({"claim_number": "CLM-1"})


async def test_other_api_errors_keep_message_and_code():
    error = APIError({"message": "permission denied", "code": "42501", "hint": None, "details": None})
    store, _ = make_store(error=error)
    with pytest.raises(StoreError) as exc:
        await store.delete_claim("claim-1")
    assert not isinstance(exc.value, UniqueViolation)
    assert (exc.value.message, exc.value.code) == ("permission denied", "42501")


async def test_missing_profile():
    store, _ = make_store(data=[])
    assert await store.fetch_profile("user-1") is None


def test_public_url():
    store, _ = make_store()
    assert store.public_url("claim/c1/a.jpg") == (
        "https://proj.supabase.co/storage/v1/object/public/claim-photos/claim/c1/a.jpg"
    )


async def test_connect_needs_credentials(settings):
    with pytest.raises(ConfigurationError):
        await SupabaseStore.connect(settings.model_copy(update={"SUPABASE_KEY": None}))


class BoundClient(Client):
    def __init__(self, options):
        super().__init__(data=[{"user_id": "u1", "role": "admin", "full_name": None}])
        self.options = options
        self.auth_tokens = []
        self.closed = False
        self.realtime = SimpleNamespace(set_auth=self._set_auth)
        self.postgrest = SimpleNamespace(aclose=self._aclose)
        self.channel_topics = []

    async def _set_auth(self, token):
        self.auth_tokens.append(token)

    async def _aclose(self):
        self.closed = True

    async def remove_all_channels(self):
        pass

    def channel(self, topic):
        self.channel_topics.append(topic)
        return SimpleNamespace(topic=topic, on_postgres_changes=lambda *a, **kw: None, subscribe=self._noop)

    async def _noop(self):
        pass


async def test_user_token_reaches_queries(monkeypatch):
    created = []

    async def fake_create(url, key, options=None):
        client = BoundClient(options)
        created.append((url, key, client))
        return client

    monkeypatch.setattr("auto_appraisal.db.supabase_store.acreate_client", fake_create)
    store, _ = make_store()

    bound = await store.for_token("user-jwt")
    assert await bound.fetch_profile("u1") == {"user_id": "u1", "role": "admin", "full_name": None}

    [(url, key, client)] = created
    assert (url, key) == ("https://proj.supabase.co", "anon")
    assert client.options.headers["Authorization"] == "Bearer user-jwt"
    assert client.queries[0].table == "profiles"
    assert (bound.access_token, bound.bucket) == ("user-jwt", "claim-photos")
    assert store.access_token is None

    await bound.subscribe("claims", lambda payload: None)
    assert client.auth_tokens == ["user-jwt"]

    await bound.close()
    assert client.closed
