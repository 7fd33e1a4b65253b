"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from types import SimpleNamespace

import pytest
from supabase import AuthError

from prompt_crit.adapters.supabase_identity_provider import SupabaseIdentityProvider
from prompt_crit.adapters.supabase_record_store import SupabaseRecordStore
from prompt_crit.adapters.supabase_screenshot_storage import (
    SupabaseScreenshotStorage,
)
from prompt_crit.domain.errors import InvalidArgument, UpstreamUnavailable
from prompt_crit.domain.models import Role


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "upsert": [], "update": []}
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, str, object]] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def upsert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self.last_payload = payload
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append(("eq", column, value))
        return self

    def like(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append(("like", column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def range(self, start: int, end: int) -> "FakeTable":
        self.last_filters.append(("range", start, end))
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


class _RejectedError(AuthError):
    def __init__(self, message: str) -> None:
        Exception.__init__(self, message)
        self.message = message


@dataclass
class FakeAdminAuth:
    created: list[dict[str, object]] = field(default_factory=list)
    reject: bool = False

    def create_user(self, attributes: dict[str, object]) -> SimpleNamespace:
        if self.reject:
            raise _RejectedError("User already registered")
        self.created.append(attributes)
        return SimpleNamespace(user=SimpleNamespace(id="user-1"))


@dataclass
class FakeAuth:
    users: dict[str, SimpleNamespace] = field(default_factory=dict)
    passwords: dict[str, str] = field(default_factory=dict)
    admin: FakeAdminAuth = field(default_factory=FakeAdminAuth)

    def get_user(self, token: str) -> SimpleNamespace:
        if token not in self.users:
            raise _RejectedError("invalid JWT")
        return SimpleNamespace(user=self.users[token])

    def sign_in_with_password(self, credentials: dict[str, str]) -> SimpleNamespace:
        if self.passwords.get(credentials["email"]) != credentials["password"]:
            raise _RejectedError("Invalid login credentials")
        return SimpleNamespace(
            session=SimpleNamespace(access_token=f"jwt-{credentials['email']}")
        )


@dataclass
class FakeBucket:
    objects: dict[str, bytes] = field(default_factory=dict)
    options: dict[str, object] = field(default_factory=dict)
    fail: bool = False

    def upload(self, path: str, data: bytes, options: dict[str, object]) -> None:
        if self.fail:
            raise RuntimeError("storage offline")
        self.objects[path] = data
        self.options = options

    def create_signed_url(self, path: str, expires_in: int) -> dict[str, str]:
        return {"signedURL": f"https://storage.test/{path}?ttl={expires_in}"}


@dataclass
class FakeStorage:
    buckets: dict[str, FakeBucket] = field(default_factory=dict)

    def from_(self, bucket: str) -> FakeBucket:
        if bucket not in self.buckets:
            self.buckets[bucket] = FakeBucket()
        return self.buckets[bucket]


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)
    auth: FakeAuth = field(default_factory=FakeAuth)
    storage: FakeStorage = field(default_factory=FakeStorage)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def test_supabase_record_store_get_and_set() -> None:
    client = FakeSupabaseClient()
    table = client.table("kv_store")
    table.queue("select", [{"value": {"email": "a@x.com"}}])

    store = SupabaseRecordStore(client)
    fetched = store.get("user:a@x.com")
    missing = store.get("user:b@x.com")
    store.set("user:c@x.com", {"email": "c@x.com"})

    assert fetched == {"email": "a@x.com"}
    assert missing is None
    assert table.last_payload == {"key": "user:c@x.com", "value": {"email": "c@x.com"}}


def test_supabase_record_store_versioned_update() -> None:
    client = FakeSupabaseClient()
    table = client.table("kv_store")
    table.queue("update", [{"key": "session:1", "value": {"version": 3}}])

    store = SupabaseRecordStore(client)
    updated = store.set_if_version("session:1", {"version": 3}, 2)
    stale = store.set_if_version("session:1", {"version": 3}, 2)

    assert updated is True
    assert stale is False
    assert ("eq", "value->>version", "2") in table.last_filters


def test_supabase_record_store_prefix_scan_rechecks_prefix() -> None:
    client = FakeSupabaseClient()
    table = client.table("kv_store")
    table.queue(
        "select",
        [
            {"key": "reflection:s1:a@x.com", "value": {"n": 1}},
            {"key": "reflectionXs1:b@x.com", "value": {"n": 2}},
        ],
    )

    store = SupabaseRecordStore(client)
    values = store.get_by_prefix("reflection:s1:")

    assert values == [{"n": 1}]
    assert ("like", "key", "reflection:s1:%") in table.last_filters


def test_supabase_record_store_prefix_scan_reads_every_page() -> None:
    client = FakeSupabaseClient()
    table = client.table("kv_store")
    rows = [
        {"key": f"feedback:s1:a@x.com:{index}@x.com", "value": {"n": index}}
        for index in range(5)
    ]
    table.queue("select", rows[:2])
    table.queue("select", rows[2:4])
    table.queue("select", rows[4:])

    store = SupabaseRecordStore(client, page_size=2)
    values = store.get_by_prefix("feedback:s1:")

    assert values == [{"n": index} for index in range(5)]
    assert [f for f in table.last_filters if f[0] == "range"] == [
        ("range", 0, 1),
        ("range", 2, 3),
        ("range", 4, 5),
    ]


def test_supabase_identity_provider_resolves_and_rejects_tokens() -> None:
    client = FakeSupabaseClient()
    client.auth.users["good"] = SimpleNamespace(
        id="user-1",
        email="Alice@X.com",
        email_confirmed_at="2026-01-01T00:00:00Z",
        user_metadata={"role": "organizer"},
    )
    provider = SupabaseIdentityProvider(client=client, sign_in_client=client)

    identity = provider.get_user("good")

    assert identity is not None
    assert identity.email == "alice@x.com"
    assert identity.email_verified is True
    assert identity.role is Role.ORGANIZER
    assert provider.get_user("bad") is None


def test_supabase_identity_provider_signup_and_signin() -> None:
    client = FakeSupabaseClient()
    sign_in_client = FakeSupabaseClient()
    sign_in_client.auth.passwords["a@x.com"] = "secret1"
    provider = SupabaseIdentityProvider(client=client, sign_in_client=sign_in_client)

    user_id = provider.create_user("a@x.com", "secret1", "Alice", Role.PARTICIPANT)

    assert user_id == "user-1"
    created = client.auth.admin.created[0]
    assert created["email_confirm"] is True
    assert created["user_metadata"] == {"name": "Alice", "role": "participant"}
    assert provider.sign_in("a@x.com", "secret1") == "jwt-a@x.com"
    assert provider.sign_in("a@x.com", "wrong") is None

    client.auth.admin.reject = True
    with pytest.raises(InvalidArgument, match="already registered"):
        provider.create_user("a@x.com", "secret1", "Alice", Role.PARTICIPANT)


def test_supabase_screenshot_storage_upload_and_sign() -> None:
    client = FakeSupabaseClient()
    storage = SupabaseScreenshotStorage(client, bucket="shots")

    storage.upload("s1/a@x.com/file.png", b"png", "image/png")
    url = storage.signed_url("s1/a@x.com/file.png", 60)

    bucket = client.storage.buckets["shots"]
    assert bucket.objects == {"s1/a@x.com/file.png": b"png"}
    assert bucket.options == {"content-type": "image/png", "upsert": "false"}
    assert url == "https://storage.test/s1/a@x.com/file.png?ttl=60"


def test_supabase_screenshot_storage_failure_is_upstream_error() -> None:
    client = FakeSupabaseClient()
    client.storage.from_("shots").fail = True
    storage = SupabaseScreenshotStorage(client, bucket="shots")

    with pytest.raises(UpstreamUnavailable):
        storage.upload("s1/a@x.com/file.png", b"png", "image/png")
