"""Supabase-backed key-value record store."""

from dataclasses import dataclass

from supabase import Client

from prompt_crit.services.store import RecordStore


@dataclass
class SupabaseRecordStore(RecordStore):
    """Record store on a ``(key text primary key, value jsonb)`` table."""

    client: Client
    table: str = "kv_store"
    page_size: int = 1000

    def get(self, key: str) -> dict[str, object] | None:
        """Return the value stored under a key, if present."""
        response = (
            self.client.table(self.table)
            .select("value")
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0]["value"]

    def set(self, key: str, value: dict[str, object]) -> None:
        """Insert or replace the value for a key."""
        self.client.table(self.table).upsert({"key": key, "value": value}).execute()

    def set_if_version(
        self, key: str, value: dict[str, object], expected_version: int
    ) -> bool:
        """Update the row only while its stored version still matches."""
        response = (
            self.client.table(self.table)
            .update({"value": value})
            .eq("key", key)
            .eq("value->>version", str(expected_version))
            .execute()
        )
        return bool(response.data)

    def get_by_prefix(self, prefix: str) -> list[dict[str, object]]:
        """Return values whose keys start with the prefix, reading every page."""
        rows: list[dict[str, object]] = []
        offset = 0
        while True:
            response = (
                self.client.table(self.table)
                .select("key, value")
                .like("key", f"{prefix}%")
                .order("key")
                .range(offset, offset + self.page_size - 1)
                .execute()
            )
            page = response.data or []
            rows.extend(page)
            if len(page) < self.page_size:
                break
            offset += self.page_size
        # LIKE treats "_" as a wildcard, so re-check the literal prefix.
        return [
            row["value"] for row in rows if str(row.get("key", "")).startswith(prefix)
        ]
