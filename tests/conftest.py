"""Shared test fixtures."""

import itertools
import json
from collections import defaultdict
from datetime import datetime, timedelta, timezone

import pytest

from config import Settings
from errors import RemoteStoreError
from hub import BroadcastHub
from service import ReportService
from store import SnapshotStore


class FakeRemoteStore:
    """In-memory remote store.

    Add "op" or "op:table" to `fail_on` to make matching calls raise
    RemoteStoreError, e.g. {"select"} or {"insert:report_update"}.
    Rows get an increasing `_id` that, as in MongoDB, can be sorted on but
    is never returned.
    """

    def __init__(self):
        self.tables = defaultdict(list)
        self.fail_on = set()
        self.calls = []
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._object_ids = itertools.count(1)

    def _check(self, op, table):
        self.calls.append((op, table))
        if op in self.fail_on or f"{op}:{table}" in self.fail_on:
            raise RemoteStoreError(f"{op} on {table} failed")

    def _tick(self):
        self._clock += timedelta(seconds=1)
        return self._clock

    def _store(self, table, row):
        row["_id"] = next(self._object_ids)
        self.tables[table].append(row)
        return row

    def _candidates(self, table):
        return self.tables[table]

    @staticmethod
    def _public(row):
        return {k: v for k, v in row.items() if k != "_id"}

    @staticmethod
    def _matches(row, filters):
        for key, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set)):
                if row.get(key) not in value:
                    return False
            elif row.get(key) != value:
                return False
        return True

    def select(self, table, columns=None, filters=None, order=None):
        self._check("select", table)
        rows = [dict(r) for r in self._candidates(table) if self._matches(r, filters)]
        for field, ascending in reversed(list(order or [])):
            rows.sort(key=lambda r: r[field], reverse=not ascending)
        if columns:
            return [{c: r[c] for c in columns if c in r} for r in rows]
        return [self._public(r) for r in rows]

    def insert(self, table, payload):
        self._check("insert", table)
        document = dict(payload)
        document.setdefault("created_at", self._tick())
        document.setdefault("updated_at", document["created_at"])
        return self._public(self._store(table, document))

    def update(self, table, payload, filters):
        self._check("update", table)
        for row in self.tables[table]:
            if self._matches(row, filters):
                row.update(payload)
                row["updated_at"] = self._tick()
                return self._public(row)
        return None

    def delete(self, table, filters):
        self._check("delete", table)
        for i, row in enumerate(self.tables[table]):
            if self._matches(row, filters):
                return self._public(self.tables[table].pop(i))
        return None

    def collection_names(self):
        self._check("collection_names", "*")
        return sorted(self.tables)

    def add_report_row(self, **fields):
        row = {
            "id": "CR-2024-01-AAAA",
            "title": "Stored report",
            "type": "Theft",
            "status": "open",
            "priority": "medium",
            "created_at": self._tick(),
        }
        row.update(fields)
        return self._store("report", row)

    def add_history_row(self, report_id, comment, created_at):
        return self._store("report_update", {"report_id": report_id, "comment": comment, "created_at": created_at})


class TieReversingRemoteStore(FakeRemoteStore):
    """Returns rows that tie on every sort key in reverse insertion order.

    MongoDB gives no order among equal sort keys, so this is as valid as
    the base class's stable order.
    """

    def _candidates(self, table):
        return list(reversed(self.tables[table]))


class FrameRecorder:
    """Hub subscriber that keeps every decoded event it receives."""

    def __init__(self):
        self.frames = []
        self.closed = 0

    def write(self, frame):
        self.frames.append(frame)

    def close(self):
        self.closed += 1

    @property
    def events(self):
        return [json.loads(f[len("data: "):]) for f in self.frames if f.startswith("data: ")]


@pytest.fixture
def settings():
    return Settings(
        timezone_name="UTC",
        keepalive_seconds=30,
        max_subscribers=10,
        subscriber_queue_size=16,
        placeholder_seed=False,
    )


@pytest.fixture
def remote():
    return FakeRemoteStore()


@pytest.fixture
def hub():
    return BroadcastHub(max_subscribers=10)


@pytest.fixture
def recorder(hub):
    rec = FrameRecorder()
    hub.subscribe(rec.write, rec.close)
    return rec


@pytest.fixture
def store(hub):
    return SnapshotStore(hub)


@pytest.fixture
def service(remote, settings):
    return ReportService(remote, settings)


@pytest.fixture
def service_recorder(service):
    rec = FrameRecorder()
    service.hub.subscribe(rec.write, rec.close)
    return rec


@pytest.fixture
def tie_reversing_remote():
    return TieReversingRemoteStore()
