"""Shared fixtures: an in-memory record store with the same surface as PocketBaseClient."""
import itertools
import json
from typing import Any, Dict, List, Optional

import pytest

from core.exceptions import PBError

_OPS = {
    "=": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    ">": lambda a, b: a is not None and a > b,
    ">=": lambda a, b: a is not None and a >= b,
    "<": lambda a, b: a is not None and a < b,
    "<=": lambda a, b: a is not None and a <= b,
    "~": lambda a, b: a is not None and str(b) in str(a),
}


def _triples(filters):
    if not filters:
        return []
    if isinstance(filters, dict):
        return [(k, "=", v) for k, v in filters.items()]
    return list(filters)


class FakeStore:
    """Records round-trip through JSON, like they would over HTTP."""
    def __init__(self, user_id: Optional[str] = "user1"):
        self.user_id = user_id
        self.tables: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.calls: List[tuple] = []
        self.fail_ops = set()  # e.g. {"update", "select_many"}
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    def get_current_user(self):
        return self.user_id

    def fork(self):
        self.calls.append("fork")
        return self

    def _check(self, op):
        self.calls.append(op)
        if op in self.fail_ops:
            raise PBError(f"simulated {op} failure", status=500)

    def _match(self, collection, filters):
        rows = self.tables.get(collection, {}).values()
        return [r for r in rows
                if all(_OPS[op](r.get(field), value) for field, op, value in _triples(filters))]

    def seed(self, collection: str, **fields) -> Dict[str, Any]:
        rec = dict(fields)
        rec.setdefault("id", f"rec{next(self._ids)}")
        rec.setdefault("created", f"2024-01-01 00:00:{next(self._clock):02d}")
        self.tables.setdefault(collection, {})[rec["id"]] = json.loads(json.dumps(rec))
        return rec

    def select_one(self, collection, filters):
        self._check("select_one")
        rows = self._match(collection, filters)
        return json.loads(json.dumps(rows[0])) if rows else None

    def select_many(self, collection, filters=None, sort=None, per_page=500, max_pages=None):
        self._check("select_many")
        rows = self._match(collection, filters)
        for key in reversed((sort or "").split(",")):
            key = key.strip()
            if not key:
                continue
            desc = key.startswith("-")
            name = key.lstrip("-+")
            rows = sorted(rows, key=lambda r: r.get(name) or "", reverse=desc)
        if max_pages:
            rows = rows[:per_page * max_pages]
        return json.loads(json.dumps(rows))

    def insert(self, collection, fields):
        self._check("insert")
        return self.seed(collection, **fields)

    def update(self, collection, filters, fields):
        self._check("update")
        for row in self._match(collection, filters):
            row.update(json.loads(json.dumps(fields)))

    def delete(self, collection, filters):
        self._check("delete")
        table = self.tables.get(collection, {})
        for row in self._match(collection, filters):
            table.pop(row["id"], None)


class FakeScheduler:
    """Manual clock for debounced saves."""
    def __init__(self):
        self.pending = {}
        self._handles = itertools.count(1)

    def call_later(self, delay_ms, callback):
        handle = next(self._handles)
        self.pending[handle] = (delay_ms, callback)
        return handle

    def cancel(self, handle):
        self.pending.pop(handle, None)

    def run_all(self):
        while self.pending:
            handle = next(iter(self.pending))
            _, callback = self.pending.pop(handle)
            callback()


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def scheduler():
    return FakeScheduler()
