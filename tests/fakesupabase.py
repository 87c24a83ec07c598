# In-memory stand-in for the async Supabase query builder used in tests.

from typing import Any, Dict, Iterable, List, Optional


class FakeResult:
    def __init__(self, data):
        self.data = data
        self.count = len(data)


class FakeTable:
    def __init__(self, db: "FakeSupabase", name: str):
        self._db = db
        self._name = name
        self._filters = []
        self._insert: Optional[List[Dict[str, Any]]] = None

    def select(self, *args, **kwargs):
        return self

    def eq(self, field, value):
        self._filters.append(lambda r: r.get(field) == value)
        return self

    def in_(self, field, values):
        values_set = set(values or [])
        self._filters.append(lambda r: r.get(field) in values_set)
        return self

    def insert(self, payload):
        self._insert = [dict(p) for p in (payload if isinstance(payload, list) else [payload])]
        return self

    async def execute(self):
        op = "insert" if self._insert is not None else "select"
        self._db.calls.append((self._name, op))
        # fail_on accepts "table" or "table:op"
        if self._name in self._db.fail_on or f"{self._name}:{op}" in self._db.fail_on:
            raise RuntimeError(f"simulated failure on {self._name}")
        if self._insert is not None:
            self._db.inserts.append((self._name, self._insert))
            self._db.tables.setdefault(self._name, []).extend(self._insert)
            return FakeResult(list(self._insert))
        rows = self._db.tables.get(self._name, [])
        filtered = [row for row in rows if all(f(row) for f in self._filters)]
        return FakeResult(filtered)


class FakeSupabase:
    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None, fail_on: Iterable[str] = ()):
        self.tables: Dict[str, List[Dict[str, Any]]] = {k: list(v) for k, v in (tables or {}).items()}
        self.fail_on = set(fail_on)
        self.inserts: List[tuple] = []
        self.calls: List[tuple] = []

    def table(self, name: str):
        return FakeTable(self, name)

    def factory(self):
        async def _get():
            return self
        return _get
