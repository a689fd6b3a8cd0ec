from __future__ import annotations

import pytest

from casemaster.db.batch_insert import BatchInsertError, BatchMetrics, InsertResult, batch_insert


class DummyCursor:
    def __init__(self) -> None:
        self.queries: list[str] = []
        self.rows: list[list] = []
        self.page_size: int | None = None

# execute_values をモジュール内で差し替え (実 DB 不要)

@pytest.fixture(autouse=True)
def patch_execute_values(monkeypatch):
    import casemaster.db.batch_insert as bi
    def fake_execute_values(cursor, sql, rows, page_size=1000):
        cursor.queries.append(sql)
        cursor.rows.extend(rows)
        cursor.page_size = page_size
    monkeypatch.setattr(bi, "execute_values", fake_execute_values)
    return fake_execute_values


def test_batch_insert_basic():
    cur = DummyCursor()
    res = batch_insert(
        cur, table="case_master", columns=["case_id", "first_name"], rows=[["C1", "Ann"], ["C2", "Ben"]]
    )
    assert isinstance(res, InsertResult)
    assert res.inserted_rows == 2
    assert cur.queries == ['INSERT INTO case_master ("case_id","first_name") VALUES %s']
    assert cur.rows == [["C1", "Ann"], ["C2", "Ben"]]


def test_batch_insert_accepts_generator_and_page_size():
    cur = DummyCursor()
    res = batch_insert(cur, "case_master", ["case_id"], ((f"C{i}",) for i in range(3)), page_size=2)
    assert res.inserted_rows == 3
    assert cur.page_size == 2


def test_batch_insert_empty_rows():
    cur = DummyCursor()
    calls = []
    res = batch_insert(cur, table="case_master", columns=["case_id"], rows=[], metrics_callback=calls.append)
    assert res.inserted_rows == 0
    assert cur.queries == []
    assert calls == []


def test_batch_insert_driver_error_wrapped(monkeypatch):
    import casemaster.db.batch_insert as bi
    def failing(cursor, sql, rows, page_size=1000):
        raise RuntimeError("duplicate key value")
    monkeypatch.setattr(bi, "execute_values", failing)
    with pytest.raises(BatchInsertError, match="duplicate key value"):
        batch_insert(DummyCursor(), table="t", columns=["c"], rows=[[1]])


def test_batch_insert_with_metrics_callback():
    cur = DummyCursor()
    captured_metrics: list[BatchMetrics] = []

    res = batch_insert(
        cur,
        table="case_master",
        columns=["case_id"],
        rows=[["C1"], ["C2"]],
        metrics_callback=captured_metrics.append,
    )

    assert res.inserted_rows == 2
    assert len(captured_metrics) == 1
    m = captured_metrics[0]
    assert m.batch_size == 2
    assert m.elapsed_seconds >= 0
    assert m.end_time >= m.start_time


def test_metrics_reported_even_on_failure(monkeypatch):
    import casemaster.db.batch_insert as bi
    def failing(cursor, sql, rows, page_size=1000):
        raise RuntimeError("boom")
    monkeypatch.setattr(bi, "execute_values", failing)
    captured: list[BatchMetrics] = []
    with pytest.raises(BatchInsertError):
        batch_insert(DummyCursor(), "t", ["c"], [[1]], metrics_callback=captured.append)
    assert captured[0].batch_size == 1
