import pytest

from gategate.logic import LogicSystem


class _Conn:
    def __init__(self):
        self.seen = []


def test_registered_get_handler_receives_connection():
    logic = LogicSystem()
    conn = _Conn()
    logic.reg_get("/get_test", lambda c: c.seen.append("get"))
    assert logic.handle_get("/get_test", conn) is True
    assert conn.seen == ["get"]


def test_unknown_path_is_not_handled():
    logic = LogicSystem()
    conn = _Conn()
    assert logic.handle_get("/missing", conn) is False
    assert logic.handle_post("/missing", conn) is False
    assert conn.seen == []


def test_get_and_post_tables_are_separate():
    logic = LogicSystem()
    conn = _Conn()
    logic.reg_post("/submit", lambda c: c.seen.append("post"))
    assert logic.handle_get("/submit", conn) is False
    assert logic.handle_post("/submit", conn) is True
    assert conn.seen == ["post"]


def test_later_registration_replaces_earlier():
    logic = LogicSystem()
    conn = _Conn()
    logic.reg_get("/a", lambda c: c.seen.append(1))
    logic.reg_get("/a", lambda c: c.seen.append(2))
    assert logic.handle_get("/a", conn) is True
    assert conn.seen == [2]


def test_handler_errors_propagate():
    logic = LogicSystem()

    def broken(_conn):
        raise KeyError("boom")

    logic.reg_post("/broken", broken)
    with pytest.raises(KeyError):
        logic.handle_post("/broken", _Conn())