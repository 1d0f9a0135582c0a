import asyncio
import socket

import pytest

from gategate.logic import LogicSystem
from gategate.server import GateServer, LoopPool, main


def test_loop_pool_cycles_through_loops():
    pool = LoopPool(3)
    try:
        first = [pool.next_loop() for _ in range(3)]
        assert len({id(loop) for loop in first}) == 3
        assert pool.next_loop() is first[0]
        assert len(pool) == 3
    finally:
        pool.stop()


def test_loop_pool_loops_run_work():
    pool = LoopPool(2)
    try:

        async def answer():
            return 42

        future = asyncio.run_coroutine_threadsafe(answer(), pool.next_loop())
        assert future.result(timeout=5) == 42
    finally:
        pool.stop()


def test_loop_pool_stop_closes_loops_and_refuses_work():
    pool = LoopPool(2)
    loops = [pool.next_loop(), pool.next_loop()]
    pool.stop()
    assert all(loop.is_closed() for loop in loops)
    with pytest.raises(RuntimeError):
        pool.next_loop()


def test_loop_pool_needs_a_loop():
    with pytest.raises(ValueError):
        LoopPool(0)


async def _fetch(port: int, raw: bytes) -> bytes:
    reader, writer = await asyncio.open_connection("127.0.0.1", port)
    writer.write(raw)
    await writer.drain()
    data = await asyncio.wait_for(reader.read(), 5)
    writer.close()
    return data


def _logic():
    logic = LogicSystem()
    logic.reg_get("/ping", lambda conn: conn.response.body.extend(b"pong"))
    return logic


@pytest.mark.asyncio
async def test_server_serves_registered_route():
    server = GateServer("127.0.0.1", 0, _logic(), 5)
    port = await server.start()
    try:
        assert server.port == port
        data = await _fetch(port, b"GET /ping HTTP/1.1\r\nHost: localhost\r\n\r\n")
        assert data.startswith(b"HTTP/1.1 200 OK\r\n")
        assert data.endswith(b"pong")
    finally:
        server.stop()


@pytest.mark.asyncio
async def test_server_answers_not_found_and_keeps_accepting():
    server = GateServer("127.0.0.1", 0, _logic(), 5)
    port = await server.start()
    try:
        first = await _fetch(port, b"GET /nope HTTP/1.1\r\n\r\n")
        second = await _fetch(port, b"GET /ping HTTP/1.1\r\n\r\n")
        assert first.startswith(b"HTTP/1.1 404 Not Found\r\n")
        assert first.endswith(b"url not found!\r\n")
        assert second.endswith(b"pong")
    finally:
        server.stop()


@pytest.mark.asyncio
async def test_serve_forever_returns_after_stop():
    server = GateServer("127.0.0.1", 0, _logic(), 5)
    task = asyncio.create_task(server.serve_forever())
    await asyncio.sleep(0.05)
    server.stop()
    await asyncio.wait_for(task, 5)
    assert task.done() and task.exception() is None


@pytest.mark.asyncio
async def test_start_twice_is_an_error():
    server = GateServer("127.0.0.1", 0, _logic(), 5)
    await server.start()
    try:
        with pytest.raises(RuntimeError):
            await server.start()
    finally:
        server.stop()


def test_main_reports_failure_when_port_is_taken(capsys):
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
        blocker.bind(("127.0.0.1", 0))
        blocker.listen()
        port = blocker.getsockname()[1]
        assert main(["--host", "127.0.0.1", "--port", str(port)]) == 1
    assert "Error:" in capsys.readouterr().err


def test_main_rejects_out_of_range_port():
    with pytest.raises(SystemExit) as info:
        main(["--port", "70000"])
    assert info.value.code == 2