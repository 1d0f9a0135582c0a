"""The gate HTTP server: accepts on one loop, serves on a pool of loops."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import itertools
import logging
import signal
import socket
import sys
import threading

from gategate.http_connection import DEADLINE_SECONDS, HttpConnection
from gategate.logic import LogicSystem

logger = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_POOL_SIZE = 2


class LoopPool:
    """A fixed set of event loops, each running in its own thread."""

    def __init__(self, size: int = DEFAULT_POOL_SIZE) -> None:
        if size < 1:
            raise ValueError("a loop pool needs at least one loop")
        self._loops = [asyncio.new_event_loop() for _ in range(size)]
        self._cycle = itertools.cycle(self._loops)
        self._lock = threading.Lock()
        self._stopped = False
        self._threads = [
            threading.Thread(
                target=self._run, args=(loop,), name=f"gategate-io-{index}", daemon=True
            )
            for index, loop in enumerate(self._loops)
        ]
        for thread in self._threads:
            thread.start()

    @staticmethod
    def _run(loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        try:
            loop.run_forever()
        finally:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            if pending:
                loop.run_until_complete(
                    asyncio.gather(*pending, return_exceptions=True)
                )
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()

    def __len__(self) -> int:
        return len(self._loops)

    def next_loop(self) -> asyncio.AbstractEventLoop:
        """Return the loops in turn; raises RuntimeError after stop."""
        with self._lock:
            if self._stopped:
                raise RuntimeError("loop pool is stopped")
            return next(self._cycle)

    def stop(self) -> None:
        """Stop every loop, cancel its remaining tasks and join its thread."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
        for loop in self._loops:
            loop.call_soon_threadsafe(loop.stop)
        for thread in self._threads:
            thread.join()


class GateServer:
    """Accepts TCP connections and hands each to a pool loop to serve."""

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        logic: LogicSystem | None = None,
        timeout: float = DEADLINE_SECONDS,
    ) -> None:
        self.host = host
        self.port = port
        self._logic = logic if logic is not None else LogicSystem()
        self._timeout = timeout
        self._listener: socket.socket | None = None
        self._loops: LoopPool | None = None
        self._accept_task: asyncio.Task[None] | None = None
        self._stopped = asyncio.Event()

    async def start(self) -> int:
        """Bind, listen and begin accepting; returns the bound port."""
        if self._listener is not None:
            raise RuntimeError("server already started")
        listener = socket.create_server((self.host, self.port), family=socket.AF_INET)
        listener.setblocking(False)
        self._listener = listener
        self.port = listener.getsockname()[1]
        self._loops = LoopPool(DEFAULT_POOL_SIZE)
        self._stopped.clear()
        self._accept_task = asyncio.get_running_loop().create_task(
            self._accept_loop(listener, self._loops)
        )
        return self.port

    async def serve_forever(self) -> None:
        """Start if needed and run until :meth:`stop` is called."""
        if self._listener is None:
            await self.start()
        try:
            await self._stopped.wait()
        finally:
            self.stop()

    def stop(self) -> None:
        """Stop accepting, shut the loop pool down and release serve_forever."""
        listener, self._listener = self._listener, None
        task, self._accept_task = self._accept_task, None
        if task is not None and not task.done():
            task.cancel()
            if listener is not None:
                task.add_done_callback(lambda _task: listener.close())
        elif listener is not None:
            listener.close()
        loops, self._loops = self._loops, None
        if loops is not None:
            loops.stop()
        self._stopped.set()

    async def _accept_loop(self, listener: socket.socket, loops: LoopPool) -> None:
        loop = asyncio.get_running_loop()
        while True:
            try:
                sock, _address = await loop.sock_accept(listener)
            except OSError as exc:
                if listener.fileno() == -1:
                    return
                logger.warning("accept failed: %s", exc)
                await asyncio.sleep(0)
                continue
            try:
                target = loops.next_loop()
                asyncio.run_coroutine_threadsafe(self._serve_socket(sock), target)
            except RuntimeError:
                sock.close()
                return

    async def _serve_socket(self, sock: socket.socket) -> None:
        try:
            reader, writer = await asyncio.open_connection(sock=sock)
        except OSError as exc:
            logger.info("could not open accepted connection: %s", exc)
            sock.close()
            return
        await HttpConnection(reader, writer, self._logic, self._timeout).serve()


def _port(text: str) -> int:
    value = int(text)
    if not 0 <= value <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range: {value}")
    return value


async def _run(host: str, port: int) -> None:
    server = GateServer(host, port, LogicSystem())
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
            loop.add_signal_handler(signum, server.stop)
    await server.start()
    print(f"GateServer listening on port {server.port}", flush=True)
    await server.serve_forever()


def main(argv: list[str] | None = None) -> int:
    """Run the gate server until SIGINT or SIGTERM; returns the exit status."""
    parser = argparse.ArgumentParser(prog="gategate", description="Run the gate HTTP server.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=_port, default=DEFAULT_PORT)
    args = parser.parse_args(argv)
    try:
        asyncio.run(_run(args.host, args.port))
    except KeyboardInterrupt:
        pass
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0