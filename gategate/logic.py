"""Routing table that maps request paths to GET and POST handlers."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gategate.http_connection import HttpConnection

Handler = Callable[["HttpConnection"], None]


class LogicSystem:
    """Dispatches a request path to the handler registered for it.

    A handler receives the connection and fills in its ``response``; it can
    read ``request``, ``url`` and ``params`` from the same object.
    """

    def __init__(self) -> None:
        self._get_handlers: dict[str, Handler] = {}
        self._post_handlers: dict[str, Handler] = {}

    def reg_get(self, path: str, handler: Handler) -> None:
        """Register ``handler`` for GET requests to ``path``."""
        self._get_handlers[path] = handler

    def reg_post(self, path: str, handler: Handler) -> None:
        """Register ``handler`` for POST requests to ``path``."""
        self._post_handlers[path] = handler

    def handle_get(self, path: str, connection: HttpConnection) -> bool:
        """Run the GET handler for ``path``; False when none is registered."""
        return self._dispatch(self._get_handlers, path, connection)

    def handle_post(self, path: str, connection: HttpConnection) -> bool:
        """Run the POST handler for ``path``; False when none is registered."""
        return self._dispatch(self._post_handlers, path, connection)

    @staticmethod
    def _dispatch(
        table: dict[str, Handler], path: str, connection: HttpConnection
    ) -> bool:
        handler = table.get(path)
        if handler is None:
            return False
        handler(connection)
        return True