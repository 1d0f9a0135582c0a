# gategate

A small asyncio HTTP gateway server. It accepts HTTP/1.0 and HTTP/1.1
connections, serves exactly one request on each and then closes it. `GET` and
`POST` requests are routed to handlers registered by path. A request to a path
with no handler is answered with `404` and the body `url not found!`.

One event loop accepts connections and hands each one to a small pool of
event loops (`gategate.server.LoopPool`, two loops by default), each running
in its own thread.

## Installing

```
pip install .
```

## Running the server

```
gategate
gategate --host 127.0.0.1 --port 9000
```

The command listens on `0.0.0.0:8080` unless told otherwise, prints
`GateServer listening on port <port>`, and stops on `SIGINT` or `SIGTERM`.
It exits with status 1 and prints `Error: ...` if the server cannot start.

## Registering routes

```python
import asyncio

from gategate.logic import LogicSystem
from gategate.server import GateServer

logic = LogicSystem()

def hello(connection):
    name = connection.params.get("name", "world")
    connection.response.body += f"hello {name}\r\n".encode()

logic.reg_get("/hello", hello)

server = GateServer("0.0.0.0", 8080, logic, 60)
asyncio.run(server.serve_forever())
```

A handler receives the `HttpConnection` and fills in its `response`
(an `HttpResponse` with `status`, `headers` and a `bytearray` `body`). It can
read the parsed `request` (`HttpRequest`: `method`, `target`, `version`,
lower-case `headers`, `body`). For `GET`, the path without the query string is
in `connection.url` and the decoded query parameters in `connection.params`;
`POST` handlers are matched on the full request target. When a handler is
found the reply gets status `200` and a `Server: GateServer` header. Requests
with other methods are closed without a reply.

`GateServer.start()` binds and begins accepting and returns the bound port
(pass port `0` to get a free one); `GateServer.stop()` stops accepting and
shuts the loop pool down. The `timeout` argument (60 seconds by default)
bounds the time from the start of a connection until its response has been
sent; past it, the connection is closed without a reply.

## Other modules

- `gategate.config.Config` — INI configuration. `Config.from_file(path)` reads
  a file; `Config.instance()` reads `config.ini` from the current directory
  once and shares it. `config["Section"]["Key"]` returns `""` for a missing
  section or key. `sections()` lists section names sorted; `dump()` renders
  them as `[name]` and `key=value` lines.
- `gategate.pool.ConnectionPool` — a thread-safe pool that hands out
  connections first in, first out. `acquire(timeout)` waits for a free one and
  raises `TimeoutError` on timeout or `PoolClosedError` once the pool is
  closed; `release(conn)` gives it back (after `close()` the connection is
  closed instead); `connection()` is a context manager that borrows one.
- `gategate.urlcodec` — `url_encode` (`+` for spaces, upper-case `%XX` for
  other bytes), `url_decode` (raises `ValueError` on a malformed escape) and
  `parse_target`, which splits a target into its path and a dict of decoded
  query parameters.
- `gategate.redis_store.RedisStore` — `get`, `set`, `lpush`, `lpop`, `rpush`,
  `rpop`, `hset`, `hget`, `hdel`, `delete` and `exists` over a pool of Redis
  clients made by `create_redis_pool(size, host, port, password)`. Failures
  are reported through the return value (`False`, `None` or `""`) rather than
  raised. `close()` closes the pool.

## Configuration

`config.ini` holds sections such as:

```ini
[Redis]
Host = 127.0.0.1
Port = 6380
Passwd = password
```

`RedisStore.from_config(Config.instance())` builds a store with a pool of five
clients from the `[Redis]` section.

## What it does not do

The `gategate` command starts the server with an empty routing table, so
every request it receives is answered with `404`. The package ships no
application routes, no user accounts or database storage, and no client for
verification-code or status services; routes have to be registered with a
`LogicSystem` in your own code, as above. The Redis store is not wired into
the server.

## Tests

```
pip install .[test]
pytest
```