# mqttkit

Pure-Python building blocks for an MQTT 3.1.1 client. The package has no
runtime dependencies and needs Python 3.10 or later.

- `mqttkit.status`: a thread-safe state machine for the connection status
  (`ConnectionStatus`, `Status`). It coordinates connecting, disconnecting,
  losing a connection and reconnecting.
- `mqttkit.topic`: checks topic filters and QoS levels before a subscribe
  (`validate_topic_and_qos`, `validate_subscribe_map`).
- `mqttkit.router`: matches topic filters, including `+`, `#` and
  `$share/<group>/...` filters, and delivers incoming messages to handlers
  (`Router`, `Route`, `match`, `route_split`, `route_includes_topic`).
- `mqttkit.store`: key helpers for message persistence
  (`inbound_key_from_mid`, `outbound_key_from_mid`, `mid_from_key`,
  `is_key_inbound`, `is_key_outbound`) and the abstract `Store` interface.

## Installation

```
pip install .
```

## Connection status

`ConnectionStatus` starts in `Status.DISCONNECTED` (or in the status passed to
it). Each transitional state is owned by whoever entered it, through the
completion function that the call returns.

```python
from mqttkit.status import ConnectionStatus, Status

status = ConnectionStatus()
complete = status.connecting()       # disconnected -> connecting
complete(True)                       # connecting -> connected
assert status.status() is Status.CONNECTED

handled = status.connection_lost(True)   # connected -> disconnecting
complete = handled(True)                 # disconnecting -> reconnecting
complete(True)                           # reconnecting -> connected

finish = status.disconnecting()      # connected -> disconnecting
finish()                             # disconnecting -> disconnected
```

`status_retry()` returns the status together with whether a reconnect is
expected. `force_status()` sets the status without any checks.

A transition that is not allowed raises a subclass of `StatusError`:

- `AlreadyConnectedOrReconnectingError` and `StatusMustBeDisconnectedError`
  come from `connecting()`.
- `AlreadyDisconnectedError` is raised when there is nothing left to
  disconnect.
- `DisconnectionInProgressError` comes from `connection_lost()` during a
  disconnect.
- `AbortConnectionError` comes from a connect completion that follows a
  disconnect request.
- `DisconnectionRequestedError` comes from a connection-lost handler when a
  reconnect was cancelled.

If `disconnecting()` or `connection_lost()` is called while a connect or
reconnect is in progress, the call sets the status to `DISCONNECTING`. It then
blocks until that attempt completes.

## Topic validation

```python
from mqttkit.topic import (
    InvalidTopicMultilevelError,
    validate_subscribe_map,
    validate_topic_and_qos,
)

validate_topic_and_qos("sensors/+/temp", 1)
try:
    validate_topic_and_qos("a/#/c", 0)
except InvalidTopicMultilevelError:
    ...

topics, qos_levels = validate_subscribe_map({"a/b": 0, "c/#": 2})
```

An empty topic raises `InvalidTopicEmptyStringError`, and a QoS above 2 raises
`InvalidQosError`. An empty subscribe map raises `TopicError`. All of these
errors are subclasses of `TopicError`, which is itself a `ValueError`.

## Routing

```python
from mqttkit.router import Router, route_includes_topic

assert route_includes_topic("home/+/temp", "home/kitchen/temp")
assert route_includes_topic("$share/group/home/#", "home/kitchen")

router = Router()
router.add_route("home/#", lambda client, message: print(message.topic))
router.set_default_handler(lambda client, message: None)
handlers = router.handlers_for("home/kitchen")
```

Routes are kept in the order they were added. Adding a route for an existing
filter replaces its callback. The default handler is used only when no route
matches.

`Router.match_and_dispatch(messages, order=True, client=None, auto_ack=True)`
takes any iterable of messages. Each message must have a `topic` attribute and
an `ack()` method. Every handler is called as `handler(client, message)`, and
the message is then acknowledged unless `auto_ack` is false. A message with no
handler is not acknowledged. With `order=True` the handlers run one after
another in the calling thread. With `order=False` they run on a thread pool of
at most `goroutine_limit` workers (1000 by default), and an exception from a
handler is logged rather than raised. The call returns once all handlers have
finished. It gives back the number of messages that had at least one handler.

Diagnostics go to the standard `logging` logger `mqttkit.router`.

## Store keys

```python
from mqttkit.store import inbound_key_from_mid, mid_from_key, is_key_inbound

key = inbound_key_from_mid(91)   # "i.91"
assert is_key_inbound(key)
assert mid_from_key(key) == 91
```

`mid_from_key` raises `ValueError` when the part after the prefix is not a
decimal number or is above 65535. `Store` is an abstract base class with
`open`, `put`, `get`, `all`, `delete`, `close` and `reset`. Used as a context
manager, it opens on entry and closes on exit.

## What this package does not do

mqttkit does not talk to a broker. It has no network connection, no websocket
transport, no encoding or decoding of MQTT packets, and no keepalive pings.
`Store` is an interface only: no in-memory or file-backed store comes with
the package, and no logic decides which packets are persisted. These pieces
are meant to be used inside a client that provides all of that.

## Running the tests

```
pip install ".[test]"
pytest
```