"""Blocking NATS connections.

nats-py is asyncio based while every demonstration is a plain sequential
script. One event loop runs on a background thread for the whole process;
each blocking call made here submits a coroutine to that loop and waits for
its result.

Message callbacks never run on the loop thread. Each callback subscription
owns a single worker thread, so a handler can issue blocking calls of its own
(responding to a request, publishing a log entry) and messages are still
handled in the order they arrived.
"""

from __future__ import annotations

import asyncio
import atexit
import concurrent.futures
import logging
import threading
import weakref
from queue import Empty, SimpleQueue
from typing import Callable, List, Optional, Union

import nats
import nats.errors

from .. import config
from .. import keys
from .base import (
    NoResponders,
    PermissionViolation,
    TransportConnectionError,
    TransportError,
    TransportTimeout,
)


log = logging.getLogger(__name__)

Data = Union[bytes, str]


def _bytes(data: Optional[Data]) -> bytes:
    if data is None:
        return b''
    if isinstance(data, str):
        return data.encode()
    return bytes(data)


class _Loop:
    """Background thread running the event loop shared by all connections."""

    def __init__(self):
        self.loop = asyncio.new_event_loop()
        self._ready = threading.Event()
        self._thread = threading.Thread(target=self._run, name='natsauth-loop', daemon=True)
        self._thread.start()
        self._ready.wait(timeout=10)

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        self.loop.call_soon(self._ready.set)
        self.loop.run_forever()

    def run(self, coroutine):
        """Run *coroutine* on the loop and block until it completes."""
        if threading.current_thread() is self._thread:
            coroutine.close()
            raise RuntimeError('blocking transport call made from the event loop thread')

        future = asyncio.run_coroutine_threadsafe(coroutine, self.loop)
        return future.result()


_loop: Optional[_Loop] = None
_loop_lock = threading.Lock()


def _shared_loop() -> _Loop:
    global _loop
    with _loop_lock:
        if _loop is None:
            _loop = _Loop()
        return _loop


class Message:
    """A received message. Replies go out through the connection it arrived on."""

    def __init__(self, connection: "Connection", subject: str, reply: Optional[str], data: bytes):
        self.connection = connection
        self.subject = subject
        self.reply = reply or None
        self.data = data

    @property
    def text(self) -> str:
        return self.data.decode(errors='replace')

    def respond(self, data: Data) -> None:
        """Publish *data* to the reply subject, subject to the same
        permission check as any other publish."""
        if self.reply is None:
            raise TransportError(f'message on {self.subject!r} has no reply subject')
        self.connection.publish(self.reply, data)

    def __repr__(self) -> str:
        return f'Message({self.subject!r}, reply={self.reply!r}, data={self.data!r})'


class Subscription:
    """Interest in a subject, optionally as a member of a queue group.

    Without a *callback* the subscription is synchronous and messages are
    retrieved with :meth:`next_msg`.
    """

    def __init__(
        self,
        connection: "Connection",
        subject: str,
        queue: Optional[str] = None,
        callback: Optional[Callable[[Message], None]] = None,
    ):
        self.connection = connection
        self.subject = subject
        self.queue = queue or None
        self.callback = callback

        self._sub = None
        self._active = True
        self._inbox: SimpleQueue = SimpleQueue()
        self._workers: Optional[concurrent.futures.ThreadPoolExecutor] = None

        if callback is not None:
            self._workers = concurrent.futures.ThreadPoolExecutor(
                max_workers=1, thread_name_prefix=f'natsauth-{subject}'
            )

    async def _deliver(self, msg) -> None:
        if not self._active:
            return

        message = Message(self.connection, msg.subject, msg.reply, msg.data)

        if self._workers is None:
            self._inbox.put(message)
        else:
            self._workers.submit(self._dispatch, message)

    def _dispatch(self, message: Message) -> None:
        try:
            self.callback(message)
        except Exception:
            log.exception('handler for %r raised an exception', self.subject)

    def next_msg(self, timeout: Optional[float] = None) -> Message:
        if self._workers is not None:
            raise TransportError('next_msg() is only available on synchronous subscriptions')

        if timeout is None:
            timeout = config.timeout

        try:
            return self._inbox.get(timeout=timeout)
        except Empty:
            raise TransportTimeout(f'{self.subject}: no message in {timeout:.2f} sec') from None

    def unsubscribe(self) -> None:
        if not self._active:
            return

        self._active = False
        self.connection._forget(self)

        sub = self._sub
        self._sub = None

        if sub is not None and not self.connection.is_closed:
            self.connection._run(self.connection._unsubscribe(sub))

        if self._workers is not None:
            self._workers.shutdown(wait=False)

    def __repr__(self) -> str:
        return f'Subscription({self.subject!r}, queue={self.queue!r})'


class Connection:
    """A blocking connection to the broker.

    *nkeys_seed* switches authentication to the NKey challenge/response: the
    broker's nonce is signed with the seed and only the public key is sent.
    """

    def __init__(
        self,
        url: str,
        name: Optional[str] = None,
        nkeys_seed: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.url = url
        self.name = name
        self.timeout = config.connect_timeout if timeout is None else timeout

        self._nc = None
        self._loop = _shared_loop()
        self._subscriptions: List[Subscription] = []
        self._violations: List[PermissionViolation] = []
        self._violations_lock = threading.Lock()

        options = dict(
            connect_timeout=self.timeout,
            allow_reconnect=False,
            max_reconnect_attempts=0,
            error_cb=self._error_cb,
        )

        if name is not None:
            options['name'] = name

        if nkeys_seed is not None:
            try:
                keys.from_seed(nkeys_seed)
            except keys.InvalidKey as exc:
                raise TransportConnectionError(f'failed to parse seed: {exc}') from exc
            options['nkeys_seed_str'] = nkeys_seed

        self._nc = self._run(self._connect(options))
        _connections.add(self)

    # --- blocking interface ---

    @property
    def is_closed(self) -> bool:
        return self._nc is None or self._nc.is_closed

    def publish(self, subject: str, data: Data = b'', reply: Optional[str] = None, check: bool = True) -> None:
        """Publish *data* to *subject*. With *check*, the connection is
        flushed and a refusal by the broker raises PermissionViolation."""
        self._run(self._publish(subject, _bytes(data), reply))

        if check:
            self._check('publish', subject)

    def subscribe(
        self,
        subject: str,
        queue: Optional[str] = None,
        callback: Optional[Callable[[Message], None]] = None,
        check: bool = True,
    ) -> Subscription:
        subscription = Subscription(self, subject, queue, callback)
        subscription._sub = self._run(self._subscribe(subject, queue, subscription._deliver))
        self._subscriptions.append(subscription)

        if check:
            try:
                self._check('subscription', subject, queue)
            except PermissionViolation:
                subscription.unsubscribe()
                raise

        return subscription

    def request(self, subject: str, data: Data = b'', timeout: Optional[float] = None) -> Message:
        if timeout is None:
            timeout = config.timeout

        try:
            msg = self._run(self._request(subject, _bytes(data), timeout))
        except TransportTimeout:
            # A refused publish looks like a timeout to the requestor.
            self._check('publish', subject)
            raise

        return Message(self, msg.subject, msg.reply, msg.data)

    def new_inbox(self) -> str:
        return self._nc.new_inbox()

    def flush(self, timeout: Optional[float] = None) -> None:
        if timeout is None:
            timeout = config.timeout
        self._run(self._flush(timeout))

    def close(self) -> None:
        if self.is_closed:
            return

        for subscription in list(self._subscriptions):
            subscription._active = False
            if subscription._workers is not None:
                subscription._workers.shutdown(wait=False)
        self._subscriptions.clear()

        self._run(self._close())
        _connections.discard(self)

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f'Connection({self.url!r}, name={self.name!r})'

    # --- internals ---

    def _run(self, coroutine):
        return self._loop.run(coroutine)

    def _forget(self, subscription: Subscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass

    def _check(self, operation: str, subject: str, queue: Optional[str] = None) -> None:
        self.flush()

        with self._violations_lock:
            for violation in self._violations:
                if violation.matches(operation, subject, queue):
                    self._violations.remove(violation)
                    raise violation

    async def _error_cb(self, error: Exception) -> None:
        violation = PermissionViolation.parse(str(error))

        if violation is not None:
            with self._violations_lock:
                self._violations.append(violation)
        elif self._nc is None:
            log.debug('%s: %s', self.url, error)
        else:
            log.warning('%s: %s', self.url, error)

    async def _connect(self, options: dict):
        try:
            return await nats.connect(self.url, **options)
        except (nats.errors.Error, OSError, asyncio.TimeoutError) as exc:
            raise TransportConnectionError(f'{self.url}: {str(exc) or type(exc).__name__}') from exc

    async def _publish(self, subject: str, payload: bytes, reply: Optional[str]) -> None:
        try:
            await self._nc.publish(subject, payload, reply=reply or '')
        except nats.errors.Error as exc:
            raise TransportError(f'publish to {subject!r} failed: {exc}') from exc

    async def _subscribe(self, subject: str, queue: Optional[str], callback):
        try:
            return await self._nc.subscribe(subject, queue=queue or '', cb=callback)
        except nats.errors.Error as exc:
            raise TransportError(f'subscribe to {subject!r} failed: {exc}') from exc

    async def _unsubscribe(self, sub) -> None:
        try:
            await sub.unsubscribe()
        except nats.errors.Error as exc:
            raise TransportError(f'unsubscribe from {sub.subject!r} failed: {exc}') from exc

    async def _request(self, subject: str, payload: bytes, timeout: float):
        try:
            return await self._nc.request(subject, payload, timeout=timeout)
        except nats.errors.NoRespondersError as exc:
            raise NoResponders(f'no responders available on {subject!r}') from exc
        except (nats.errors.TimeoutError, asyncio.TimeoutError) as exc:
            raise TransportTimeout(f'{subject}: no response in {timeout:.2f} sec') from exc

    async def _flush(self, timeout: float) -> None:
        try:
            await self._nc.flush(timeout=timeout)
        except (nats.errors.TimeoutError, asyncio.TimeoutError) as exc:
            raise TransportTimeout(f'flush: no reply from the broker in {timeout:.2f} sec') from exc
        except nats.errors.Error as exc:
            raise TransportError(f'flush failed: {exc}') from exc

    async def _close(self) -> None:
        await self._nc.close()


_connections: "weakref.WeakSet[Connection]" = weakref.WeakSet()


def connect(
    url: str,
    name: Optional[str] = None,
    nkeys_seed: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Connection:
    """Open a blocking connection to the broker at *url*."""
    return Connection(url, name=name, nkeys_seed=nkeys_seed, timeout=timeout)


def close_all() -> None:
    for connection in list(_connections):
        try:
            connection.close()
        except TransportError as exc:
            log.debug('closing %r: %s', connection, exc)


atexit.register(close_all)
