import itertools
import pytest
import urllib.parse

import nats
import nats.errors

import natsauth
from natsauth import config
from natsauth import transport


@pytest.fixture
def fast(monkeypatch):
    """ Shrink every fixed wait so the demos run in a blink.
    """

    monkeypatch.setattr(config, 'settle', 0.001)
    monkeypatch.setattr(config, 'timeout', 0.3)



def match(pattern, subject):
    """ Subject matching with NATS wildcards: '*' matches one token, '>' one
        or more trailing tokens.
    """

    pattern = pattern.split('.')
    subject = subject.split('.')

    for index, token in enumerate(pattern):
        if token == '>':
            return len(subject) > index
        if index >= len(subject):
            return False
        if token != '*' and token != subject[index]:
            return False

    return len(pattern) == len(subject)


###
### A stand-in for the asyncio nats-py client, used to exercise the
### blocking transport without a broker.
###

class FakeNatsMsg:

    def __init__(self, subject, reply, data):
        self.subject = subject
        self.reply = reply
        self.data = data


class FakeNatsSubscription:

    def __init__(self, client, subject, queue, cb):
        self.client = client
        self.subject = subject
        self.queue = queue
        self.cb = cb

    async def unsubscribe(self):
        self.client.subscriptions.remove(self)


class FakeNatsClient:

    inboxes = itertools.count(1)

    def __init__(self, url, options):
        self.url = url
        self.options = options
        self.error_cb = options['error_cb']
        self.subscriptions = list()
        self.published = list()
        self.denied = set()
        self.responders = dict()
        self.pending_errors = list()
        self.is_closed = False

    async def publish(self, subject, payload=b'', reply=''):
        self.published.append((subject, payload, reply))

        if ('publish', subject) in self.denied:
            self.pending_errors.append('nats: permissions violation for publish to "%s"' % (subject))
            return

        for subscription in list(self.subscriptions):
            if match(subscription.subject, subject):
                await subscription.cb(FakeNatsMsg(subject, reply, payload))

    async def subscribe(self, subject, queue='', cb=None):
        subscription = FakeNatsSubscription(self, subject, queue, cb)
        self.subscriptions.append(subscription)

        if ('subscription', subject) in self.denied:
            error = 'nats: permissions violation for subscription to "%s"' % (subject)
            if queue:
                error += ' using queue "%s"' % (queue)
            self.pending_errors.append(error)

        return subscription

    async def flush(self, timeout=10):
        errors = self.pending_errors
        self.pending_errors = list()

        for error in errors:
            await self.error_cb(nats.errors.Error(error))

    async def request(self, subject, payload=b'', timeout=0.5):
        if ('publish', subject) in self.denied:
            self.pending_errors.append('nats: permissions violation for publish to "%s"' % (subject))
            raise nats.errors.TimeoutError

        try:
            responder = self.responders[subject]
        except KeyError:
            raise nats.errors.NoRespondersError

        if responder is None:
            raise nats.errors.TimeoutError

        return FakeNatsMsg('_INBOX.reply', '', responder(payload))

    def new_inbox(self):
        return '_INBOX.fake%d' % (next(self.inboxes))

    async def close(self):
        self.is_closed = True


@pytest.fixture
def fake_nats(monkeypatch):
    """ Replace nats.connect; the fixture value lists the connect attempts,
        and setting refuse to an exception makes the next attempt fail.
    """

    class Recorder:
        def __init__(self):
            self.refuse = None
            self.clients = list()

    recorder = Recorder()

    async def connect(url, **options):
        if recorder.refuse is not None:
            raise recorder.refuse
        client = FakeNatsClient(url, options)
        recorder.clients.append(client)
        return client

    monkeypatch.setattr(nats, 'connect', connect)
    yield recorder
    transport.close_all()


###
### An in-memory broker standing in for transport.connect, so the demos can
### be run end to end. It knows just enough about permissions, queue
### groups, accounts, and imports to tell the demos apart.
###

class Permissions:

    def __init__(self, publish=('>',), publish_deny=(), subscribe=('>',), subscribe_deny=(), responses=0):
        self.publish = tuple(publish)
        self.publish_deny = tuple(publish_deny)
        self.subscribe = tuple(subscribe)
        self.subscribe_deny = tuple(subscribe_deny)
        self.responses = responses


def _subscribe_match(entry, subject, queue):

    if ' ' in entry:
        entry_subject, entry_queue = entry.split(' ', 1)
    else:
        entry_subject, entry_queue = entry, None

    if not match(entry_subject, subject):
        return False
    if entry_queue is None:
        return True
    return queue is not None and match(entry_queue, queue)


class FakeMessage:

    def __init__(self, connection, subject, reply, data):
        self.connection = connection
        self.subject = subject
        self.reply = reply
        self.data = data

    @property
    def text(self):
        return self.data.decode()

    def respond(self, data):
        self.connection.publish(self.reply, data)


class FakeSubscription:

    def __init__(self, connection, subject, queue, callback):
        self.connection = connection
        self.subject = subject
        self.queue = queue
        self.callback = callback
        self.inbox = list()

    def deliver(self, message):
        if self.callback is None:
            self.inbox.append(message)
        else:
            self.callback(message)

    def next_msg(self, timeout=None):
        if not self.inbox:
            raise transport.TransportTimeout('nothing on ' + self.subject)
        return self.inbox.pop(0)

    def unsubscribe(self):
        try:
            self.connection.broker.subscriptions.remove(self)
        except ValueError:
            pass


class FakeConnection:

    def __init__(self, broker, user, account):
        self.broker = broker
        self.user = user
        self.account = account
        self.permissions = broker.permissions.get(user, Permissions())
        self.received = set()
        self.responses = dict()
        self.sent = 0
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        self.closed = True
        for subscription in list(self.broker.subscriptions):
            if subscription.connection is self:
                subscription.unsubscribe()

    def _may_publish(self, subject):

        for entry in self.permissions.publish_deny:
            if match(entry, subject):
                return False

        for entry in self.permissions.publish:
            if match(entry, subject):
                return True

        if subject in self.received and self.permissions.responses:
            count = self.responses.get(subject, 0)
            if count < self.permissions.responses:
                self.responses[subject] = count + 1
                return True

        return False

    def _may_subscribe(self, subject, queue):

        for entry in self.permissions.subscribe_deny:
            if _subscribe_match(entry, subject, queue):
                return False

        for entry in self.permissions.subscribe:
            if _subscribe_match(entry, subject, queue):
                return True

        return False

    def publish(self, subject, data=b'', reply=None, check=True):
        if isinstance(data, str):
            data = data.encode()

        self.broker.log.append((self.user, 'publish', subject))

        limit = self.broker.broken.get(self.user)
        if limit is not None and self.sent >= limit:
            raise transport.TransportTimeout('flush: no reply from the broker')
        self.sent += 1

        if not self._may_publish(subject):
            if check:
                raise transport.PermissionViolation('publish', subject)
            return

        self.broker.route(self, subject, reply, data)

    def subscribe(self, subject, queue=None, callback=None, check=True):
        if not self._may_subscribe(subject, queue):
            raise transport.PermissionViolation('subscription', subject, queue)

        subscription = FakeSubscription(self, subject, queue, callback)
        self.broker.subscriptions.append(subscription)
        return subscription

    def request(self, subject, data=b'', timeout=None):
        inbox = self.new_inbox()
        subscription = self.subscribe(inbox)

        try:
            account, target = self.broker.service(self.account, subject)
            if not self.broker.interested(account, target):
                raise transport.NoResponders('no responders on ' + subject)

            self.publish(subject, data, reply=inbox)
            return subscription.next_msg(timeout)
        finally:
            subscription.unsubscribe()

    def new_inbox(self):
        return '_INBOX.%s.%d' % (self.user, next(self.broker.inboxes))

    def flush(self, timeout=None):
        pass


class FakeBroker:

    def __init__(self):
        self.permissions = dict()
        self.accounts = dict()
        self.no_auth_user = None
        self.refused = set()
        self.broken = dict()
        self.streams = list()
        self.services = list()
        self.subscriptions = list()
        self.connections = list()
        self.log = list()
        self.inboxes = itertools.count(1)
        self._queue_turns = dict()

    def permit(self, user, account='$G', **kwargs):
        self.permissions[user] = Permissions(**kwargs)
        self.accounts[user] = account

    def connect(self, url, name=None, nkeys_seed=None, timeout=None):
        parsed = urllib.parse.urlparse(url)
        user = parsed.username

        if user is None and nkeys_seed is not None:
            user = name
        if user is None:
            user = self.no_auth_user

        if user in self.refused:
            raise transport.TransportConnectionError('%s: authorization violation' % (url))

        account = self.accounts.get(user, '$G')
        connection = FakeConnection(self, user, account)
        self.connections.append(connection)
        return connection

    def service(self, account, subject):
        for importer, local, exporter, remote in self.services:
            if importer == account and local == subject:
                return exporter, remote
        return account, subject

    def interested(self, account, subject):
        for subscription in self.subscriptions:
            if subscription.connection.account == account and match(subscription.subject, subject):
                return True
        return False

    def _deliver(self, account, subject, reply, data, origin):

        groups = dict()
        plain = list()

        for subscription in list(self.subscriptions):
            if subscription.connection.account != account and not subject.startswith('_INBOX.'):
                continue
            if not match(subscription.subject, subject):
                continue
            if subscription.queue is None:
                plain.append(subscription)
            else:
                groups.setdefault((account, subscription.queue), list()).append(subscription)

        chosen = list(plain)
        for key, members in groups.items():
            turn = self._queue_turns.get(key, 0)
            chosen.append(members[turn % len(members)])
            self._queue_turns[key] = turn + 1

        for subscription in chosen:
            if reply is not None:
                subscription.connection.received.add(reply)
            subscription.deliver(FakeMessage(subscription.connection, subject, reply, data))

    def route(self, origin, subject, reply, data):

        account, target = self.service(origin.account, subject)
        self._deliver(account, target, reply, data, origin)

        if (account, target) != (origin.account, subject):
            return

        for exporter, pattern, importer, prefix in self.streams:
            if exporter == origin.account and match(pattern, subject):
                self._deliver(importer, prefix + subject, reply, data, origin)


@pytest.fixture
def broker(monkeypatch, fast):
    broker = FakeBroker()
    monkeypatch.setattr(natsauth.transport, 'connect', broker.connect)
    return broker


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
