""" Multi-tenancy with accounts. Each account is its own subject namespace;
    traffic only crosses between accounts through explicit exports and
    imports, which may restrict who can import, add a prefix, or remap the
    subject entirely. All three demos share one broker configuration.
"""

import contextlib

from .. import config
from .. import report
from ..transport import TransportError, TransportTimeout
from .base import connect, log, settle


users = (
    ('Account A', 'user_a', 'pass_a'),
    ('Account B', 'user_b', 'pass_b'),
    ('Account C', 'user_c', 'pass_c'),
)


def _connect_all(stack):

    connections = list()

    for label, user, password in users:
        connection = connect(stack, label, config.url('accounts', user, password))
        if connection is None:
            return None
        connections.append(connection)

    return connections



def _receive(subscription, timeout=None):
    """ Return the next message, or None if nothing arrives in time.
    """

    if timeout is None:
        timeout = config.settle * 2.5

    try:
        return subscription.next_msg(timeout)
    except TransportTimeout:
        return None



def _isolation(a, b):

    report.step(1, 'Testing Account Isolation:')

    try:
        subscription = b.subscribe('private.data')
    except TransportError as error:
        log.error('Account B subscribe failed: %s', error)
        return False

    report.say("Account A publishing to 'private.data'...", indent=1)
    a.publish('private.data', 'Message from A')

    # B should see nothing; the accounts do not share subjects.

    settle()
    if _receive(subscription) is None:
        report.ok('Account B correctly did NOT receive message from Account A', indent=1)
        report.note('(Accounts are isolated)', indent=2)
    else:
        report.fail('Account B received message (isolation failed)', indent=1)
    subscription.unsubscribe()

    report.say('')
    report.say("Account B publishing to 'private.data'...", indent=1)
    subscription = b.subscribe('private.data')
    b.publish('private.data', 'Message from B')

    message = _receive(subscription)
    if message is not None:
        report.ok('Account B received its own message: ' + message.text, indent=1)
    else:
        report.fail('Account B did not receive its own message', indent=1)
    subscription.unsubscribe()

    return True



def run_isolation():

    report.banner('Account Isolation Demo')

    with contextlib.ExitStack() as stack:
        connections = _connect_all(stack)
        if connections is None:
            return

        a, b, c = connections

        try:
            if not _isolation(a, b):
                return
        except TransportError as error:
            log.error('Account isolation demo aborted: %s', error)
            return

    report.banner('Account Isolation Demo Complete')



def _public_stream(a, c):

    report.step(1, 'Testing Public Stream Export (puba.>):')

    try:
        subscription = c.subscribe('from_a.puba.events')
    except TransportError as error:
        log.error('Account C subscribe failed: %s', error)
        return False

    report.say("Account A publishing to 'puba.events'...", indent=1)
    a.publish('puba.events', 'Public event from A')
    settle()

    message = _receive(subscription)
    if message is not None:
        report.ok('Account C received: ' + message.text, indent=1)
        report.note("(Imported as 'from_a.puba.events' - note the prefix)", indent=2)
    else:
        report.fail('Account C did not receive message', indent=1)

    subscription.unsubscribe()
    return True



def _private_stream(a, b, c):

    report.step(2, 'Testing Private Stream Export (b.> - only for Account B):')

    try:
        subscription = b.subscribe('b.data')
    except TransportError as error:
        log.error('Account B subscribe failed: %s', error)
        return False

    report.say("Account A publishing to 'b.data'...", indent=1)
    a.publish('b.data', 'Private data for B')
    settle()

    message = _receive(subscription)
    if message is not None:
        report.ok('Account B received: ' + message.text, indent=1)
        report.note('(Private stream - only Account B can import this)', indent=2)
    else:
        report.fail('Account B did not receive message', indent=1)
    subscription.unsubscribe()

    try:
        subscription = c.subscribe('b.data')
    except TransportError as error:
        log.error('Account C subscribe failed: %s', error)
        return True

    a.publish('b.data', 'Should not reach C')
    settle()

    if _receive(subscription) is None:
        report.ok('Account C correctly cannot access private stream for B', indent=1)
    else:
        report.fail('Account C received a message from the private stream for B', indent=1)
    subscription.unsubscribe()

    return True



def _public_service(a, c):

    report.step(3, 'Testing Public Service Export with Remapping:')

    def handler(message):
        report.say("Account A service received request: " + message.text, indent=1)
        message.respond("Response from A's service")

    try:
        a.subscribe('pubq.C', callback=handler)
    except TransportError as error:
        log.error('Account A service setup failed: %s', error)
        return False

    report.say("Account C making request to 'Q' (remapped to 'pubq.C')...", indent=1)
    try:
        response = c.request('Q', 'Request from C')
    except TransportError as error:
        log.error('  Account C request failed: %s', error)
    else:
        report.ok('Account C received response: ' + response.text, indent=1)
        report.note("(Subject remapping: C publishes to 'Q', A receives on 'pubq.C')", indent=2)

    return True



def _private_service(a, b):

    report.step(4, 'Testing Private Service Export (q.b - only for Account B):')

    def handler(message):
        report.say('Account A private service received request: ' + message.text, indent=1)
        message.respond('Private response for B')

    try:
        a.subscribe('q.b', callback=handler)
    except TransportError as error:
        log.error('Account A private service setup failed: %s', error)
        return False

    report.say("Account B making request to 'q.b'...", indent=1)
    try:
        response = b.request('q.b', 'Request from B')
    except TransportError as error:
        log.error('  Account B request failed: %s', error)
    else:
        report.ok('Account B received response: ' + response.text, indent=1)
        report.note('(Private service - only Account B can access)', indent=2)

    return True



def run_exports():

    report.banner('Account Export/Import Demo')

    with contextlib.ExitStack() as stack:
        connections = _connect_all(stack)
        if connections is None:
            return

        a, b, c = connections

        try:
            if not _public_stream(a, c):
                return
            if not _private_stream(a, b, c):
                return
            if not _public_service(a, c):
                return
            if not _private_service(a, b):
                return
        except TransportError as error:
            log.error('Account export demo aborted: %s', error)
            return

    report.banner('Account Export/Import Demo Complete')



def run_no_auth():

    report.banner('No Auth User Demo')

    with contextlib.ExitStack() as stack:

        report.step(1, 'Connecting without credentials (uses no_auth_user):')
        connection = connect(stack, 'No-auth', config.url('accounts'))
        if connection is None:
            return

        report.ok('Connected successfully without credentials', indent=1)
        report.note('(Automatically assigned to user_a in Account A)', indent=2)

        report.step(2, 'Testing access as Account A user:')
        try:
            connection.publish('puba.test', 'Message from no-auth user')
        except TransportError as error:
            log.error('  No-auth publish failed: %s', error)
        else:
            report.ok("Successfully published to 'puba.test'", indent=1)
            report.note('(Has same permissions as user_a in Account A)', indent=2)

    report.banner('No Auth User Demo Complete')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
