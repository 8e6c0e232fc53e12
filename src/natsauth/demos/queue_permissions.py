""" Queue-group permissions. A subscribe permission of the form
    'subject queue' only admits subscriptions in that queue group, and the
    queue name may itself carry wildcards. The last part of the demo shows
    the broker spreading messages across two members of one group.
"""

import contextlib
import threading

from .. import config
from .. import report
from ..transport import PermissionViolation, TransportError
from .base import connect, log, settle


messages = 10


def _allowed(connection, label, subject, queue, text):

    try:
        subscription = connection.subscribe(subject, queue=queue)
    except TransportError as error:
        if queue is None:
            log.error('%s plain subscribe to %s failed: %s', label, subject, error)
        else:
            log.error('%s queue %s subscribe to %s failed: %s', label, queue, subject, error)
    else:
        report.ok(text)
        subscription.unsubscribe()



def _refused(connection, label, subject, queue, text):

    try:
        subscription = connection.subscribe(subject, queue=queue)
    except PermissionViolation as error:
        report.denied(text, error)
    except TransportError as error:
        log.error('%s subscribe to %s failed: %s', label, subject, error)
    else:
        report.warn("Unexpected: %s allowed to subscribe to '%s' (queue %s)" % (label, subject, repr(queue)))
        subscription.unsubscribe()



def _distribution(stack, workers):

    report.step(3, 'Demonstrating Queue Distribution:')

    publisher = connect(stack, 'Publisher', config.url('queue'))
    if publisher is None:
        return

    received = [0, 0]
    lock = threading.Lock()

    def worker(number):
        def handler(message):
            with lock:
                received[number - 1] += 1
            report.say('Worker %d received message: %s' % (number, message.text), indent=1)
        return handler

    subscriptions = list()

    for number in (1, 2):
        try:
            subscription = workers.subscribe('foo', queue='v1.dev', callback=worker(number))
        except TransportError as error:
            log.error('Worker %d subscribe failed: %s', number, error)
            for subscription in subscriptions:
                subscription.unsubscribe()
            return
        subscriptions.append(subscription)

    # Allow the subscriptions to register.
    settle(0.5)

    report.say("Publishing %d messages to 'foo'..." % (messages), indent=1)

    for number in range(1, messages + 1):
        try:
            publisher.publish('foo', 'Message %d' % (number))
        except TransportError as error:
            log.error('  Publish %d failed: %s', number, error)
        settle(0.25)

    settle(2.5)

    with lock:
        first, second = received

    report.say('')
    report.say('Distribution: Worker 1 = %d messages, Worker 2 = %d messages' % (first, second), indent=1)
    report.ok('Messages distributed across queue group members', indent=1)

    for subscription in subscriptions:
        subscription.unsubscribe()



def run():

    report.banner('Queue Permissions Demo')

    with contextlib.ExitStack() as stack:

        report.step(1, 'Testing Queue-Only User:')
        queue_only = connect(stack, 'Queue-only', config.url('queue', 'queue_only', 'queue123'))
        if queue_only is None:
            return

        _allowed(queue_only, 'Queue-only', 'foo', 'queue',
                "Queue-only subscribed to 'foo' with queue group 'queue'")
        _refused(queue_only, 'Queue-only', 'foo', None,
                "Queue-only correctly denied plain subscription to 'foo'")
        _refused(queue_only, 'Queue-only', 'foo', 'other',
                "Queue-only correctly denied subscription with queue 'other'")


        report.step(2, 'Testing Queue-Restricted User:')
        restricted = connect(stack, 'Queue-restricted', config.url('queue', 'queue_restricted', 'queue456'))
        if restricted is None:
            return

        _allowed(restricted, 'Queue-restricted', 'foo', None,
                "Queue-restricted subscribed to 'foo' (plain)")

        for queue in ('v1', 'v1.dev', 'test.dev'):
            _allowed(restricted, 'Queue-restricted', 'foo', queue,
                    "Queue-restricted subscribed to 'foo' with queue '%s'" % (queue))

        _refused(restricted, 'Queue-restricted', 'foo', 'v1.prod',
                "Queue-restricted correctly denied subscription with queue 'v1.prod'")
        _refused(restricted, 'Queue-restricted', 'bar', 'test.prod',
                "Queue-restricted correctly denied subscription with queue 'test.prod'")

        _distribution(stack, restricted)

    report.banner('Queue Permissions Demo Complete')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
