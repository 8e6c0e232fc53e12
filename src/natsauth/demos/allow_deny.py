""" Explicit allow and deny lists. A deny entry wins over an overlapping
    allow entry, which is how the limited user can publish to events.> but
    not to events.private.
"""

import contextlib

from .. import config
from .. import report
from ..transport import PermissionViolation, TransportError
from .base import connect, log


def _expect_denied_publish(connection, label, subject, text):

    try:
        connection.publish(subject, 'Should fail')
    except PermissionViolation as error:
        report.denied(text, error)
    except TransportError as error:
        log.error('%s publish to %s failed: %s', label, subject, error)
    else:
        report.warn("Unexpected: %s allowed to publish to '%s'" % (label, subject))



def run():

    report.banner('Allow/Deny Authorization Demo')

    with contextlib.ExitStack() as stack:

        report.step(1, 'Testing Limited User:')
        limited = connect(stack, 'Limited', config.url('allow_deny', 'limited', 'limited123'))
        if limited is None:
            return

        for subject, message in (('public.news', 'Public message'),
                                 ('events.user.login', 'Event message')):
            try:
                limited.publish(subject, message)
            except TransportError as error:
                log.error('Limited publish to %s failed: %s', subject, error)
            else:
                report.ok("Limited published to '%s'" % (subject))

        _expect_denied_publish(limited, 'Limited', 'events.private',
                "Limited correctly denied publishing to 'events.private'")

        try:
            subscription = limited.subscribe('client.notifications')
        except TransportError as error:
            log.error('Limited subscribe to client.notifications failed: %s', error)
        else:
            report.ok("Limited subscribed to 'client.notifications'")
            subscription.unsubscribe()

        try:
            subscription = limited.subscribe('admin.commands')
        except PermissionViolation as error:
            report.denied("Limited correctly denied subscribing to 'admin.commands'", error)
        except TransportError as error:
            log.error('Limited subscribe to admin.commands failed: %s', error)
        else:
            report.warn("Unexpected: Limited allowed to subscribe to 'admin.commands'")
            subscription.unsubscribe()


        report.step(2, 'Testing Read-Only User:')
        readonly = connect(stack, 'Readonly', config.url('allow_deny', 'readonly', 'readonly123'))
        if readonly is None:
            return

        try:
            subscription = readonly.subscribe('any.subject.here')
        except TransportError as error:
            log.error('Readonly subscribe failed: %s', error)
        else:
            report.ok("Readonly subscribed to 'any.subject.here'")
            subscription.unsubscribe()

        _expect_denied_publish(readonly, 'Readonly', 'any.subject',
                'Readonly correctly denied publishing')


        report.step(3, 'Testing Admin User:')
        admin = connect(stack, 'Admin', config.url('allow_deny', 'admin', 'admin123'))
        if admin is None:
            return

        report.ok('Admin has full publish/subscribe access to all subjects')

    report.banner('Allow/Deny Authorization Demo Complete')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
