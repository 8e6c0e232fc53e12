""" Basic authorization: one broker, four users, each bound to a permission
    set. Admin may do anything, the client is a requestor, the service is a
    responder, and anyone else gets the default permissions.
"""

import contextlib

from .. import config
from .. import report
from ..transport import PermissionViolation, TransportError
from .base import connect, log


def run():

    report.banner('Basic Authorization Demo')

    with contextlib.ExitStack() as stack:

        report.step(1, 'Testing Admin User (full access):')
        admin = connect(stack, 'Admin', config.url('basic', 'admin', 'admin123'))
        if admin is None:
            return

        try:
            admin.publish('any.subject', 'Admin message')
        except TransportError as error:
            log.error('Admin publish failed: %s', error)
        else:
            report.ok("Admin published to 'any.subject'")

        try:
            subscription = admin.subscribe('any.subject')
        except TransportError as error:
            log.error('Admin subscribe failed: %s', error)
        else:
            report.ok("Admin subscribed to 'any.subject'")
            subscription.unsubscribe()


        report.step(2, 'Testing Client User (requestor role):')
        client = connect(stack, 'Client', config.url('basic', 'client', 'client123'))
        if client is None:
            return

        try:
            client.publish('req.a', 'Request message')
        except TransportError as error:
            log.error('Client publish to req.a failed: %s', error)
        else:
            report.ok("Client published to 'req.a'")

        try:
            client.publish('other.subject', 'Should fail')
        except PermissionViolation as error:
            report.denied("Client correctly denied publishing to 'other.subject'", error)
        except TransportError as error:
            log.error('Client publish to other.subject failed: %s', error)
        else:
            report.warn("Unexpected: Client allowed to publish to 'other.subject'")

        try:
            subscription = client.subscribe('_INBOX.>')
        except TransportError as error:
            log.error('Client subscribe to _INBOX failed: %s', error)
        else:
            report.ok("Client subscribed to '_INBOX.>'")
            subscription.unsubscribe()


        report.step(3, 'Testing Service User (responder role):')
        service = connect(stack, 'Service', config.url('basic', 'service', 'service123'))
        if service is None:
            return

        try:
            subscription = service.subscribe('req.a')
        except TransportError as error:
            log.error('Service subscribe to req.a failed: %s', error)
        else:
            report.ok("Service subscribed to 'req.a'")
            subscription.unsubscribe()

        try:
            service.publish('_INBOX.test123', 'Response message')
        except TransportError as error:
            log.error('Service publish to _INBOX failed: %s', error)
        else:
            report.ok("Service published to '_INBOX.test123'")


        report.step(4, 'Testing Other User (default permissions):')
        other = connect(stack, 'Other', config.url('basic', 'other', 'other123'))
        if other is None:
            return

        try:
            other.publish('SANDBOX.test', 'Sandbox message')
        except TransportError as error:
            log.error('Other publish to SANDBOX failed: %s', error)
        else:
            report.ok("Other published to 'SANDBOX.test'")

        try:
            subscription = other.subscribe('PUBLIC.announcements')
        except TransportError as error:
            log.error('Other subscribe to PUBLIC failed: %s', error)
        else:
            report.ok("Other subscribed to 'PUBLIC.announcements'")
            subscription.unsubscribe()

    report.banner('Basic Authorization Demo Complete')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
