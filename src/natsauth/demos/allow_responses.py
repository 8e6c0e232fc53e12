""" Responders with temporary reply permissions. None of the services may
    publish anywhere on its own account; allow_responses grants each one the
    right to answer on the reply subject of a request it received, either
    once, or a bounded number of times within an expiry window.
"""

import contextlib
import threading

from .. import config
from .. import report
from ..transport import PermissionViolation, TransportError, TransportTimeout
from .base import connect, log, settle


# Responses the streaming service attempts; the broker allows five.

stream_attempts = 6


def _single(stack, client):

    report.step(1, 'Testing Service with Single Response Permission:')
    service = connect(stack, 'Service single', config.url('allow_responses', 'service_single', 'service123'))
    if service is None:
        return False

    done = threading.Event()

    def handler(message):
        report.say("Service received request on 'requests.single'", indent=1)

        try:
            message.respond('Single response')
        except TransportError as error:
            log.error('  Service response failed: %s', error)
        else:
            report.ok('Service sent single response', indent=1)

        try:
            message.respond('Second response')
        except PermissionViolation as error:
            report.denied('Service correctly denied second response', error, indent=1)
        except TransportError as error:
            log.error('  Service second response failed: %s', error)
        else:
            report.warn('Unexpected: Service allowed to send a second response', indent=1)

        done.set()

    try:
        service.subscribe('requests.single', callback=handler)
    except TransportError as error:
        log.error('Service subscribe failed: %s', error)
        return False

    report.say("Client making request to 'requests.single'...", indent=1)
    try:
        response = client.request('requests.single', 'Request 1')
    except TransportError as error:
        log.error('  Client request failed: %s', error)
    else:
        report.ok('Client received response: ' + response.text, indent=1)

    done.wait(config.timeout)
    return True



def _stream(stack, client):

    report.step(2, 'Testing Service with Stream Response Permission (max 5, 1m expiry):')
    service = connect(stack, 'Service stream', config.url('allow_responses', 'service_stream', 'service456'))
    if service is None:
        return False

    sent = list()
    done = threading.Event()

    def handler(message):
        report.say("Service received request on 'requests.stream'", indent=1)

        for number in range(1, stream_attempts + 1):
            settle(0.5)

            try:
                service.publish(message.reply, 'Response %d' % (number))
            except PermissionViolation as error:
                report.denied('Response %d failed (expected after 5)' % (number), error, indent=1)
                break
            except TransportError as error:
                log.error('  Service response %d failed: %s', number, error)
                break
            else:
                sent.append(number)
                report.ok('Service sent response %d' % (number), indent=1)

        done.set()

    try:
        service.subscribe('requests.stream', callback=handler)
    except TransportError as error:
        log.error('Service stream subscribe failed: %s', error)
        return False

    report.say("Client making request to 'requests.stream'...", indent=1)
    inbox = client.new_inbox()

    try:
        subscription = client.subscribe(inbox)
    except TransportError as error:
        log.error('  Client inbox subscribe failed: %s', error)
        return True

    try:
        client.publish('requests.stream', 'Stream request', reply=inbox)
    except TransportError as error:
        log.error('  Client request failed: %s', error)
    else:
        done.wait(config.timeout + config.settle * stream_attempts)
        report.say('Client checking for responses...', indent=1)

        for number in sent:
            try:
                response = subscription.next_msg(config.settle * 2.5)
            except TransportTimeout:
                break
            report.ok('Client received: ' + response.text, indent=1)

    subscription.unsubscribe()
    return True



def _mixed(stack, client):

    report.step(3, 'Testing Service with Mixed Permissions:')
    service = connect(stack, 'Service mixed', config.url('allow_responses', 'service_mixed', 'service789'))
    if service is None:
        return False

    done = threading.Event()

    def handler(message):
        report.say("Service received request on 'requests.mixed'", indent=1)

        try:
            service.publish('logs.service', 'Log entry')
        except TransportError as error:
            log.error('  Service log publish failed: %s', error)
        else:
            report.ok("Service published to 'logs.service'", indent=1)

        try:
            message.respond('Mixed response')
        except TransportError as error:
            log.error('  Service response failed: %s', error)
        else:
            report.ok('Service sent response', indent=1)

        done.set()

    try:
        service.subscribe('requests.mixed', callback=handler)
    except TransportError as error:
        log.error('Service mixed subscribe failed: %s', error)
        return False

    report.say("Client making request to 'requests.mixed'...", indent=1)
    try:
        response = client.request('requests.mixed', 'Mixed request')
    except TransportError as error:
        log.error('  Client request failed: %s', error)
    else:
        report.ok('Client received response: ' + response.text, indent=1)

    done.wait(config.timeout)
    return True



def run():

    report.banner('Allow Responses Demo')

    with contextlib.ExitStack() as stack:
        client = connect(stack, 'Client', config.url('allow_responses', 'client', 'client123'))
        if client is None:
            return

        for section in (_single, _stream, _mixed):
            if not section(stack, client):
                return

    report.banner('Allow Responses Demo Complete')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
