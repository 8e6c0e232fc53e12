""" NKey authentication. Instead of a password each user holds an Ed25519
    seed; the broker sends a nonce when the connection opens, the client
    signs it, and the broker checks the signature against the public key in
    its configuration. The seed itself never leaves the client.

    The built-in users match config/nkeys.conf. If keys were generated with
    ``natsauth keygen`` the demo uses those instead, in which case the broker
    must be running the generated configuration.
"""

import contextlib
import os

from .. import config
from .. import keygen
from .. import report
from ..transport import PermissionViolation, TransportError
from .base import connect, log


unauthorized = 'unauthorized.subject'


class NKeyUser:

    def __init__(self, name, seed, public_key, publish, subscribe, full_access=False):

        self.name = name
        self.seed = seed
        self.public_key = public_key
        self.publish = tuple(publish)
        self.subscribe = tuple(subscribe)
        self.full_access = full_access


    def __repr__(self):
        return 'NKeyUser(%s, %s)' % (repr(self.name), self.public_key)



# The subjects each role may use, as granted by the broker configuration.

subjects = dict()
subjects['Admin'] = (('any.subject', 'admin.>'), ('any.subject', 'admin.>'), True)
subjects['Client'] = (('req.a', 'req.b'), ('_INBOX.>',), False)
subjects['Service'] = (('_INBOX.>',), ('req.a', 'req.b'), False)
subjects['Other'] = (('SANDBOX.*',), ('PUBLIC.>', '_INBOX.>'), False)


def _user(name, seed, public_key):

    try:
        publish, subscribe, full_access = subjects[name]
    except KeyError:
        publish, subscribe, full_access = subjects['Other']

    return NKeyUser(name, seed, public_key, publish, subscribe, full_access)



predefined = (
    _user('Admin',
          'SUACSEKE2OPPPHEJU3KBR4YZI4SAF4F6OQEGYKLPP3ANBW2MVYIIL6RFLY',
          'UCY3QAMQUVLPICESVON2ZFHHQRKTYCTP5FF4FNTFKN47OPYN6OAEOEFQ'),
    _user('Client',
          'SUAOSHSRW4GWAP5THXDQP7V4LSE62XK6LZ6V3PU2Q5MBJQ3U3VGHDU4BY4',
          'UDWODWPYVG3PKAHX2OAMVAB6SAQTBHPFSQAFXC4SXQ66IJ6CIYNDO5PJ'),
    _user('Service',
          'SUAGMRWJGYQG7IPIPXAB2ZFBMLMC6YIHYYPYNQO63V4T7EPVU24QDHOVFY',
          'UBX5I4HYENNJZDWIC6ZIXVSDRJSWZHFBA563P3CMMAEEKYLLVUWNV2PF'),
    _user('Other',
          'SUAEZXNSW5LVO76OR2M6EZNLLN7GINPJDJGIUYRUDM4WRIZ42Y5LNFGBDI',
          'UD6ISENH5UT2BGONPGRBTBZPUE53BEAICQXFTTBXBY2LXVOOI572YBCN'),
)



def users(filename=None):
    """ Return the users to exercise: the generated keys in *filename* if
        that file exists, the built-in users otherwise.
    """

    if filename is None:
        filename = keygen.keys_filename

    if not os.path.exists(filename):
        return predefined

    generated = keygen.load_keys(filename)
    return tuple(_user(key.role, key.seed, key.public_key) for key in generated)



def server_config(filename=None):
    """ Return the broker configuration that authorizes the users returned by
        :func:`users` for the same *filename*. Generated keys come with their
        own configuration, written alongside the key dump.
    """

    if filename is None:
        filename = keygen.keys_filename

    if not os.path.exists(filename):
        return config.path('nkeys')

    generated = os.path.basename(keygen.config_filename)
    return os.path.join(os.path.dirname(filename), generated)



def _connect(stack, user):
    url = config.url('nkeys')
    return connect(stack, user.name, url, name=user.name, nkeys_seed=user.seed)



def _exercise(user):

    report.say('')
    report.say('🔐 Testing %s User:' % (user.name))

    with contextlib.ExitStack() as stack:
        connection = _connect(stack, user)
        if connection is None:
            return

        report.ok('Connected using NKey signature authentication', indent=1)

        if user.publish:
            subject = user.publish[0].replace('*', 'test').replace('>', 'test')
            try:
                connection.publish(subject, 'Message from %s' % (user.name))
            except TransportError as error:
                report.fail("Publish to '%s' failed" % (subject), error, indent=1)
            else:
                report.ok("Published to '%s'" % (subject), indent=1)

        if user.subscribe:
            subject = user.subscribe[0]
            try:
                subscription = connection.subscribe(subject)
            except TransportError as error:
                report.fail("Subscribe to '%s' failed" % (subject), error, indent=1)
            else:
                report.ok("Subscribed to '%s'" % (subject), indent=1)
                subscription.unsubscribe()

        if user.full_access:
            return

        try:
            connection.publish(unauthorized, 'test')
        except PermissionViolation:
            report.ok("Correctly denied publishing to '%s'" % (unauthorized), indent=1)
        except TransportError as error:
            report.fail("Publish to '%s' failed" % (unauthorized), error, indent=1)
        else:
            report.warn("Unexpected: allowed to publish to '%s'" % (unauthorized), indent=1)



def _request_response(users):

    report.banner('Request-Response Pattern with NKeys')

    roles = dict((user.name, user) for user in users)

    try:
        service_user = roles['Service']
        client_user = roles['Client']
    except KeyError as missing:
        log.error('No %s user available for the request/response test', missing)
        return False

    with contextlib.ExitStack() as stack:

        report.step(1, 'Starting service responder...')
        service = _connect(stack, service_user)
        if service is None:
            return False

        def handler(message):
            message.respond('Response to: ' + message.text)
            report.ok('Service responded to request', indent=1)

        try:
            service.subscribe('req.a', callback=handler)
        except TransportError as error:
            log.error('Service subscribe failed: %s', error)
            return False

        report.ok("Service listening on 'req.a'", indent=1)

        report.step(2, 'Client making request...')
        client = _connect(stack, client_user)
        if client is None:
            return False

        try:
            response = client.request('req.a', 'Hello from client')
        except TransportError as error:
            log.error('  ✗ Request failed: %s', error)
        else:
            report.ok('Client received response: ' + response.text, indent=1)

    return True



def run(filename=None):

    report.banner('NKeys Authentication Demo')
    report.say('Demonstrating Ed25519 signature-based authentication')

    selected = users(filename)

    if selected is not predefined:
        report.note('Using generated keys; the broker must run ' + server_config(filename))

    report.say('')
    report.say('📋 Pre-configured test users:')
    for user in selected:
        report.say('')
        report.say('%s:' % (user.name))
        report.say('Public Key: %s' % (user.public_key), indent=1)
        report.say('Seed: %s... (secret)' % (user.seed[:20]), indent=1)
        report.say('Can publish to: %s' % (', '.join(user.publish)), indent=1)
        report.say('Can subscribe to: %s' % (', '.join(user.subscribe)), indent=1)

    report.rule('─')

    for user in selected:
        _exercise(user)

    if not _request_response(selected):
        return

    report.banner('NKeys Authentication Demo Complete')
    report.say('')
    report.say('🔑 Key Advantages of NKeys:')
    report.say('• Private keys never leave the client', indent=1)
    report.say('• Server only stores public keys', indent=1)
    report.say('• Each connection uses a unique challenge-response', indent=1)
    report.say('• Immune to replay attacks', indent=1)
    report.say('• Based on Ed25519 (faster and more secure than RSA)', indent=1)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
