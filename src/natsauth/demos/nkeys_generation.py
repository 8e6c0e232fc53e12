""" Key generation demos. Neither needs a broker: the first creates a few
    key pairs and walks through the challenge/response signature the broker
    performs during the handshake; the second writes keys for every role and
    a broker configuration that accepts them.
"""

import base64
import os

from .. import config
from .. import keygen
from .. import keys
from .. import report
from .base import log


challenge = b'random-server-challenge-12345'


def _print_pair(pair, label):

    report.say('')
    report.say('%s NKey Pair:' % (label))
    report.say('├─ Seed (Private Key):  %s' % (pair.seed))
    report.say('└─ Public Key:          %s' % (pair.public_key))
    report.say('')
    report.warn('Keep the seed secret! Only share the public key.')



def run_keypairs():

    report.banner('NKey Generation Demo')
    report.say('Generating NKey pairs for different users...')

    for label in ('Admin', 'Client', 'Service'):
        _print_pair(keys.create_user(), label)

    report.banner('Signature Demo')
    report.say('Demonstrating challenge-response authentication...')

    pair = keys.create_user()

    report.say('')
    report.say('Challenge: ' + base64.b64encode(challenge).decode())

    try:
        signature = keys.sign_challenge(pair.seed, challenge)
    except keys.InvalidKey as error:
        report.fail('Error signing', error)
        return

    report.say('Signature: ' + base64.b64encode(signature).decode())

    try:
        keys.verify_signature(pair.public_key, challenge, signature)
    except (keys.InvalidKey, keys.InvalidSignature) as error:
        report.fail('Verification failed', error)
    else:
        report.ok('Signature verified successfully!')

    report.banner('NKey Generation Demo Complete')



def run_files(directory=None):

    report.banner('NKey Generation with File Export Demo')

    if directory is None:
        keys_file = keygen.keys_filename
        config_file = keygen.config_filename
    else:
        keys_file = os.path.join(directory, 'nkeys.txt')
        config_file = os.path.join(directory, 'nkeys-server.conf')

    report.say('')
    report.say('Generating NKey pairs for different roles...')
    generated = keygen.generate()

    report.say('')
    report.say('📋 Generated Keys:')
    for key in generated:
        report.say('')
        report.say('%s:' % (key.role))
        report.say('Public Key: %s' % (key.public_key), indent=1)
        report.say('Seed:       %s' % (key.seed), indent=1)

    report.say('')
    report.say('💾 Saving keys to: ' + keys_file)
    try:
        keygen.save_keys(generated, keys_file)
    except OSError as error:
        log.error('Error saving keys: %s', error)
        return
    report.ok('Keys saved successfully')

    report.say('')
    report.say('💾 Generating server config: ' + config_file)
    try:
        keygen.save_server_config(generated, config_file)
    except OSError as error:
        log.error('Error generating config: %s', error)
        return
    report.ok('Server config generated successfully')

    report.say('')
    report.say('📖 Next Steps:')
    report.say('1. Review the generated keys in: ' + keys_file, indent=1)
    report.say('2. Store the seeds (private keys) securely', indent=1)
    report.say('3. Start NATS server with: ' + config_file, indent=1)
    report.say('Command: nats-server -c ' + config_file, indent=2)
    report.say('4. Use the seeds in your client applications', indent=1)
    report.say('5. Run the NKeys demo against port %d:' % (config.scenario('nkeys').port), indent=1)
    report.say('natsauth run nkeys --keys ' + keys_file, indent=2)

    report.banner('Generation Complete')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
