""" NKey handling: creating user key pairs, signing the broker's nonce, and
    verifying a signature against a public key. Seeds are encoded, loaded
    and used for signing via the nkeys package, the same one the NATS client
    uses during the connection handshake; PyNaCl supplies fresh Ed25519 keys
    and checks signatures against a bare public key.

    An NKey is the raw key prefixed with a type byte, followed by a CRC16
    checksum, the whole rendered as unpadded base32. A user seed therefore
    starts with 'SU' and a user public key with 'U'. nkeys does not verify
    the checksum when it loads a seed, so it is checked here first.
"""

import base64

import nacl.exceptions
import nacl.signing
import nkeys


class InvalidKey(ValueError):
    pass


class InvalidSignature(ValueError):
    pass


class KeyPair:
    """ A *seed* and the matching *public_key*, both as NKey strings. Only the
        public key is ever handed to the broker.
    """

    def __init__(self, seed, public_key):

        self.seed = seed
        self.public_key = public_key


    def sign(self, data):
        return sign_challenge(self.seed, data)


    def verify(self, data, signature):
        verify_signature(self.public_key, data, signature)


    def __repr__(self):
        return 'KeyPair(%s)' % (self.public_key)



def _text(key):

    if isinstance(key, (bytes, bytearray)):
        key = bytes(key).decode()

    return key.strip()



def _decode(text):
    """ Return the payload of the NKey *text*, prefix byte included, once
        its checksum has been verified.
    """

    padding = '=' * (-len(text) % 8)

    try:
        raw = base64.b32decode(text + padding)
    except ValueError:
        raise InvalidKey('invalid base32 encoding: ' + repr(text))

    if len(raw) < 4:
        raise InvalidKey('key too short: ' + repr(text))

    payload = raw[:-2]
    if nkeys.crc16_checksum(payload) != raw[-2:]:
        raise InvalidKey('invalid checksum: ' + repr(text))

    return payload



def decode_seed(text):
    """ Return a (prefix, raw) tuple for the NKey seed *text*.
    """

    text = _text(text)

    if len(_decode(text)) != 34:
        raise InvalidKey('invalid seed length')

    try:
        return nkeys.decode_seed(bytearray(text.encode()))
    except nkeys.NkeysError as error:
        raise InvalidKey('%s: %s' % (error, repr(text)))



def decode_public(text, prefix=nkeys.PREFIX_BYTE_USER):
    """ Return the raw 32 byte Ed25519 key for the public NKey *text*.
    """

    text = _text(text)
    payload = _decode(text)

    if len(payload) != 33:
        raise InvalidKey('invalid public key length')

    if payload[0] != prefix:
        raise InvalidKey('unexpected key type: ' + repr(text))

    return payload[1:]



def create_user():
    """ Generate a brand new user :class:`KeyPair`.
    """

    signing_key = nacl.signing.SigningKey.generate()
    seed = nkeys.encode_seed(bytes(signing_key), nkeys.PREFIX_BYTE_USER)

    return from_seed(seed.decode())



def from_seed(seed):
    """ Load a :class:`KeyPair` from an NKey *seed* string. An
        :class:`InvalidKey` exception is raised if the seed is malformed.
    """

    seed = _text(seed)
    decode_seed(seed)

    pair = nkeys.from_seed(bytearray(seed.encode()))
    public_key = pair.public_key.decode()
    pair.wipe()

    return KeyPair(seed, public_key)



def sign_challenge(seed, challenge):
    """ Sign the *challenge* (the nonce issued by the broker) with the
        private key behind *seed*, returning the raw 64 byte signature.
    """

    seed = _text(seed)
    decode_seed(seed)

    pair = nkeys.from_seed(bytearray(seed.encode()))
    signature = pair.sign(bytes(challenge))
    pair.wipe()

    return signature



def verify_signature(public_key, challenge, signature):
    """ Verify that *signature* over *challenge* was made by the private key
        matching *public_key*. Raises :class:`InvalidSignature` if it was not;
        returns None otherwise.
    """

    raw = decode_public(public_key)
    verify_key = nacl.signing.VerifyKey(raw)

    try:
        verify_key.verify(bytes(challenge), bytes(signature))
    except (nacl.exceptions.BadSignatureError, ValueError):
        raise InvalidSignature('signature verification failed')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
