""" Terminal narration for the demos. Every line a demo prints goes through
    one of these functions so the markers stay consistent: a check mark for
    an operation the broker allowed, a cross for one it refused, and a
    warning sign for an outcome that contradicts the broker configuration.
"""

import sys

from colorama import Fore, Style


width = 64


def _emit(text, color=None, indent=0, end='\n'):

    text = '  ' * indent + text

    if color is not None:
        text = color + text + Style.RESET_ALL

    sys.stdout.write(text + end)
    sys.stdout.flush()



def say(text='', indent=0):
    _emit(text, indent=indent)


def ok(text, indent=0):
    _emit('✓ ' + text, Fore.GREEN, indent)


def denied(text, error=None, indent=0):
    """ The broker refused an operation, as the configuration says it should.
    """

    if error is not None:
        text = '%s: %s' % (text, error)

    _emit('✗ ' + text, Fore.YELLOW, indent)


def fail(text, error=None, indent=0):
    """ An operation that was expected to succeed did not.
    """

    if error is not None:
        text = '%s: %s' % (text, error)

    _emit('✗ ' + text, Fore.RED, indent)


def warn(text, indent=0):
    _emit('⚠️  ' + text, Fore.YELLOW, indent)


def note(text, indent=0):
    _emit(text, Style.DIM, indent)



def banner(title):
    _emit('')
    _emit('=== %s ===' % (title), Style.BRIGHT)


def step(number, text):
    _emit('')
    _emit('%d. %s' % (number, text), Fore.CYAN)


def rule(character='=', newline=True):
    if newline:
        _emit('')
    _emit(character * width)


def prompt(text):
    _emit(text, end='')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
