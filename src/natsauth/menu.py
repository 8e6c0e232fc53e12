""" The interactive menu. Each numbered entry runs one demo after reminding
    the user which broker configuration it expects; entry 8 walks through
    demos 1-7 in order, pausing whenever a different broker configuration
    needs to be started.
"""

import logging

from . import config
from . import demos
from . import report
from . import transport


log = logging.getLogger(__name__)

inner = 60
run_all = 8


def _box(text=''):
    report.say('│' + text.ljust(inner) + '│')



def _entry(demo):

    _box('  %d. %s' % (demo.number, demo.title))

    for bullet in demo.bullets:
        _box('     - ' + bullet)

    if demo.scenario is not None:
        scenario = config.scenario(demo.scenario)
        _box('     - Server: %s:%d' % (config.host, scenario.port))
        _box('     - Config: ' + demo.config_path())

    _box()



def show():

    report.say('')
    report.say('┌' + '─' * inner + '┐')
    _box(' Select a demo to run:')
    report.say('├' + '─' * inner + '┤')

    for demo in demos.registry:
        if demo.number == run_all + 1:
            _box('  %d. Run All Demos' % (run_all))
            _box()
        _entry(demo)

    _box('  0. Exit')
    report.say('└' + '─' * inner + '┘')



def _ask(read, text):
    """ Prompt with *text* and return the stripped reply, or None if the
        input is exhausted.
    """

    report.prompt(text)

    try:
        line = read()
    except EOFError:
        report.say('')
        return None

    return line.strip()



def _run(demo):

    try:
        demo.run()
    except transport.TransportError as error:
        log.error('%s demo aborted: %s', demo.title, error)



def _single(demo, read):

    report.say('')

    if demo.scenario is None:
        report.say('No NATS server is needed for this demo.')
    else:
        report.warn('Make sure NATS server is running with ' + demo.config_path())
        report.say('   Command: ' + demo.server_command())

    if _ask(read, '\nPress Enter to continue...') is None:
        return False

    _run(demo)
    return True



def _groups():
    """ Group demos 1-7 by the broker configuration they need, preserving
        their order.
    """

    groups = list()

    for demo in demos.registry:
        if demo.number >= run_all:
            continue

        if groups and groups[-1][0].scenario == demo.scenario:
            groups[-1].append(demo)
        else:
            groups.append([demo])

    return groups



def _all(read):

    report.say('')
    report.warn('This will run all demos. Make sure you start each NATS server')
    report.say('   configuration as prompted.')

    if _ask(read, '\nPress Enter to continue...') is None:
        return False

    for group in _groups():
        first = group[0]
        last = group[-1]

        if len(group) == 1:
            title = 'Demo %d: %s' % (first.number, first.title)
        else:
            title = 'Demo %d-%d: %s' % (first.number, last.number, config.scenario(first.scenario).title + ' Features')

        report.rule()
        report.say('Starting ' + title)
        report.rule(newline=False)
        report.say('Start server: ' + first.server_command())

        if _ask(read, 'Press Enter when ready...') is None:
            return False

        for demo in group:
            _run(demo)

    report.rule()
    report.say('All demos completed!')
    report.rule(newline=False)
    return True



def run(read=input):
    """ Run the menu until the user picks 0 or the input runs out. *read* is
        called with no arguments to obtain each line of input.
    """

    report.say('╔' + '═' * (inner + 2) + '╗')
    report.say('║' + '      NATS Authorization & Multi-Tenancy Demo'.ljust(inner + 2) + '║')
    report.say('╚' + '═' * (inner + 2) + '╝')

    while True:
        show()
        choice = _ask(read, '\nEnter your choice: ')

        if choice is None:
            return

        if choice == '0':
            report.say('')
            report.say('Exiting... Goodbye!')
            return

        if choice == str(run_all):
            proceed = _all(read)
        else:
            try:
                demo = demos.get(choice)
            except KeyError:
                report.say('')
                report.say('❌ Invalid choice. Please try again.')
                proceed = True
            else:
                proceed = _single(demo, read)

        if not proceed:
            return

        if _ask(read, '\nPress Enter to return to menu...') is None:
            return


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
