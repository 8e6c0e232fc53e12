""" Command line entry point. With no arguments the interactive menu is
    started; the subcommands run demos directly, which is handy when the
    broker is already up with the right configuration.
"""

import argparse
import logging
import sys

import colorama

from . import config
from . import demos
from . import menu
from . import transport
from .demos import nkeys_generation


log = logging.getLogger(__name__)


def _parser():

    parser = argparse.ArgumentParser(
        prog='natsauth',
        description='NATS authorization, accounts and NKey authentication demos.')

    parser.add_argument('--host', default=None,
            help='broker host name (default: %s)' % (config.host))
    parser.add_argument('-v', '--verbose', action='store_true',
            help='log debugging detail')

    commands = parser.add_subparsers(dest='command')

    commands.add_parser('menu', help='interactive menu (the default)')
    commands.add_parser('list', help='list the available demos')

    run = commands.add_parser('run', help='run one or more demos by name or number')
    run.add_argument('names', nargs='+', metavar='NAME')
    run.add_argument('--keys', default=None,
            help='key dump used by the nkeys demo')

    keygen = commands.add_parser('keygen', help='write NKeys and a matching server configuration')
    keygen.add_argument('--directory', default=None,
            help='output directory (default: generated)')

    return parser



def _list():

    for demo in demos.registry:
        if demo.scenario is None:
            where = 'no broker needed'
        else:
            scenario = config.scenario(demo.scenario)
            where = 'port %d, %s' % (scenario.port, demo.config_path())

        print('%3d  %-16s %-26s %s' % (demo.number, demo.name, demo.title, where))



def _run(parser, names, keys=None):

    selected = list()

    for name in names:
        try:
            selected.append(demos.get(name))
        except KeyError:
            parser.error('unknown demo: ' + repr(name))

    status = 0

    for demo in selected:
        kwargs = dict()
        if demo.name == 'nkeys' and keys is not None:
            kwargs['filename'] = keys

        try:
            demo.run(**kwargs)
        except transport.TransportError as error:
            log.error('%s demo aborted: %s', demo.title, error)
            status = 1

    return status



def main(argv=None):

    parser = _parser()
    arguments = parser.parse_args(argv)

    if arguments.verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    colorama.just_fix_windows_console()

    if arguments.host:
        config.host = arguments.host

    command = arguments.command

    try:
        if command is None or command == 'menu':
            menu.run()
        elif command == 'list':
            _list()
        elif command == 'run':
            return _run(parser, arguments.names, arguments.keys)
        elif command == 'keygen':
            nkeys_generation.run_files(arguments.directory)
    except KeyboardInterrupt:
        print('')
        return 130

    return 0


if __name__ == '__main__':
    sys.exit(main())


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
