import natsauth
import pytest

from natsauth import demos
from natsauth import menu


def reader(*lines):
    """ Stand in for input(): hand out *lines*, then report end of file.
    """

    lines = iter(lines)

    def read():
        try:
            return next(lines)
        except StopIteration:
            raise EOFError

    return read



@pytest.fixture
def calls(monkeypatch):
    """ Replace every demo with one that just records it was run.
    """

    calls = list()

    for demo in demos.registry:
        def record(*args, name=demo.name, **kwargs):
            calls.append(name)
        monkeypatch.setattr(demo, 'function', record)

    monkeypatch.setattr(natsauth.config, 'host', 'localhost')
    monkeypatch.delenv('NATSAUTH_CONFIG_DIR', raising=False)
    return calls



def test_exit(calls, capsys):

    menu.run(reader('0'))
    output = capsys.readouterr().out

    assert 'NATS Authorization & Multi-Tenancy Demo' in output
    assert '  1. Basic Authorization' in output
    assert '     - Server: localhost:4222' in output
    assert '     - Config: config/basic-auth.conf' in output
    assert '  8. Run All Demos' in output
    assert '  11. NKey Files' in output
    assert '  0. Exit' in output
    assert 'Exiting... Goodbye!' in output
    assert calls == list()

    # Run All sits between the account demos and the NKey demos.
    assert output.index('7. No Auth User') < output.index('8. Run All Demos') < output.index('9. NKeys')


def test_end_of_input(calls, capsys):

    menu.run(reader())
    assert calls == list()


def test_single(calls, capsys):

    menu.run(reader('1', '', '', 'queue', '', '', '0'))
    output = capsys.readouterr().out

    assert calls == ['basic', 'queue']
    assert 'Make sure NATS server is running with config/basic-auth.conf' in output
    assert 'Command: nats-server -c config/basic-auth.conf' in output
    assert 'Press Enter to return to menu...' in output


def test_generated_nkeys(calls, capsys, monkeypatch, tmp_path):

    monkeypatch.chdir(tmp_path)

    menu.run(reader('9', '', '', '0'))
    output = capsys.readouterr().out

    assert 'Command: nats-server -c config/nkeys.conf' in output

    # Once keys are generated the NKeys demo uses them, so the hint has to
    # point at the configuration written with them.

    natsauth.keygen.save_keys(natsauth.keygen.generate())

    menu.run(reader('9', '', '', '0'))
    output = capsys.readouterr().out

    assert 'Make sure NATS server is running with generated/nkeys-server.conf' in output
    assert 'Command: nats-server -c generated/nkeys-server.conf' in output
    assert 'Config: config/nkeys.conf' not in output
    assert calls == ['nkeys', 'nkeys']


def test_no_broker(calls, capsys):

    menu.run(reader('10', '', '', '0'))
    output = capsys.readouterr().out

    assert calls == ['keypairs']
    assert 'No NATS server is needed for this demo.' in output


def test_invalid(calls, capsys):

    menu.run(reader('42', '', 'nonsense', '', '0'))
    output = capsys.readouterr().out

    assert output.count('❌ Invalid choice. Please try again.') == 2
    assert calls == list()


def test_aborted(calls, capsys, caplog, monkeypatch):

    def broken():
        raise natsauth.transport.TransportConnectionError('nats://localhost:4222: connection refused')

    monkeypatch.setattr(demos.get('basic'), 'function', broken)

    menu.run(reader('1', '', '', '0'))
    output = capsys.readouterr().out

    assert 'Basic Authorization demo aborted' in caplog.text
    assert 'Exiting... Goodbye!' in output


def test_run_all(calls, capsys):

    # One Enter to start, then one per broker configuration.
    menu.run(reader('8', '', '', '', '', '', ''))
    output = capsys.readouterr().out

    assert calls == ['basic', 'allow_deny', 'allow_responses', 'queue', 'accounts', 'exports', 'no_auth']

    assert 'Starting Demo 1: Basic Authorization' in output
    assert 'Starting Demo 4: Queue Permissions' in output
    assert 'Starting Demo 5-7: Account Features' in output
    assert 'Start server: nats-server -c config/accounts.conf' in output
    assert 'All demos completed!' in output


def test_run_all_interrupted(calls, capsys):

    # Input runs out while waiting for the third broker.
    menu.run(reader('8', '', '', ''))
    output = capsys.readouterr().out

    assert calls == ['basic', 'allow_deny']
    assert 'All demos completed!' not in output


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
