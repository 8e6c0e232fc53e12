import natsauth
import pytest


def accounts(broker):

    broker.permit('user_a', account='A')
    broker.permit('user_b', account='B')
    broker.permit('user_c', account='C')
    broker.no_auth_user = 'user_a'

    broker.streams.append(('A', 'puba.>', 'C', 'from_a.'))
    broker.streams.append(('A', 'b.>', 'B', ''))

    broker.services.append(('C', 'Q', 'A', 'pubq.C'))
    broker.services.append(('B', 'q.b', 'A', 'q.b'))



def test_isolation(broker, capsys):

    accounts(broker)
    natsauth.demos.accounts.run_isolation()
    output = capsys.readouterr().out

    assert 'Account B correctly did NOT receive message from Account A' in output
    assert 'Account B received its own message: Message from B' in output
    assert 'Account Isolation Demo Complete' in output

    for connection in broker.connections:
        assert connection.closed


def test_isolation_broken(broker, capsys):

    # Everybody in one account: B hears A.
    broker.permit('user_a')
    broker.permit('user_b')
    broker.permit('user_c')

    natsauth.demos.accounts.run_isolation()
    output = capsys.readouterr().out

    assert 'Account B received message (isolation failed)' in output


def test_exports(broker, capsys):

    accounts(broker)
    natsauth.demos.accounts.run_exports()
    output = capsys.readouterr().out

    assert 'Account C received: Public event from A' in output
    assert "Imported as 'from_a.puba.events'" in output
    assert 'Account B received: Private data for B' in output
    assert 'Account C correctly cannot access private stream for B' in output
    assert 'Account A service received request: Request from C' in output
    assert "Account C received response: Response from A's service" in output
    assert 'Account B received response: Private response for B' in output
    assert 'Account Export/Import Demo Complete' in output


def test_exports_missing(broker, capsys, caplog):

    accounts(broker)
    del broker.streams[:]
    del broker.services[:]

    natsauth.demos.accounts.run_exports()
    output = capsys.readouterr().out

    assert 'Account C did not receive message' in output
    assert 'Account B did not receive message' in output
    assert 'Account C request failed' in caplog.text


def test_no_auth(broker, capsys):

    accounts(broker)
    natsauth.demos.accounts.run_no_auth()
    output = capsys.readouterr().out

    assert 'Connected successfully without credentials' in output
    assert "Successfully published to 'puba.test'" in output
    assert 'No Auth User Demo Complete' in output

    connection = broker.connections[-1]
    assert connection.user == 'user_a'
    assert connection.account == 'A'


def test_refused(broker, capsys, caplog):

    accounts(broker)
    broker.refused.add('user_c')

    natsauth.demos.accounts.run_exports()
    output = capsys.readouterr().out

    assert 'Account C connection failed' in caplog.text
    assert 'Complete' not in output


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
