"""Tests for peer shell command handlers."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from peer.commands import (
    handle_download,
    handle_login,
    handle_logout,
    handle_register,
    handle_search,
    handle_status,
    handle_upload,
)
from peer.exceptions import ConflictError, UnavailableError
from peer.models import (
    DownloadCommand,
    LoginCommand,
    LogoutCommand,
    RegisterCommand,
    SearchCommand,
    StatusCommand,
    UploadCommand,
)
from peer.node import PeerNode, PeerSession, UploadedFile
from peer.parser import parse_command
from peer.repl import dispatch_command, repl_loop, session_toolbar
from peer.transfer import FailureReason, TransferResult, TransferState


@pytest.fixture
def mock_node():
    node = Mock(spec=PeerNode)
    node.session = None
    node.is_authenticated = False
    return node


def test_handle_register(mock_node):
    mock_node.register.return_value = {'user_id': 'u1', 'username': 'alice'}

    result = handle_register(RegisterCommand(username='alice', password='pw'), node=mock_node)

    assert 'Registration successful' in result
    mock_node.register.assert_called_once_with('alice', 'pw')


def test_handle_register_taken(mock_node):
    mock_node.register.side_effect = ConflictError('taken', code='USER_ALREADY_EXISTS')

    result = handle_register(RegisterCommand(username='alice', password='pw'), node=mock_node)

    assert 'Username already taken' in result


def test_handle_login(mock_node):
    mock_node.login.return_value = PeerSession(user_id='u1', username='alice', endpoint='10.0.0.5:5000')

    result = handle_login(LoginCommand(username='alice', password='pw'), node=mock_node)

    assert 'Login successful' in result
    assert '10.0.0.5:5000' in result


def test_handle_login_conflict(mock_node):
    mock_node.login.side_effect = ConflictError('dup', code='SESSION_CONFLICT')

    result = handle_login(LoginCommand(username='alice', password='pw'), node=mock_node)

    assert 'already logged in on another node' in result


def test_handle_login_coordinator_down(mock_node):
    mock_node.login.side_effect = UnavailableError('Cannot connect to the coordinator. Is it running?')

    result = handle_login(LoginCommand(username='alice', password='pw'), node=mock_node)

    assert 'Cannot connect to the coordinator' in result


def test_handle_logout_not_logged_in(mock_node):
    assert handle_logout(LogoutCommand(), node=mock_node) == 'Not logged in.'
    mock_node.logout.assert_not_called()


def test_handle_logout(mock_node):
    mock_node.is_authenticated = True
    mock_node.logout.return_value = 2

    result = handle_logout(LogoutCommand(), node=mock_node)

    assert '2 file(s) withdrawn' in result


def test_handle_upload(mock_node):
    mock_node.upload.return_value = [UploadedFile(file_id=5, filename='a.txt', local_name='x_a.txt', size=2048)]

    result = handle_upload(UploadCommand(file_list=('a.txt',)), node=mock_node)

    assert 'a.txt (ID: 5, 2.00 KiB)' in result
    mock_node.upload.assert_called_once_with([Path('a.txt')])


def test_handle_search(mock_node):
    mock_node.search.return_value = [{'file_id': 3, 'filename': 'Report.pdf', 'owner_id': 'u2'}]

    result = handle_search(SearchCommand(keyword='report'), node=mock_node)

    assert 'Found 1 file(s)' in result
    assert '[3] Report.pdf' in result


def test_handle_search_no_results(mock_node):
    mock_node.search.return_value = []

    assert 'No files found matching: zzz' in handle_search(SearchCommand(keyword='zzz'), node=mock_node)


def test_handle_download_success(mock_node, tmp_path):
    mock_node.download.return_value = TransferResult(
        file_id=3, state=TransferState.COMPLETE, filename='notes.txt',
        path=tmp_path / 'notes.txt', bytes_received=10,
    )

    result = handle_download(DownloadCommand(file_id=3), node=mock_node)

    assert 'Downloaded notes.txt' in result


def test_handle_download_owner_offline_reads_differently_from_not_found(mock_node):
    mock_node.download.return_value = TransferResult(
        file_id=3, state=TransferState.FAILED, reason=FailureReason.OWNER_OFFLINE, message='offline',
    )
    offline = handle_download(DownloadCommand(file_id=3), node=mock_node)

    mock_node.download.return_value = TransferResult(
        file_id=3, state=TransferState.FAILED, reason=FailureReason.NOT_FOUND, message='missing',
    )
    missing = handle_download(DownloadCommand(file_id=3), node=mock_node)

    assert offline.startswith('Owner offline')
    assert missing.startswith('File not found')


def test_handle_status_logged_out(mock_node, temp_config, store):
    mock_node.config = temp_config
    mock_node.store = store

    result = handle_status(StatusCommand(), node=mock_node)

    assert 'Not logged in.' in result
    assert 'http://coordinator.test:4000' in result


def test_dispatch_routes_parsed_command(mock_node):
    mock_node.search.return_value = []

    result = dispatch_command(parse_command('search nothing'), node=mock_node)

    assert result == 'No files found matching: nothing'
    mock_node.search.assert_called_once_with('nothing')


def test_dispatch_unknown_type(mock_node):
    assert 'Unknown command type' in dispatch_command(object(), node=mock_node)


def test_session_toolbar(mock_node):
    assert session_toolbar(mock_node) == ' not logged in'

    mock_node.session = PeerSession(user_id='u1', username='alice', endpoint='10.0.0.5:5000')
    assert session_toolbar(mock_node) == ' alice sharing at 10.0.0.5:5000'


def test_interrupted_command_returns_to_prompt(mock_node, temp_config, monkeypatch, capsys):
    inputs = iter(['search report', 'status', 'exit'])
    prompt_session = Mock()
    prompt_session.prompt.side_effect = lambda *args, **kwargs: next(inputs)
    monkeypatch.setattr('peer.repl.PromptSession', lambda **kwargs: prompt_session)
    monkeypatch.setattr('peer.repl.clear_screen', lambda: None)
    mock_node.config = temp_config
    mock_node.store = Mock()
    mock_node.store.index.count.return_value = 0
    mock_node.search.side_effect = KeyboardInterrupt

    repl_loop(mock_node)

    output = capsys.readouterr().out
    assert 'Cancelled.' in output
    assert 'Not logged in.' in output
    assert 'Goodbye!' in output
