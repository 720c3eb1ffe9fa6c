"""Tests for the download state machine."""

from unittest.mock import MagicMock

import httpx
import pytest

from common.constants import PARTIAL_SUFFIX
from common.types import ResolvedLocation
from peer.exceptions import NotFoundError, OwnerOfflineError, UnavailableError
from peer.transfer import DownloadTransfer, FailureReason, TransferState

LOCATION = ResolvedLocation(file_id=7, endpoint='10.0.0.9:5000', filename='notes.txt')


@pytest.fixture
def coordinator():
    client = MagicMock()
    client.resolve.return_value = LOCATION
    return client


def make_transfer(coordinator, store, handler, user_id='user-b', on_progress=None):
    return DownloadTransfer(
        file_id=7,
        client=coordinator,
        store=store,
        user_id=user_id,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        on_progress=on_progress,
    )


def leftover_partials(store):
    return list(store.downloads_dir.glob(f"*{PARTIAL_SUFFIX}"))


def serve(content: bytes):
    def handler(request):
        assert request.url == httpx.URL('http://10.0.0.9:5000/files/notes.txt')
        return httpx.Response(200, content=content)
    return handler


def test_successful_download(coordinator, store):
    transfer = make_transfer(coordinator, store, serve(b'hello peer'))

    result = transfer.run()

    assert result.ok
    assert result.path == store.downloads_dir / 'notes.txt'
    assert result.path.read_bytes() == b'hello peer'
    assert result.bytes_received == 10
    assert leftover_partials(store) == []
    assert transfer.history == [
        TransferState.REQUESTED,
        TransferState.RESOLVING,
        TransferState.STREAMING,
        TransferState.COMPLETE,
    ]


def test_progress_reported(coordinator, store):
    progress = []
    transfer = make_transfer(coordinator, store, serve(b'abc'), on_progress=lambda got, total: progress.append((got, total)))

    transfer.run()

    assert progress[-1] == (3, 3)


def test_without_session_fails_unauthenticated(coordinator, store):
    result = make_transfer(coordinator, store, serve(b''), user_id=None).run()

    assert result.state == TransferState.FAILED
    assert result.reason == FailureReason.UNAUTHENTICATED
    coordinator.resolve.assert_not_called()


@pytest.mark.parametrize('error,reason', [
    (NotFoundError('no such file'), FailureReason.NOT_FOUND),
    (OwnerOfflineError('offline'), FailureReason.OWNER_OFFLINE),
    (UnavailableError('down'), FailureReason.UNAVAILABLE),
])
def test_resolution_failures(coordinator, store, error, reason):
    coordinator.resolve.side_effect = error

    transfer = make_transfer(coordinator, store, serve(b''))
    result = transfer.run()

    assert result.reason == reason
    assert transfer.history == [TransferState.REQUESTED, TransferState.RESOLVING, TransferState.FAILED]


def test_stale_endpoint_is_owner_offline(coordinator, store):
    def handler(request):
        raise httpx.ConnectError('connection refused', request=request)

    result = make_transfer(coordinator, store, handler).run()

    assert result.reason == FailureReason.OWNER_OFFLINE
    assert '10.0.0.9:5000' in result.message
    assert leftover_partials(store) == []


def test_peer_404_is_not_found(coordinator, store):
    def handler(request):
        return httpx.Response(404, json={'detail': 'File not found'})

    result = make_transfer(coordinator, store, handler).run()

    assert result.reason == FailureReason.NOT_FOUND
    assert not (store.downloads_dir / 'notes.txt').exists()


def test_stream_error_removes_partial(coordinator, store):
    def broken_body():
        yield b'first piece'
        raise httpx.ReadError('connection reset')

    def handler(request):
        return httpx.Response(200, content=broken_body())

    result = make_transfer(coordinator, store, handler).run()

    assert result.reason == FailureReason.IO_ERROR
    assert leftover_partials(store) == []
    assert not (store.downloads_dir / 'notes.txt').exists()


def test_idle_timeout_is_io_error(coordinator, store):
    def stalled_body():
        yield b'some'
        raise httpx.ReadTimeout('no data')

    def handler(request):
        return httpx.Response(200, content=stalled_body())

    result = make_transfer(coordinator, store, handler).run()

    assert result.reason == FailureReason.IO_ERROR
    assert leftover_partials(store) == []


def test_short_body_is_io_error(coordinator, store):
    def handler(request):
        return httpx.Response(200, headers={'Content-Length': '100'}, content=iter([b'only ten b']))

    result = make_transfer(coordinator, store, handler).run()

    assert result.reason == FailureReason.IO_ERROR
    assert not (store.downloads_dir / 'notes.txt').exists()


def test_cancel_mid_stream_leaves_no_file(coordinator, store):
    transfer = None

    def body():
        yield b'a' * 1024
        yield b'b' * 1024
        yield b'c' * 1024

    def handler(request):
        return httpx.Response(200, content=body())

    def cancel_after_first_piece(received, total):
        transfer.cancel()

    transfer = make_transfer(coordinator, store, handler, on_progress=cancel_after_first_piece)
    result = transfer.run()

    assert result.reason == FailureReason.CANCELLED
    assert leftover_partials(store) == []
    assert not (store.downloads_dir / 'notes.txt').exists()


def test_keyboard_interrupt_cancels(coordinator, store):
    def body():
        yield b'a' * 1024
        raise KeyboardInterrupt()

    def handler(request):
        return httpx.Response(200, content=body())

    result = make_transfer(coordinator, store, handler).run()

    assert result.reason == FailureReason.CANCELLED
    assert leftover_partials(store) == []


def test_cancel_before_streaming(coordinator, store):
    transfer = make_transfer(coordinator, store, serve(b'data'))
    transfer.cancel()

    result = transfer.run()

    assert result.reason == FailureReason.CANCELLED
    assert TransferState.STREAMING not in transfer.history


def test_unsafe_filename_from_coordinator(coordinator, store):
    coordinator.resolve.return_value = ResolvedLocation(file_id=7, endpoint='10.0.0.9:5000', filename='../evil')

    result = make_transfer(coordinator, store, serve(b'')).run()

    assert result.reason == FailureReason.IO_ERROR


def test_interrupt_while_resolving_cancels(coordinator, store):
    coordinator.resolve.side_effect = KeyboardInterrupt

    transfer = make_transfer(coordinator, store, serve(b''))
    result = transfer.run()

    assert result.reason == FailureReason.CANCELLED
    assert transfer.history == [TransferState.REQUESTED, TransferState.RESOLVING, TransferState.FAILED]


def test_same_name_downloads_do_not_share_partial_file(store):
    """Two owners' "notes.txt" downloaded at once each land with their own bytes."""
    first_owner = ResolvedLocation(file_id=7, endpoint='10.0.0.7:5000', filename='notes.txt')
    second_owner = ResolvedLocation(file_id=8, endpoint='10.0.0.8:5000', filename='notes.txt')

    def handler(request):
        if request.url.host == '10.0.0.7':
            return httpx.Response(200, content=iter([b'AAAA', b'aaaa']))
        return httpx.Response(200, content=b'BBBBBBBB')

    def transfer_for(location, on_progress=None):
        client = MagicMock()
        client.resolve.return_value = location
        return DownloadTransfer(
            file_id=location.file_id,
            client=client,
            store=store,
            user_id='user-b',
            http_client=httpx.Client(transport=httpx.MockTransport(handler)),
            on_progress=on_progress,
        )

    second_results = []

    def run_second_download(received, total):
        if not second_results:
            result = transfer_for(second_owner).run()
            second_results.append((result, result.path.read_bytes()))

    first = transfer_for(first_owner, on_progress=run_second_download).run()

    second, second_bytes = second_results[0]
    assert second.ok
    assert second_bytes == b'BBBBBBBB'
    assert first.ok
    assert first.path.read_bytes() == b'AAAAaaaa'
    assert leftover_partials(store) == []
