"""Tests for the background decode channel."""
import threading
import time

import numpy as np
import pytest

from qr_reader.core.exceptions import ChannelClosedError
from qr_reader.core.interfaces.raster_interface import CaptureFrame
from tests.conftest import FakeDetector, makeResult


def _waitFor(condition, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not condition():
        assert time.monotonic() < deadline, "condition not met in time"
        time.sleep(0.01)


def _frame(width=350, height=350):
    return CaptureFrame(
        pixels=np.zeros((height, width, 3), dtype=np.uint8),
        width=width,
        height=height
    )


def test_match_carries_submission_geometry(channelFactory, matchDetector, defaultGeometry):
    channel = channelFactory(matchDetector)

    response = channel.submit(_frame(), defaultGeometry).result(timeout=5)

    assert response.found
    assert response.result.text == "hello"
    assert response.geometry is defaultGeometry
    assert matchDetector.calls == [(350, 350, (350, 350, 3))]


def test_not_found_is_a_normal_response(channelFactory, emptyDetector, defaultGeometry):
    channel = channelFactory(emptyDetector)

    response = channel.submit(_frame(), defaultGeometry).result(timeout=5)

    assert not response.found
    assert response.result is None


def test_decoder_error_is_reported_as_not_found(channelFactory, defaultGeometry):
    channel = channelFactory(FakeDetector(error=ValueError("corrupt buffer")))

    response = channel.submit(_frame(), defaultGeometry).result(timeout=5)

    assert response.result is None


def test_decode_runs_off_the_calling_thread(channelFactory, defaultGeometry):
    threadNames = []

    class RecordingDetector(FakeDetector):
        def decode(self, pixels, width, height):
            threadNames.append(threading.current_thread().name)
            return None

    channel = channelFactory(RecordingDetector())
    channel.submit(_frame(), defaultGeometry).result(timeout=5)

    assert threadNames[0] != threading.current_thread().name
    assert threadNames[0].startswith("qr-decode")


def test_request_ids_increase(channelFactory, emptyDetector, defaultGeometry):
    channel = channelFactory(emptyDetector)

    first = channel.submit(_frame(), defaultGeometry).result(timeout=5)
    second = channel.submit(_frame(), defaultGeometry).result(timeout=5)

    assert second.requestId > first.requestId


def test_pending_count_tracks_in_flight_requests(channelFactory, gate, defaultGeometry):
    channel = channelFactory(FakeDetector(result=makeResult(), gate=gate))

    future = channel.submit(_frame(), defaultGeometry)
    assert channel.pendingCount() == 1

    gate.set()
    future.result(timeout=5)

    _waitFor(lambda: channel.pendingCount() == 0)


def test_submit_after_close_raises(channelFactory, emptyDetector, defaultGeometry):
    channel = channelFactory(emptyDetector)
    channel.close()

    assert channel.isClosed()
    with pytest.raises(ChannelClosedError):
        channel.submit(_frame(), defaultGeometry)


def test_close_is_idempotent(channelFactory, emptyDetector):
    channel = channelFactory(emptyDetector)

    channel.close()
    channel.close()

    assert channel.isClosed()


def test_close_cancels_queued_requests(channelFactory, gate, defaultGeometry):
    detector = FakeDetector(gate=gate)
    channel = channelFactory(detector)
    running = channel.submit(_frame(), defaultGeometry)
    _waitFor(lambda: detector.calls)
    queued = channel.submit(_frame(), defaultGeometry)

    channel.close()
    gate.set()

    running.result(timeout=5)
    assert queued.cancelled()


def test_debug_output_saves_matched_crop(tmp_path, matchDetector, defaultGeometry):
    from qr_reader.services.decode_channel import DecodeOffloadChannel

    channel = DecodeOffloadChannel(matchDetector, debugBasePath=str(tmp_path), debugEnabled=True)
    try:
        response = channel.submit(_frame(), defaultGeometry).result(timeout=5)
    finally:
        channel.close()

    debugDir = tmp_path / "decode_channel"
    assert (debugDir / f"request_{response.requestId}.png").exists()
    assert '"text": "hello"' in (debugDir / f"request_{response.requestId}.json").read_text()
