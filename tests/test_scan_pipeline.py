"""Tests for the scan pipeline lifecycle."""
import dataclasses
import logging
import threading

import numpy as np
import pytest
import shiboken6

from qr_reader.core.exceptions import (
    DeviceUnavailableError,
    PermissionDeniedError,
    ScannerError,
    SurfaceUnavailableError
)
from qr_reader.core.geometry.scan_area import computeScanArea
from qr_reader.core.mapping.result_mapper import OverlayRect
from qr_reader.services.config_service import ScannerConfig
from qr_reader.services.scan_pipeline import PipelineState, ScanPipeline
from tests.conftest import FakeCamera, FakeDetector, makeResult


def test_start_acquires_camera_and_samples(pipelineFactory, fakeCamera):
    pipeline = pipelineFactory(camera=fakeCamera)

    pipeline.start()

    assert pipeline.state == PipelineState.RUNNING
    assert fakeCamera.openCount == 1
    assert pipeline.sampler.isActive()
    assert pipeline.sampler.interval() == 300


def test_camera_request_uses_configuration(pipelineFactory, fakeCamera):
    pipeline = pipelineFactory(camera=fakeCamera, width=640, height=480, facingMode="user")

    pipeline.start()

    assert fakeCamera.requests[0].toDict() == {
        "audio": False,
        "video": {"facingMode": "user", "width": 640, "height": 480},
    }


def test_start_paused_never_acquires_camera(qtbot, pipelineFactory, fakeCamera, emptyDetector):
    pipeline = pipelineFactory(camera=fakeCamera, detector=emptyDetector, pause=True, timerInterval=10)

    pipeline.start()
    qtbot.wait(100)

    assert pipeline.state == PipelineState.PAUSED
    assert fakeCamera.openCount == 0
    assert not pipeline.sampler.isActive()
    assert emptyDetector.calls == []


def test_resume_after_paused_start_acquires(qtbot, pipelineFactory, fakeCamera, emptyDetector):
    pipeline = pipelineFactory(camera=fakeCamera, detector=emptyDetector, pause=True, timerInterval=10)
    pipeline.start()

    pipeline.setPaused(False)

    assert pipeline.state == PipelineState.RUNNING
    assert fakeCamera.openCount == 1
    qtbot.waitUntil(lambda: len(emptyDetector.calls) >= 1, timeout=5000)


def test_pause_stops_submissions(qtbot, pipelineFactory, fakeCamera, emptyDetector):
    pipeline = pipelineFactory(camera=fakeCamera, detector=emptyDetector, timerInterval=10)
    pipeline.start()
    qtbot.waitUntil(lambda: len(emptyDetector.calls) >= 1, timeout=5000)

    pipeline.setPaused(True)
    qtbot.wait(50)
    callsAtPause = len(emptyDetector.calls)
    qtbot.wait(150)

    assert pipeline.state == PipelineState.PAUSED
    assert len(emptyDetector.calls) == callsAtPause
    assert not pipeline.sampler.isActive()


def test_pause_keeps_camera_open(pipelineFactory, fakeCamera):
    pipeline = pipelineFactory(camera=fakeCamera)
    pipeline.start()

    pipeline.setPaused(True)

    assert fakeCamera.releaseCount == 0
    assert pipeline.streamService.isAcquired()
    assert not pipeline.streamService.isPlaying()


def test_resume_reuses_open_camera(pipelineFactory, fakeCamera):
    pipeline = pipelineFactory(camera=fakeCamera)
    pipeline.start()
    pipeline.setPaused(True)

    pipeline.setPaused(False)

    assert pipeline.state == PipelineState.RUNNING
    assert fakeCamera.openCount == 1
    assert pipeline.streamService.isPlaying()
    assert pipeline.sampler.isActive()


@pytest.mark.parametrize("paused", [False, True])
def test_teardown_releases_camera_once(pipelineFactory, fakeCamera, paused):
    pipeline = pipelineFactory(camera=fakeCamera)
    pipeline.start()
    pipeline.setPaused(paused)

    pipeline.teardown()
    pipeline.teardown()

    assert pipeline.state == PipelineState.TORN_DOWN
    assert fakeCamera.releaseCount == 1
    assert not pipeline.sampler.isActive()


def test_teardown_before_start(pipelineFactory, fakeCamera):
    pipeline = pipelineFactory(camera=fakeCamera)

    pipeline.teardown()

    assert pipeline.state == PipelineState.TORN_DOWN
    assert fakeCamera.releaseCount == 0


def test_start_after_teardown_raises(pipelineFactory):
    pipeline = pipelineFactory()
    pipeline.teardown()

    with pytest.raises(ScannerError):
        pipeline.start()


@pytest.mark.parametrize("error", [
    PermissionDeniedError("denied"),
    DeviceUnavailableError("no device"),
])
def test_acquisition_failure_is_surfaced(qtbot, pipelineFactory, error):
    camera = FakeCamera(error=error)
    pipeline = pipelineFactory(camera=camera)

    with qtbot.waitSignal(pipeline.errorOccurred, timeout=1000):
        with pytest.raises(type(error)):
            pipeline.start()

    assert pipeline.state == PipelineState.UNINITIALIZED
    assert pipeline.lastError is error
    assert not pipeline.sampler.isActive()
    assert len(camera.requests) == 1


def test_surface_failure_releases_camera(qtbot, fakeCamera):
    def failingSurface(geometry):
        raise SurfaceUnavailableError("no surface")

    pipeline = ScanPipeline(camera=fakeCamera, detector=FakeDetector(), surfaceFactory=failingSurface)

    try:
        with pytest.raises(SurfaceUnavailableError):
            pipeline.start()

        assert pipeline.state == PipelineState.UNINITIALIZED
        assert fakeCamera.releaseCount == 1
        assert not pipeline.streamService.isAcquired()
        assert not pipeline.sampler.isActive()
    finally:
        pipeline.teardown()


def test_recognition_maps_overlay_and_notifies(qtbot, pipelineFactory):
    events = []
    detector = FakeDetector(result=makeResult(topLeft=(10, 20), bottomRight=(60, 80)))
    pipeline = pipelineFactory(detector=detector, timerInterval=60000, onRecognize=events.append)
    pipeline.start()

    with qtbot.waitSignal(pipeline.recognized, timeout=5000) as blocker:
        pipeline.sampler.captureOnce()

    event = blocker.args[0]
    assert event.payload == "hello"
    assert event.overlay == OverlayRect(top=95, left=85, width=50, height=60)
    assert pipeline.overlay == OverlayRect(top=95, left=85, width=50, height=60)
    assert events == [event]


def test_hidden_frame_keeps_overlay_empty(qtbot, pipelineFactory, matchDetector):
    pipeline = pipelineFactory(detector=matchDetector, timerInterval=60000, showQRFrame=False)
    pipeline.start()

    with qtbot.waitSignal(pipeline.recognized, timeout=5000):
        pipeline.sampler.captureOnce()

    assert pipeline.overlay.isEmpty()


def test_results_arriving_after_pause_are_ignored(qtbot, pipelineFactory, gate):
    detector = FakeDetector(result=makeResult(), gate=gate)
    pipeline = pipelineFactory(detector=detector, timerInterval=60000)
    recognized = []
    pipeline.recognized.connect(recognized.append)
    pipeline.start()

    future = pipeline.sampler.captureOnce()
    pipeline.setPaused(True)
    gate.set()
    future.result(timeout=5)
    qtbot.wait(100)

    assert recognized == []
    assert pipeline.overlay.isEmpty()


def test_display_change_does_not_reacquire(pipelineFactory, fakeCamera):
    pipeline = pipelineFactory(camera=fakeCamera)
    pipeline.start()

    pipeline.applyConfig(pipeline.config.update(showQRFrame=False))

    assert fakeCamera.openCount == 1
    assert fakeCamera.releaseCount == 0
    assert pipeline.state == PipelineState.RUNNING


def test_ratio_change_updates_scan_area_without_reacquire(pipelineFactory, fakeCamera, matchDetector):
    pipeline = pipelineFactory(camera=fakeCamera, detector=matchDetector, timerInterval=60000)
    pipeline.start()

    pipeline.applyConfig(pipeline.config.update(scanAreaRatio=50))
    pipeline.sampler.captureOnce().result(timeout=5)

    assert pipeline.scanArea.width == 250
    assert pipeline.scanArea.top == 125
    assert fakeCamera.openCount == 1
    assert matchDetector.calls[-1][:2] == (250, 250)


def test_size_change_reacquires_camera(pipelineFactory, fakeCamera):
    pipeline = pipelineFactory(camera=fakeCamera)
    pipeline.start()

    pipeline.applyConfig(pipeline.config.update(width=640, height=480))

    assert fakeCamera.openCount == 2
    assert fakeCamera.releaseCount == 1
    assert fakeCamera.requests[-1].video.width == 640
    assert pipeline.scanArea.width == pytest.approx(448)
    assert pipeline.state == PipelineState.RUNNING


def test_interval_change_retimes_sampler(pipelineFactory):
    pipeline = pipelineFactory()
    pipeline.start()

    pipeline.applyConfig(pipeline.config.update(timerInterval=150))

    assert pipeline.sampler.interval() == 150


def test_pause_through_config(pipelineFactory, fakeCamera):
    pipeline = pipelineFactory(camera=fakeCamera)
    pipeline.start()

    pipeline.applyConfig(pipeline.config.update(pause=True))

    assert pipeline.state == PipelineState.PAUSED
    assert fakeCamera.releaseCount == 0


def test_decode_channel_created_once(qtbot):
    created = []

    def channelFactory():
        from qr_reader.services.decode_channel import DecodeOffloadChannel
        channel = DecodeOffloadChannel(FakeDetector())
        created.append(channel)
        return channel

    pipeline = ScanPipeline(camera=FakeCamera(), channelFactory=channelFactory)
    try:
        pipeline.start()
        pipeline.setPaused(True)
        pipeline.setPaused(False)
        pipeline.applyConfig(pipeline.config.update(width=300, height=300))

        assert len(created) == 1
    finally:
        pipeline.teardown()

    assert created[0].isClosed()


def test_context_manager_releases_on_error(qtbot, fakeCamera):
    with pytest.raises(RuntimeError):
        with ScanPipeline(camera=fakeCamera, detector=FakeDetector()) as pipeline:
            assert pipeline.state == PipelineState.RUNNING
            raise RuntimeError("caller failed")

    assert fakeCamera.releaseCount == 1
    assert pipeline.state == PipelineState.TORN_DOWN


def test_state_changes_are_signalled(qtbot, pipelineFactory):
    pipeline = pipelineFactory()
    states = []
    pipeline.stateChanged.connect(states.append)

    pipeline.start()
    pipeline.setPaused(True)
    pipeline.setPaused(False)
    pipeline.teardown()

    assert states == [
        PipelineState.RUNNING,
        PipelineState.PAUSED,
        PipelineState.RUNNING,
        PipelineState.TORN_DOWN,
    ]


def test_current_frame_comes_from_stream(pipelineFactory):
    frame = np.full((500, 500, 3), 42, dtype=np.uint8)
    pipeline = pipelineFactory(camera=FakeCamera(frame=frame))
    pipeline.start()

    assert np.array_equal(pipeline.currentFrame(), frame)


def test_config_cannot_be_changed_behind_the_pipeline(pipelineFactory):
    pipeline = pipelineFactory()
    pipeline.start()

    with pytest.raises(dataclasses.FrozenInstanceError):
        pipeline.config.scanAreaRatio = 50

    pipeline.applyConfig(pipeline.config.update(scanAreaRatio=50))

    assert pipeline.config.scanAreaRatio == 50
    assert pipeline.scanArea == computeScanArea(500, 500, 50)


def test_ratio_change_signals_new_scan_area(qtbot, pipelineFactory):
    pipeline = pipelineFactory()
    pipeline.start()

    with qtbot.waitSignal(pipeline.scanAreaChanged, timeout=1000) as blocker:
        pipeline.applyConfig(pipeline.config.update(scanAreaRatio=50))

    assert blocker.args == [computeScanArea(500, 500, 50)]


def test_display_change_keeps_scan_area_silent(qtbot, pipelineFactory):
    pipeline = pipelineFactory()
    pipeline.start()

    with qtbot.assertNotEmitted(pipeline.scanAreaChanged):
        pipeline.applyConfig(pipeline.config.update(showQRFrame=False))


def test_result_after_pipeline_deleted_is_dropped(qtbot, caplog, gate):
    detector = FakeDetector(result=makeResult(), gate=gate)
    pipeline = ScanPipeline(
        config=ScannerConfig(timerInterval=60000),
        camera=FakeCamera(),
        detector=detector
    )
    pipeline.start()
    future = pipeline.sampler.captureOnce()
    qtbot.waitUntil(lambda: len(detector.calls) == 1, timeout=5000)

    # Added after the sampler's own callback, so it runs after it
    forwarded = threading.Event()
    future.add_done_callback(lambda f: forwarded.set())

    pipeline.teardown()
    shiboken6.delete(pipeline)

    with caplog.at_level(logging.ERROR):
        gate.set()
        assert forwarded.wait(timeout=5)

    assert [r for r in caplog.records if r.levelno >= logging.ERROR] == []
