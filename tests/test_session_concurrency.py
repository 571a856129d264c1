"""Session behavior while a selection is decoding on another thread."""

from __future__ import annotations

import threading

import pytest

from config import Limits
from src.imaging import session as session_module
from src.imaging.errors import StillLoading, StillLoadingWarning
from src.imaging.session import ImageSession, SessionState


class SlowDecode:
    """Wrap ``decode_raster`` so a load parks until the test releases it."""

    def __init__(self, decode):
        self._decode = decode
        self.started = threading.Event()
        self.release = threading.Event()

    def __call__(self, data, mime=None):
        self.started.set()
        self.release.wait(5)
        return self._decode(data, mime)


class ParkingLock:
    """Session lock that parks one named thread just before it acquires."""

    def __init__(self, inner, thread_name: str):
        self._inner = inner
        self._thread_name = thread_name
        self._parked = False
        self.reached = threading.Event()
        self.proceed = threading.Event()

    def acquire(self, *args, **kwargs):
        if threading.current_thread().name == self._thread_name and not self._parked:
            self._parked = True
            self.reached.set()
            self.proceed.wait(5)
        return self._inner.acquire(*args, **kwargs)

    def release(self):
        self._inner.release()

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, *exc):
        self.release()


@pytest.fixture()
def slow_decode(monkeypatch):
    slow = SlowDecode(session_module.decode_raster)
    monkeypatch.setattr(session_module, "decode_raster", slow)
    yield slow
    slow.release.set()


@pytest.fixture()
def loaded(image_bytes) -> ImageSession:
    session = ImageSession(Limits())
    session.select_image(image_bytes((400, 300)))
    return session


def _start(target, name: str) -> threading.Thread:
    thread = threading.Thread(target=target, name=name, daemon=True)
    thread.start()
    return thread


def test_edits_during_a_running_load_are_rejected(loaded, slow_decode, image_bytes):
    loader = _start(lambda: loaded.select_image(image_bytes((50, 50))), "loader")
    assert slow_decode.started.wait(5)

    assert loaded.state is SessionState.LOADING
    with pytest.warns(StillLoadingWarning):
        assert loaded.resize_image(width=100) is None
    with pytest.raises(StillLoading):
        loaded.crop_image(0, 0, 10, 10)
    with pytest.raises(StillLoading):
        loaded.select_image(image_bytes((20, 20)))
    with pytest.warns(StillLoadingWarning):
        assert loaded.restore_original_image() is None

    slow_decode.release.set()
    loader.join(5)
    assert loaded.selected.size == (50, 50)
    assert loaded.state is SessionState.READY


@pytest.mark.filterwarnings("ignore::UserWarning")
def test_edit_waiting_on_the_lock_is_not_queued_behind_a_load(
    loaded, slow_decode, image_bytes
):
    lock = ParkingLock(loaded._lock, "resizer")
    loaded._lock = lock
    results = {}

    def resize():
        results["resize"] = loaded.resize_image(width=100, maintain_aspect_ratio=True)

    # resize passes the loading check, then waits at the lock
    resizer = _start(resize, "resizer")
    assert lock.reached.wait(5)

    loader = _start(lambda: loaded.select_image(image_bytes((50, 50))), "loader")
    assert slow_decode.started.wait(5)

    lock.proceed.set()
    slow_decode.release.set()
    loader.join(5)
    resizer.join(5)

    assert results["resize"] is None
    assert loaded.selected.size == (50, 50)
    assert loaded.selected is loaded.original


def test_crop_waiting_on_the_lock_is_rejected_after_a_load(
    loaded, slow_decode, image_bytes
):
    lock = ParkingLock(loaded._lock, "cropper")
    loaded._lock = lock
    errors = []

    def crop():
        try:
            loaded.crop_image(0, 0, 10, 10)
        except StillLoading as exc:
            errors.append(exc)

    cropper = _start(crop, "cropper")
    assert lock.reached.wait(5)

    loader = _start(lambda: loaded.select_image(image_bytes((50, 50))), "loader")
    assert slow_decode.started.wait(5)

    lock.proceed.set()
    slow_decode.release.set()
    loader.join(5)
    cropper.join(5)

    assert len(errors) == 1
    assert loaded.selected.size == (50, 50)


def test_edits_after_a_finished_load_run_normally(loaded, image_bytes):
    loaded.select_image(image_bytes((200, 100)))
    assert loaded.resize_image(width=100, maintain_aspect_ratio=True).size == (100, 50)
