import threading
import time
from pathlib import Path

import pytest

from locator_loader.watch_core.queue import ChangeQueue


def _wait_for(predicate, timeout=2.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


@pytest.mark.unit
def test_paths_are_debounced_into_one_sorted_batch():
    batches = []
    q = ChangeQueue(batches.append, delay=0.05)
    q.add(Path("/b/2.js"))
    q.add(Path("/a/1.js"))
    q.add(Path("/b/2.js"))

    assert _wait_for(lambda: batches)
    time.sleep(0.1)
    assert batches == [[Path("/a/1.js"), Path("/b/2.js")]]


@pytest.mark.unit
def test_paths_arriving_during_processing_form_the_next_batch():
    batches = []
    started = threading.Event()
    release = threading.Event()

    def slow(batch):
        batches.append(batch)
        started.set()
        release.wait(2.0)

    q = ChangeQueue(slow, delay=0.02)
    q.add(Path("/a.js"))
    assert started.wait(2.0)
    q.add(Path("/b.js"))
    time.sleep(0.1)
    assert batches == [[Path("/a.js")]]

    release.set()
    assert _wait_for(lambda: len(batches) == 2)
    assert batches[1] == [Path("/b.js")]


@pytest.mark.unit
def test_callback_errors_do_not_stop_the_queue():
    calls = []

    def boom(batch):
        calls.append(batch)
        if len(calls) == 1:
            raise RuntimeError("boom")

    q = ChangeQueue(boom, delay=0.02)
    q.add(Path("/a.js"))
    assert _wait_for(lambda: len(calls) == 1)
    q.add(Path("/b.js"))
    assert _wait_for(lambda: len(calls) == 2)


@pytest.mark.unit
def test_cancel_drops_pending_flush():
    batches = []
    q = ChangeQueue(batches.append, delay=0.1)
    q.add(Path("/a.js"))
    q.cancel()
    time.sleep(0.2)
    assert batches == []
