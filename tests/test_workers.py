"""Tests for shutting down background workers."""

from butterflyeffect.controller.workers import wait_for_workers


class FakeWorker:
    def __init__(self, running):
        self.running = running
        self.wait_calls = []

    def isRunning(self):
        return self.running

    def wait(self, *args):
        self.wait_calls.append(args)
        self.running = False
        return True


def test_running_workers_are_waited_for_without_timeout():
    busy, done = FakeWorker(True), FakeWorker(False)

    assert wait_for_workers([busy, done]) == 1
    # no deadline: the thread has to be finished before it can be destroyed
    assert busy.wait_calls == [()]
    assert not busy.isRunning()
    assert done.wait_calls == []


def test_no_workers():
    assert wait_for_workers([]) == 0
