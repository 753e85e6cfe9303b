"""Tests for the per-key lock registry used around quota and conflict checks."""
import threading
import time
from concurrent.futures import ThreadPoolExecutor

from approvals.services.locks import KeyedLocks, quota_key, request_key


class TestKeyedLocks:

    def test_lock_is_dropped_after_release(self):
        locks = KeyedLocks()
        with locks.hold(request_key("r-1"), quota_key("staff-1")):
            assert len(locks) == 2
        assert len(locks) == 0

    def test_many_keys_do_not_accumulate(self):
        locks = KeyedLocks()
        for i in range(500):
            with locks.hold(request_key(f"r-{i}")):
                pass
        assert len(locks) == 0

    def test_nested_hold_on_same_key_is_reentrant(self):
        locks = KeyedLocks()
        with locks.hold(request_key("r-1")):
            with locks.hold(request_key("r-1"), quota_key("staff-1")):
                assert len(locks) == 2
            # outer holder still owns it
            assert len(locks) == 1
        assert len(locks) == 0

    def test_lock_released_when_body_raises(self):
        locks = KeyedLocks()
        try:
            with locks.hold(quota_key("staff-1")):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert len(locks) == 0

    def test_waiter_keeps_lock_alive_and_is_serialised(self):
        locks = KeyedLocks()
        key = quota_key("staff-1")
        inside = threading.Event()
        events = []

        def first():
            with locks.hold(key):
                inside.set()
                events.append("first-in")
                time.sleep(0.1)
                events.append("first-out")

        def second():
            inside.wait()
            with locks.hold(key):
                events.append("second-in")

        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [pool.submit(first), pool.submit(second)]
            for future in futures:
                future.result()

        assert events == ["first-in", "first-out", "second-in"]
        assert len(locks) == 0
