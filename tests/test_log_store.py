import threading
import unittest
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from tmodweb.services.log_store import LogStore


def _ticking_clock(start=datetime(2026, 1, 1, 8, 0, 0, tzinfo=ZoneInfo("UTC"))):
    state = {"now": start}

    def clock():
        value = state["now"]
        state["now"] = value + timedelta(seconds=1)
        return value

    return clock


class LogStoreTests(unittest.TestCase):
    def test_recent_never_exceeds_limit_and_keeps_order(self):
        for count in (0, 5, 10, 50):
            with self.subTest(count=count):
                store = LogStore(capacity=200, clock=_ticking_clock())
                for idx in range(count):
                    store.append(f"event {idx}")
                recent = store.recent(10)
                self.assertEqual(len(recent), min(count, 10))
                expected = [f"event {idx}" for idx in range(max(0, count - 10), count)]
                self.assertEqual([entry.message for entry in recent], expected)
                stamps = [entry.timestamp for entry in recent]
                self.assertEqual(stamps, sorted(stamps))

    def test_render_uses_hh_mm_ss(self):
        store = LogStore(clock=_ticking_clock())
        entry = store.append("Server started")
        self.assertEqual(entry.render(), "[08:00:00] Server started")

    def test_capacity_bounds_retained_history(self):
        store = LogStore(capacity=3, clock=_ticking_clock())
        for idx in range(7):
            store.append(f"event {idx}")
        self.assertEqual(len(store), 3)
        self.assertEqual([entry.message for entry in store.recent(10)], ["event 4", "event 5", "event 6"])

    def test_recent_zero_or_negative(self):
        store = LogStore()
        store.append("x")
        self.assertEqual(store.recent(0), [])
        self.assertEqual(store.recent(-1), [])

    def test_entries_are_immutable(self):
        entry = LogStore().append("x")
        with self.assertRaises(AttributeError):
            entry.message = "y"

    def test_concurrent_appends(self):
        store = LogStore(capacity=1000)

        def writer(prefix):
            for idx in range(100):
                store.append(f"{prefix}-{idx}")

        threads = [threading.Thread(target=writer, args=(name,)) for name in "abcd"]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(len(store), 400)
        self.assertEqual(len(store.recent(10)), 10)


if __name__ == "__main__":
    unittest.main()
