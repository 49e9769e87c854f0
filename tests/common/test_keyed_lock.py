import threading
import time

from src.campus_attendance.campus_attendance.common.locks import KeyedLock


def test_same_key_is_serialized():
    locks = KeyedLock()
    inside = []
    overlap = []

    def work():
        with locks.hold(("record", 1)):
            if inside:
                overlap.append(True)
            inside.append(True)
            time.sleep(0.01)
            inside.pop()

    threads = [threading.Thread(target=work) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert overlap == []
    assert locks._locks == {}


def test_different_keys_do_not_block():
    locks = KeyedLock()
    with locks.hold("a"):
        with locks.hold("b"):
            pass
