import threading

from medbook.services.locks import KeyedLock


def test_same_key_is_exclusive():
    locks = KeyedLock("test")
    entered = threading.Event()
    release = threading.Event()

    def holder():
        with locks.hold(1):
            entered.set()
            release.wait(timeout=5)

    thread = threading.Thread(target=holder)
    thread.start()
    entered.wait(timeout=5)

    acquired = threading.Event()

    def contender():
        with locks.hold(1):
            acquired.set()

    waiting = threading.Thread(target=contender)
    waiting.start()
    assert not acquired.wait(timeout=0.2)

    release.set()
    thread.join(timeout=5)
    waiting.join(timeout=5)
    assert acquired.is_set()


def test_different_keys_do_not_block():
    locks = KeyedLock("test")

    with locks.hold(1):
        acquired = threading.Event()

        def other():
            with locks.hold(2):
                acquired.set()

        thread = threading.Thread(target=other)
        thread.start()
        thread.join(timeout=5)
        assert acquired.is_set()


def test_released_keys_are_forgotten():
    locks = KeyedLock("test")

    with locks.hold("a"):
        assert len(locks) == 1

    assert len(locks) == 0
