"""Unit tests for per-identifier mutual exclusion."""

from __future__ import annotations

import threading

from shelfpress.pipeline.locks import IdentifierLockRegistry


def test_same_identifier_is_serialized() -> None:
    """A second holder of the same identifier should wait for the first to finish."""

    registry = IdentifierLockRegistry()
    first_entered = threading.Event()
    release_first = threading.Event()
    second_entered = threading.Event()

    def _first() -> None:
        with registry.hold("Gomez_Maria-Title"):
            first_entered.set()
            release_first.wait(timeout=5)

    def _second() -> None:
        with registry.hold("Gomez_Maria-Title"):
            second_entered.set()

    first = threading.Thread(target=_first)
    first.start()
    assert first_entered.wait(timeout=5)

    second = threading.Thread(target=_second)
    second.start()
    assert not second_entered.wait(timeout=0.2)

    release_first.set()
    assert second_entered.wait(timeout=5)
    first.join(timeout=5)
    second.join(timeout=5)


def test_different_identifiers_do_not_block_each_other() -> None:
    """Holding one identifier should not delay another."""

    registry = IdentifierLockRegistry()
    entered = threading.Event()

    def _other() -> None:
        with registry.hold("Other-Title"):
            entered.set()

    with registry.hold("Gomez_Maria-Title"):
        worker = threading.Thread(target=_other)
        worker.start()
        assert entered.wait(timeout=5)
        worker.join(timeout=5)


def test_registry_drops_entries_once_released() -> None:
    """Unused identifiers should not accumulate in the registry."""

    registry = IdentifierLockRegistry()

    with registry.hold("A-Title"):
        assert registry.active_identifiers() == ("A-Title",)

    assert registry.active_identifiers() == tuple()
