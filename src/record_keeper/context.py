from __future__ import annotations

import logging
import os
import signal
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Optional

from record_keeper.errors import GuardPoisonedError
from record_keeper.store import Store

logger = logging.getLogger("record_keeper.context")

PersistHook = Callable[[Store], bool]
FatalHandler = Callable[[GuardPoisonedError], None]


def terminate_process(exc: GuardPoisonedError) -> None:
    logger.critical("guard_poisoned_terminating", extra={"error": repr(exc.cause)})
    os.kill(os.getpid(), signal.SIGTERM)


def _no_persist(store: Store) -> bool:
    return True


class ServerContext:
    """Owns the store for the lifetime of one server.

    Every access goes through a single lock shared by all handlers. Mutations
    run the persistence hook before the lock is released.
    """

    def __init__(
        self,
        store: Store,
        *,
        persist: Optional[PersistHook] = None,
        on_fatal: Optional[FatalHandler] = None,
    ) -> None:
        self._store = store
        self._persist = persist or _no_persist
        self._on_fatal = on_fatal or terminate_process
        self._lock = threading.Lock()
        self._poisoned: Optional[BaseException] = None

    @property
    def poisoned(self) -> bool:
        return self._poisoned is not None

    @contextmanager
    def read(self) -> Iterator[Store]:
        with self._lock:
            self._check_poisoned()
            yield self._store

    @contextmanager
    def mutate(self) -> Iterator[Store]:
        with self._lock:
            self._check_poisoned()
            try:
                yield self._store
            except Exception as exc:
                # The store may hold a half-applied change; refuse further access.
                self._poisoned = exc
                self._on_fatal(GuardPoisonedError(exc))
                raise
            if not self._persist(self._store):
                logger.warning("write_through_failed")

    def _check_poisoned(self) -> None:
        if self._poisoned is not None:
            raise GuardPoisonedError(self._poisoned)
