from __future__ import annotations

from collections.abc import Callable
from typing import Generic, Optional, TypeVar

from record_keeper.models import CurrencyPair, FitnessProgress, Snapshot, Task, User

K = TypeVar("K")
R = TypeVar("R")

DEFAULT_FOREX_SYMBOLS = ("EURUSD", "USDJPY")
_DEFAULT_FOREX_PRICE = 1.0


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


class RecordTable(Generic[K, R]):
    """Keyed collection of whole records.

    Not thread-safe on its own: callers hold the context guard.
    """

    def __init__(self, key_of: Callable[[R], K]) -> None:
        self._key_of = key_of
        self._rows: dict[K, R] = {}

    def insert(self, record: R) -> None:
        self._rows[self._key_of(record)] = record

    def update(self, key: K, record: R) -> None:
        # Full replacement, same as insert.
        self._rows[key] = record

    def get(self, key: K) -> Optional[R]:
        return self._rows.get(key)

    def list(self) -> list[R]:
        return list(self._rows.values())

    def delete(self, key: K) -> None:
        self._rows.pop(key, None)

    def items(self) -> list[tuple[K, R]]:
        return list(self._rows.items())

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, key: object) -> bool:
        return key in self._rows

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RecordTable):
            return NotImplemented
        return self._rows == other._rows


class CurrencyTable(RecordTable[str, CurrencyPair]):
    def __init__(self) -> None:
        super().__init__(lambda pair: normalize_symbol(pair.symbol))

    def insert(self, record: CurrencyPair) -> None:
        super().insert(_normalized_pair(record))

    def update(self, key: str, record: CurrencyPair) -> None:
        super().update(normalize_symbol(key), _normalized_pair(record))

    def get(self, key: str) -> Optional[CurrencyPair]:
        return super().get(normalize_symbol(key))

    def delete(self, key: str) -> None:
        super().delete(normalize_symbol(key))

    def set_price(self, symbol: str, price: float) -> None:
        self.insert(CurrencyPair(symbol=symbol, price=price))


def _normalized_pair(pair: CurrencyPair) -> CurrencyPair:
    symbol = normalize_symbol(pair.symbol)
    if symbol == pair.symbol:
        return pair
    return pair.model_copy(update={"symbol": symbol})


class Store:
    def __init__(self) -> None:
        self.tasks: RecordTable[int, Task] = RecordTable(lambda task: task.id)
        self.users: RecordTable[int, User] = RecordTable(lambda user: user.id)
        self.progress: RecordTable[int, FitnessProgress] = RecordTable(lambda entry: entry.id)
        self.forex_pairs = CurrencyTable()

    def get_user_by_username(self, username: str) -> Optional[User]:
        # No secondary index; usernames are not unique, first match wins.
        for user in self.users.list():
            if user.username == username:
                return user
        return None

    def preload_forex_defaults(self) -> None:
        for symbol in DEFAULT_FOREX_SYMBOLS:
            if symbol not in self.forex_pairs:
                self.forex_pairs.set_price(symbol, _DEFAULT_FOREX_PRICE)

    def to_snapshot(self) -> Snapshot:
        return Snapshot(
            tasks={str(k): v for k, v in self.tasks.items()},
            users={str(k): v for k, v in self.users.items()},
            progress={str(k): v for k, v in self.progress.items()},
            forex_pairs=dict(self.forex_pairs.items()),
        )

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "Store":
        store = cls()
        for key, task in snapshot.tasks.items():
            store.tasks.update(int(key), task)
        for key, user in snapshot.users.items():
            store.users.update(int(key), user)
        for key, entry in snapshot.progress.items():
            store.progress.update(int(key), entry)
        for key, pair in snapshot.forex_pairs.items():
            store.forex_pairs.update(key, pair)
        return store

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Store):
            return NotImplemented
        return (
            self.tasks == other.tasks
            and self.users == other.users
            and self.progress == other.progress
            and self.forex_pairs == other.forex_pairs
        )
