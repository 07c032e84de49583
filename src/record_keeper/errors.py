from __future__ import annotations


class RecordKeeperError(RuntimeError):
    pass


class GuardPoisonedError(RecordKeeperError):
    def __init__(self, cause: BaseException | None = None) -> None:
        super().__init__(f"store guard poisoned by a failed mutation: {cause!r}")
        self.cause = cause


class FeedFormatError(RecordKeeperError):
    def __init__(self, *, url: str, payload: object) -> None:
        super().__init__(f"rates not found in response from {url}")
        self.url = url
        self.payload = payload
