from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from record_keeper.models import Snapshot
from record_keeper.store import Store

_logger = logging.getLogger("record_keeper.persistence")


class SnapshotGateway:
    """Writes the whole store to one JSON file and restores it at startup."""

    def __init__(self, path: Path | str, *, logger: Optional[logging.Logger] = None) -> None:
        self._path = Path(path)
        self._logger = logger or _logger

    @property
    def path(self) -> Path:
        return self._path

    def save(self, store: Store) -> bool:
        """Replace the snapshot file. Failures are logged and reported as False."""
        tmp_name: str | None = None
        try:
            data = store.to_snapshot().model_dump_json(indent=2)
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                dir=self._path.parent,
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
            tmp_name = None
        except (OSError, ValueError, TypeError) as exc:
            self._logger.error(
                "snapshot_save_failed",
                extra={"path": str(self._path), "error": repr(exc)},
            )
            return False
        finally:
            if tmp_name is not None:
                _remove_quietly(tmp_name)
        return True

    def load(self) -> Store:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self._logger.info("snapshot_missing", extra={"path": str(self._path)})
            return Store()
        except OSError as exc:
            self._logger.warning(
                "snapshot_unreadable",
                extra={"path": str(self._path), "error": repr(exc)},
            )
            return Store()

        if not raw.strip():
            self._logger.info("snapshot_empty", extra={"path": str(self._path)})
            return Store()

        try:
            return Store.from_snapshot(Snapshot.model_validate_json(raw))
        except (ValidationError, ValueError) as exc:
            self._logger.warning(
                "snapshot_malformed",
                extra={"path": str(self._path), "error": repr(exc)},
            )
            return Store()


class WriteThrough:
    """Post-mutation hook that persists synchronously on every call."""

    def __init__(self, gateway: SnapshotGateway) -> None:
        self._gateway = gateway

    def __call__(self, store: Store) -> bool:
        return self._gateway.save(store)


def _remove_quietly(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        return
    except OSError as exc:
        _logger.warning("snapshot_tmp_cleanup_failed", extra={"path": path, "error": repr(exc)})
