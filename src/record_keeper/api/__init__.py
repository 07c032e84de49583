__all__ = ["build_context", "create_app"]

from record_keeper.api.app import build_context, create_app
