from dataclasses import dataclass
from typing import Awaitable, TypeVar

from fastapi import Request

from image_server.app.exceptions import StoreError
from image_server.app.services.object_store import ObjectStore
from image_server.config import Settings
from image_server.logger_config import setup_logger
from image_server.monitor import StoreMonitor

logger = setup_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class AppContext:
    """Per-process bindings handed to every request handler."""

    settings: Settings
    store: ObjectStore
    monitor: StoreMonitor

    async def store_call(self, operation: str, key: str, call: Awaitable[T]) -> T:
        """Await a store operation, recording the outcome with the monitor.

        Any failure is logged with its traceback and re-raised as a
        StoreError so the client only ever sees the generic message.
        """
        try:
            result = await call
        except Exception as e:
            failures = self.monitor.record_failure(operation, key)
            logger.error(
                f"Store {operation} failed for key {key} ({failures} in window): {str(e)}",
                exc_info=True,
            )
            raise StoreError() from e
        self.monitor.record_success(operation)
        return result


def get_context(request: Request) -> AppContext:
    return request.app.state.context
