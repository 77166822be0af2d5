# gatehouse/services/backend.py
"""
Wires the store, the event emitter and everything built on them into one
object that the FastAPI app creates at startup and keeps on `app.state`.
"""

from dataclasses import dataclass, field
from typing import Optional

from gatehouse.config import settings
from gatehouse.services.checkin_service import WizardSessions
from gatehouse.services.directory_service import DirectoryService
from gatehouse.services.document_store import DocumentStore
from gatehouse.services.errors import PermissionErrorContext
from gatehouse.services.event_emitter import (
    LOG_EVENT,
    PERMISSION_ERROR_EVENT,
    EventEmitter,
    EventLogBuffer,
)
from gatehouse.services.live_views import LiveViews
from gatehouse.services.mutations import NonBlockingWriter
from gatehouse.utils.logger import get_logger

logger = get_logger(__name__)


def log_permission_error(context: PermissionErrorContext) -> None:
    """Global listener: every rejected write ends up in the service log."""
    logger.warning(f"{context.describe()} | payload={context.request_resource_data!r}")


@dataclass
class Backend:
    store: DocumentStore
    emitter: EventEmitter
    writer: NonBlockingWriter
    live_views: LiveViews
    directory: DirectoryService
    wizard_sessions: WizardSessions = field(default_factory=WizardSessions)
    live_log: Optional[EventLogBuffer] = None
    permission_errors: Optional[EventLogBuffer] = None

    def start(self) -> None:
        self.emitter.on(PERMISSION_ERROR_EVENT, log_permission_error)
        self.live_log.start()
        self.permission_errors.start()
        self.live_views.start()

    async def shutdown(self) -> None:
        await self.writer.drain()
        self.live_views.close()
        self.live_log.stop()
        self.permission_errors.stop()
        self.emitter.off(PERMISSION_ERROR_EVENT, log_permission_error)


def create_backend(session_factory) -> Backend:
    store = DocumentStore(session_factory)
    emitter = EventEmitter()
    writer = NonBlockingWriter(store, emitter)
    return Backend(
        store=store,
        emitter=emitter,
        writer=writer,
        live_views=LiveViews(store),
        directory=DirectoryService(store, writer),
        live_log=EventLogBuffer(emitter, LOG_EVENT, settings.LIVE_LOG_BUFFER_SIZE),
        permission_errors=EventLogBuffer(emitter, PERMISSION_ERROR_EVENT, settings.LIVE_LOG_BUFFER_SIZE),
    )
