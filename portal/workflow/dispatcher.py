"""
Best-effort delivery of workflow events to notification and email sinks.

The dispatcher runs after the transition's transaction has committed, in a
FastAPI background task. Each handler is isolated: a failing or slow
provider is logged and skipped, never raised back to the request that made
the transition.

Handlers declared with plain ``def`` do blocking database work and run in
the threadpool; ``async def`` handlers run on the event loop and must push
any blocking call to the threadpool themselves.
"""
import inspect
import logging
from typing import Callable, Iterable, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from portal.database.config.db import SessionLocal
from portal.utils.auth import SqlIdentityProvider
from portal.utils.mailer import RegistrationMailer
from portal.utils.notifier import InAppNotifier
from portal.workflow.events import WorkflowEvent
from portal.workflow.handlers import EVENT_HANDLERS, DeliveryContext

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        mailer: Optional[RegistrationMailer] = None,
    ):
        self.session_factory = session_factory
        self.mailer = mailer or RegistrationMailer()

    async def dispatch(self, events: Iterable[WorkflowEvent]) -> None:
        for event in events:
            await self.dispatch_one(event)

    async def dispatch_one(self, event: WorkflowEvent) -> None:
        handlers = EVENT_HANDLERS.get(event.kind, [])
        if not handlers:
            logger.debug("No handlers registered for %s", event.kind.value)
            return

        db = self.session_factory()
        try:
            ctx = DeliveryContext(
                notifier=InAppNotifier(db),
                mailer=self.mailer,
                identity=SqlIdentityProvider(db),
            )
            for handler in handlers:
                try:
                    if inspect.iscoroutinefunction(handler):
                        await handler(event, ctx)
                    else:
                        await run_in_threadpool(handler, event, ctx)
                except Exception:
                    logger.exception(
                        "Handler %s failed for %s on submission %s",
                        handler.__name__, event.kind.value, event.submission_id,
                    )
        finally:
            await run_in_threadpool(db.close)


_dispatcher: Optional[NotificationDispatcher] = None


def get_dispatcher() -> NotificationDispatcher:
    """FastAPI dependency returning the process-wide dispatcher."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher()
    return _dispatcher
