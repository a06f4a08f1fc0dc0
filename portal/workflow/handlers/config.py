from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

from portal.utils.auth import SqlIdentityProvider
from portal.utils.mailer import RegistrationMailer
from portal.utils.notifier import InAppNotifier
from portal.workflow.events import EventKind, WorkflowEvent


@dataclass
class DeliveryContext:
    """Collaborators available to event handlers during one dispatch."""
    notifier: InAppNotifier
    mailer: RegistrationMailer
    identity: SqlIdentityProvider


# Plain functions run in the threadpool, coroutine functions on the event loop
EventHandler = Callable[[WorkflowEvent, DeliveryContext], Optional[Awaitable[None]]]
EVENT_HANDLERS: Dict[EventKind, List[EventHandler]] = {}


def event_handler(*kinds: EventKind):
    def _decorator(fn: EventHandler):
        for kind in kinds:
            EVENT_HANDLERS.setdefault(kind, []).append(fn)
        return fn

    return _decorator
