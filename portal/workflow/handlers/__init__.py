from portal.workflow.handlers.config import EVENT_HANDLERS, DeliveryContext, event_handler

# Importing the handler modules registers them
from portal.workflow.handlers import in_app, emails  # noqa: F401

__all__ = ["EVENT_HANDLERS", "DeliveryContext", "event_handler"]
