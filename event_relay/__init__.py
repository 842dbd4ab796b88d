from .models import DeliveryResult, RelayState, TokenTransferEvent
from .relay import EventRelay
from .webhook import EventSink, WebhookClient

__all__ = [
    "DeliveryResult",
    "EventRelay",
    "EventSink",
    "RelayState",
    "TokenTransferEvent",
    "WebhookClient",
]
