"""
Post-commit hooks
Handlers run synchronously inside the request that published the event. A
failing handler is logged and never propagates to the publisher.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, DefaultDict, List, Type

logger = logging.getLogger(__name__)

_handlers: DefaultDict[Type, List[Callable]] = defaultdict(list)


@dataclass(frozen=True)
class TransactionMutated:
    """A user's transactions were created, edited, deleted or imported."""

    user_id: int


def subscribe(event_type: Type, handler: Callable) -> None:
    if handler not in _handlers[event_type]:
        _handlers[event_type].append(handler)


def unsubscribe(event_type: Type, handler: Callable) -> None:
    if handler in _handlers[event_type]:
        _handlers[event_type].remove(handler)


def publish(event) -> None:
    for handler in list(_handlers[type(event)]):
        try:
            handler(event)
        except Exception:
            logger.exception(f"{handler.__name__} failed for {event!r}")
