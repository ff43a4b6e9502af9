"""
Event Hub
---------

A hub routes emitted events to the handlers subscribed to them. Events
are referenced either directly from their :class:`~kiosk.events.EventList`
or by name through the hub, which also allows the shorter syntax:

>>> hub.rental_started += handler
>>> hub.rental_started(cycle, rental)
"""

from collections import defaultdict
from inspect import signature, Parameter
from typing import Callable, Dict, Iterator, List, Type

from .event_list import EventList
from .exceptions import NoSuchEventError, NoSuchListenerError, InvalidHandlerError


class BoundEvent:
    """An event accessed through a hub."""

    def __init__(self, hub: 'EventHub', event: Callable):
        self.hub = hub
        self.event = event

    def __iadd__(self, handler: Callable):
        self.hub.subscribe(self.event, handler)
        return self

    def __isub__(self, handler: Callable):
        self.hub.unsubscribe(self.event, handler)
        return self

    def __call__(self, *args, **kwargs):
        self.hub.emit(self.event, *args, **kwargs)

    def __repr__(self):
        return f"<BoundEvent {self.event.__name__}>"


def _event_arity(event: Callable) -> int:
    parameters = list(signature(event).parameters.values())
    if parameters and parameters[0].name == "self":
        parameters = parameters[1:]
    return len([p for p in parameters if p.kind in (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD)])


class EventHub:
    """
    Holds a number of event lists, and the listeners subscribed to their events.
    """

    def __init__(self, *event_lists: Type[EventList]):
        self._event_lists: List[Type[EventList]] = list(event_lists)
        self._listeners: Dict[Callable, List[Callable]] = defaultdict(list)

    def add_events(self, *event_lists: Type[EventList]):
        for event_list in event_lists:
            if event_list not in self._event_lists:
                self._event_lists.append(event_list)

    def events(self) -> Iterator[Callable]:
        """Iterates over every event on the hub."""
        for event_list in self._event_lists:
            for name in vars(event_list):
                event = getattr(event_list, name)
                if not name.startswith("_") and callable(event):
                    yield event

    def subscribe(self, event: Callable, handler: Callable):
        """
        Subscribes a handler to an event.

        :raises NoSuchEventError: If the event is not on this hub.
        :raises InvalidHandlerError: If the handler cannot be called with the event's arguments.
        """
        event = self._resolve(event)
        if event not in self:
            raise NoSuchEventError(f"{event.__name__} is not an event on this hub.")

        try:
            signature(handler).bind(*range(_event_arity(event)))
        except TypeError as error:
            raise InvalidHandlerError(f"{handler} does not match the signature of {event.__name__}.") from error

        self._listeners[event].append(handler)

    def unsubscribe(self, event: Callable, handler: Callable):
        """
        Removes a handler from an event.

        :raises NoSuchListenerError: If the handler was not subscribed.
        """
        event = self._resolve(event)
        listeners = self._listeners.get(event, [])
        if handler not in listeners:
            raise NoSuchListenerError(f"{handler} is not subscribed to {event.__name__}.")
        listeners.remove(handler)

    def emit(self, event: Callable, *args, **kwargs):
        """Calls every handler subscribed to the event, in subscription order."""
        event = self._resolve(event)
        for handler in list(self._listeners.get(event, ())):
            handler(*args, **kwargs)

    def __contains__(self, item):
        if isinstance(item, type) and issubclass(item, EventList):
            return item in self._event_lists
        return any(item in event_list for event_list in self._event_lists)

    def __getattr__(self, name: str) -> BoundEvent:
        if name.startswith("_"):
            raise AttributeError(name)

        for event_list in self._event_lists:
            event = getattr(event_list, name, None)
            if event is not None and event in event_list:
                return BoundEvent(self, event)

        raise NoSuchEventError(f"No event {name} on this hub.")

    def __setattr__(self, name, value):
        # ``hub.event += handler`` reassigns the bound event after subscribing
        if isinstance(value, BoundEvent) and value.hub is self:
            return
        super().__setattr__(name, value)

    @staticmethod
    def _resolve(event):
        return event.event if isinstance(event, BoundEvent) else event
