"""
Events
------

Managers announce what they have done through hubs. A hub is built from one or
more event lists, whose methods give the signature each handler must accept.

>>> class CounterEvents(EventList):
>>>     @staticmethod
>>>     def cycle_scanned(tag: str):
>>>         "A tag was read at the counter."
>>>
>>> hub = EventHub(CounterEvents)
>>> hub.subscribe(CounterEvents.cycle_scanned, lambda tag: print(f"Scanned {tag}"))
>>> hub.emit(CounterEvents.cycle_scanned, "04A1B2")
Scanned 04A1B2
"""
from .event_hub import EventHub
from .event_list import EventList
from .exceptions import NoSuchEventError, NoSuchListenerError, InvalidHandlerError
