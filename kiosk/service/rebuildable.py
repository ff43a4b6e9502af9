"""
An abstract class for classes that need to be
rebuilt on startup. Any rebuildable attached to
the app is rebuilt from the store before serving.
"""

from abc import ABC, abstractmethod


class Rebuildable(ABC):

    @abstractmethod
    async def _rebuild(self):
        pass
