from abc import ABC, abstractmethod

class RateLimiter(ABC):
    """Allow/deny gate keyed by an arbitrary string.

    Every call to ``allow`` consumes one unit of quota for the key, so it must
    be called at most once per request.
    """

    @abstractmethod
    async def allow(self, key: str) -> bool:
        ...
