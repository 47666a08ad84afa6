"""
Outbox - Frames staged while a lock is held

Call operations build every frame they owe inside the call's critical
section and hand the outbox to the connection manager once the lock is
released, so a slow socket never holds up the next operation on the call.
"""
from typing import Iterable, Iterator, List, Optional, Tuple

# None as the recipient list means every registered session
Delivery = Tuple[Optional[List[str]], str]


class Outbox:
    """Ordered list of (recipients, frame) pairs."""

    def __init__(self):
        self._deliveries: List[Delivery] = []

    def to_users(self, user_ids: Iterable[str], frame: str) -> None:
        recipients = list(dict.fromkeys(user_ids))
        if recipients:
            self._deliveries.append((recipients, frame))

    def to_everyone(self, frame: str) -> None:
        self._deliveries.append((None, frame))

    def __iter__(self) -> Iterator[Delivery]:
        return iter(self._deliveries)

    def __len__(self) -> int:
        return len(self._deliveries)
