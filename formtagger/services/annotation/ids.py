"""
Identifier generation for annotation entities
"""
from typing import Callable, Set
import uuid


def _random_hex() -> str:
    return uuid.uuid4().hex[:12]


class IdGenerator:
    """
    Produces opaque IDs that are never handed out twice

    The generator remembers every ID it has issued, so IDs stay unique across
    all entity kinds and are not reused after entities are deleted or the
    store is cleared.
    """

    def __init__(self, factory: Callable[[], str] = _random_hex):
        self._factory = factory
        self._issued: Set[str] = set()

    def next_id(self) -> str:
        """Return a fresh ID"""
        new_id = self._factory()
        while new_id in self._issued:
            new_id = self._factory()
        self._issued.add(new_id)
        return new_id

    def reserve(self, entity_id: str) -> None:
        """Mark an ID created elsewhere as taken"""
        self._issued.add(entity_id)

    def was_issued(self, entity_id: str) -> bool:
        return entity_id in self._issued

    def __len__(self) -> int:
        return len(self._issued)
