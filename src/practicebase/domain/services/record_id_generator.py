"""Record ID generator service.

Generates collision-checked record IDs. Collisions are recovered by
regenerating; running out of attempts is fatal.
"""

import uuid
from typing import Callable, Container


class RecordIdExhaustedError(Exception):
    """Raised when no unused record ID could be generated."""

    def __init__(self, collection: str, attempts: int) -> None:
        self.collection = collection
        self.attempts = attempts
        super().__init__(
            f"Could not allocate a unique record ID in '{collection}' "
            f"after {attempts} attempts"
        )


def uuid4_factory() -> str:
    """Default ID factory producing random UUID strings."""
    return str(uuid.uuid4())


class RecordIdGenerator:
    """Generator for record IDs unique within one collection.

    Example:
        >>> generator = RecordIdGenerator(lambda: "fixed", max_attempts=2)
        >>> generator.generate("posts", {"other"})
        'fixed'
    """

    def __init__(
        self,
        factory: Callable[[], str] = uuid4_factory,
        max_attempts: int = 100,
    ) -> None:
        if max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        self.factory = factory
        self.max_attempts = max_attempts

    def generate(self, collection: str, existing_ids: Container[str]) -> str:
        """Generate an ID not present in ``existing_ids``.

        Args:
            collection: Collection name, used for error reporting.
            existing_ids: IDs already taken in the target collection.

        Returns:
            A new unique ID.

        Raises:
            RecordIdExhaustedError: If every attempt collided.
        """
        for _ in range(self.max_attempts):
            candidate = self.factory()
            if candidate not in existing_ids:
                return candidate
        raise RecordIdExhaustedError(collection, self.max_attempts)
