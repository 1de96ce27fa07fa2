"""In-memory cloud variable state."""

from typing import Iterator, Optional


class VariableStore:
    """
    Mapping of prefixed variable name to its current value.

    Not thread-safe; a store is only touched from its session's event loop.
    """

    def __init__(self):
        self._values: dict[str, str] = {}

    def apply(self, name: str, value: str) -> bool:
        """
        Record a value for ``name``.

        Returns:
            True if the variable did not exist before (an ``addvariable``),
            False if an existing value was overwritten (a ``set``).
        """
        is_new = name not in self._values
        self._values[name] = value
        return is_new

    def get(self, name: str) -> Optional[str]:
        return self._values.get(name)

    def has(self, name: str) -> bool:
        return name in self._values

    def to_dict(self) -> dict[str, str]:
        """Return a copy of the current values."""
        return dict(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)
