from typing import Optional, Any
from collections.abc import Iterable, Iterator, Mapping
from .models import SecretEntry


class SecretIndex(Mapping[str, SecretEntry]):
    """Read-only, case-insensitive view of a remote secret snapshot.

    Keys are normalized to uppercase on every access, so ``index['db_url']``
    and ``index['DB_URL']`` resolve to the same entry. When the snapshot
    holds two entries with the same normalized key the last one wins.
    """

    def __init__(self, entries: Optional[Iterable[SecretEntry]] = None) -> None:
        self._data: dict[str, SecretEntry] = {}
        for entry in entries or ():
            self._data[self.normalize(entry.key)] = entry

    def __repr__(self) -> str:
        return f'<SecretIndex keys={list(self._data.keys())}>'

    @staticmethod
    def normalize(key: str) -> str:
        return key.upper()

    # --- Magic Methods ---

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return self.normalize(key) in self._data

    def __getitem__(self, key: str) -> SecretEntry:
        return self._data[self.normalize(key)]

    # --- Helpers ---

    def values_by_key(self) -> dict[str, Any]:
        """Plaintext values keyed by normalized secret key."""
        return {key: entry.value for key, entry in self._data.items()}

