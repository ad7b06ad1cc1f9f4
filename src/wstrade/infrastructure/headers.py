"""CustomHeaders - extra headers merged into every call of a session"""

from loguru import logger


class CustomHeaders:
    """Name/value pairs appended to all outgoing requests of one session"""

    def __init__(self) -> None:
        self._headers: dict[str, str] = {}

    def add(self, name: str, value: str) -> None:
        """Append a header; an existing header with the same name is replaced"""
        self._drop(name)
        self._headers[name] = value
        logger.debug(f"Custom header added: {name}")

    def remove(self, name: str) -> None:
        """Remove a custom header (case-insensitive); unknown names are ignored"""
        if self._drop(name):
            logger.debug(f"Custom header removed: {name}")

    def clear(self) -> None:
        self._headers.clear()

    def values(self) -> dict[str, str]:
        """Snapshot of the current custom headers"""
        return dict(self._headers)

    def _drop(self, name: str) -> bool:
        lowered = name.lower()
        matches = [k for k in self._headers if k.lower() == lowered]
        for key in matches:
            del self._headers[key]
        return bool(matches)

    def __len__(self) -> int:
        return len(self._headers)
