from typing import Optional, Protocol


class ResponseCachePort(Protocol):
    def get(self, key: str) -> Optional[str]:
        pass

    def set(self, key: str, value: str) -> None:
        pass
