from __future__ import annotations

from dataclasses import dataclass

from .constants import FAMILY_IPV4


@dataclass(frozen=True, slots=True)
class Host:
    ip: str
    port: int
    family: int = FAMILY_IPV4

    def __str__(self) -> str:
        return f"{self.ip}:{self.port}"
