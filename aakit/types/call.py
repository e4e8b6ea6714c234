from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Union

from ..core.encoding import hexutil
from .address import Address


@dataclass(frozen=True)
class Call:
    """A single contract call made by a smart account."""
    to: Address
    value: int = 0
    data: str = "0x"

    def __post_init__(self) -> None:
        if not isinstance(self.to, Address):
            object.__setattr__(self, "to", Address.from_hex(self.to))
        if self.value < 0:
            raise ValueError("Call value must be non-negative")

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Call":
        return cls(
            to=Address.from_hex(data["to"]),
            value=hexutil.parse_int(data.get("value", 0)),
            data=data.get("data") or "0x",
        )

    def to_json(self) -> Dict[str, Union[str, int]]:
        return {
            "to": self.to.hex,
            "value": str(self.value),
            "data": self.data,
        }
