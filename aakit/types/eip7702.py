from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from ..core.encoding import hexutil
from .address import Address

EIP7702_FACTORY_MARKER = Address("0x7702000000000000000000000000000000000000")
EIP7702_FACTORY_MARKER_SHORT = "0x7702"


@dataclass(frozen=True)
class Eip7702Authorization:
    """Signed EIP-7702 delegation of an EOA to ``address``."""
    chain_id: int
    address: Address
    nonce: int
    v: int
    r: int
    s: int

    @property
    def y_parity(self) -> int:
        return self.v - 27 if self.v >= 27 else self.v

    def to_rpc_format(self) -> Dict[str, Any]:
        """Authorization object as bundlers expect it in ``eip7702Auth``."""
        return {
            "chainId": hexutil.from_int(self.chain_id),
            "address": self.address.hex,
            "nonce": hexutil.from_int(self.nonce),
            "yParity": hexutil.from_int(self.y_parity, 1),
            "r": hexutil.from_int(self.r, 32),
            "s": hexutil.from_int(self.s, 32),
        }

    def to_json(self) -> Dict[str, Any]:
        return {
            "chainId": hexutil.from_int(self.chain_id),
            "address": self.address.hex,
            "nonce": hexutil.from_int(self.nonce),
            "v": hexutil.from_int(self.v),
            "r": hexutil.from_int(self.r, 32),
            "s": hexutil.from_int(self.s, 32),
        }
