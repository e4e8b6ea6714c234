from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .address import Address


@dataclass(frozen=True)
class TypedDataField:
    name: str
    type: str


@dataclass(frozen=True)
class TypedDataDomain:
    """EIP-712 domain. Only the fields that are set take part in the domain type."""
    name: Optional[str] = None
    version: Optional[str] = None
    chain_id: Optional[int] = None
    verifying_contract: Optional[Address] = None
    salt: Optional[str] = None

    def fields(self) -> List[TypedDataField]:
        result: List[TypedDataField] = []
        if self.name is not None:
            result.append(TypedDataField("name", "string"))
        if self.version is not None:
            result.append(TypedDataField("version", "string"))
        if self.chain_id is not None:
            result.append(TypedDataField("chainId", "uint256"))
        if self.verifying_contract is not None:
            result.append(TypedDataField("verifyingContract", "address"))
        if self.salt is not None:
            result.append(TypedDataField("salt", "bytes32"))
        return result

    def values(self) -> Dict[str, Any]:
        return {
            key: value
            for key, value in (
                ("name", self.name),
                ("version", self.version),
                ("chainId", self.chain_id),
                ("verifyingContract", self.verifying_contract),
                ("salt", self.salt),
            )
            if value is not None
        }


@dataclass(frozen=True)
class TypedData:
    domain: TypedDataDomain
    types: Dict[str, List[TypedDataField]]
    primary_type: str
    message: Dict[str, Any] = field(default_factory=dict)
