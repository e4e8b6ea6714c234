"""
UserOperation pipeline models and result types.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from ...providers.types import PimlicoTokenQuote, TransactionReceipt, UserOperationReceipt
from ...types.address import Address
from ...types.eip7702 import Eip7702Authorization
from ...types.user_operation import UserOperationV07


@dataclass(frozen=True)
class PreparedUserOperation:
    """An estimated, paymaster-finalized UserOperation waiting for its signature."""
    user_op: UserOperationV07
    authorization: Optional[Eip7702Authorization] = None

    @property
    def needs_authorization(self) -> bool:
        return self.authorization is not None


class ReceiptStatus(str, Enum):
    """Outcome of polling for a UserOperation receipt."""
    RESOLVED = "resolved"        # Receipt found
    UNRESOLVED = "unresolved"    # Timed out; the operation may still land


@dataclass(frozen=True)
class ReceiptResult:
    user_op_hash: str
    status: ReceiptStatus
    receipt: Optional[UserOperationReceipt] = None

    @property
    def is_resolved(self) -> bool:
        return self.status == ReceiptStatus.RESOLVED

    @property
    def transaction_hash(self) -> Optional[str]:
        return self.receipt.transaction_hash if self.receipt else None


class CallsStatusType(str, Enum):
    """EIP-5792 ``wallet_getCallsStatus`` states."""
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


CALLS_STATUS_CODES = {
    CallsStatusType.PENDING: 100,
    CallsStatusType.SUCCESS: 200,
    CallsStatusType.FAILURE: 500,
}


@dataclass(frozen=True)
class CallReceipt:
    status: str                  # "success" or "reverted"
    logs: List[Dict[str, Any]]
    block_hash: str
    block_number: int
    gas_used: int
    transaction_hash: str

    @classmethod
    def from_transaction_receipt(cls, receipt: TransactionReceipt) -> "CallReceipt":
        return cls(
            status="success" if receipt.succeeded else "reverted",
            logs=[
                {"address": log.address.hex, "topics": log.topics, "data": log.data}
                for log in receipt.logs
            ],
            block_hash=receipt.block_hash,
            block_number=receipt.block_number,
            gas_used=receipt.gas_used,
            transaction_hash=receipt.transaction_hash,
        )


@dataclass(frozen=True)
class CallsStatus:
    id: str
    chain_id: int
    status: CallsStatusType
    version: str = "1.0"
    atomic: bool = True
    receipts: Optional[List[CallReceipt]] = None

    @property
    def status_code(self) -> int:
        return CALLS_STATUS_CODES[self.status]


@dataclass(frozen=True)
class Erc20PaymasterConfig:
    """Balance override options for ERC-20 gas simulation.

    ``zero_reset_tokens`` adds tokens that need ``approve(0)`` first, on top
    of the module-wide ``ZERO_RESET_TOKENS`` table.
    """
    balance_override: bool = False
    balance_slot: Optional[int] = None
    zero_reset_tokens: FrozenSet[Address] = frozenset()


@dataclass(frozen=True)
class Erc20PaymasterResult:
    user_operation: UserOperationV07
    token_quote: PimlicoTokenQuote
    max_cost_in_token: int
    approval_injected: bool


@dataclass(frozen=True)
class Erc20CostEstimate:
    max_cost_in_token: int
    exchange_rate: int
    post_op_gas: int
    paymaster_address: Address
