"""
Response and request models for bundler, paymaster and Pimlico RPC methods.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..core.encoding import hexutil
from ..types.address import Address


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return hexutil.parse_int(value)


# Bundler

@dataclass(frozen=True)
class UserOperationGasEstimate:
    pre_verification_gas: int
    verification_gas_limit: int
    call_gas_limit: int
    paymaster_verification_gas_limit: Optional[int] = None
    paymaster_post_op_gas_limit: Optional[int] = None

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "UserOperationGasEstimate":
        return cls(
            pre_verification_gas=hexutil.parse_int(data.get("preVerificationGas")),
            verification_gas_limit=hexutil.parse_int(
                data.get("verificationGasLimit", data.get("verificationGas"))
            ),
            call_gas_limit=hexutil.parse_int(data.get("callGasLimit")),
            paymaster_verification_gas_limit=_optional_int(data.get("paymasterVerificationGasLimit")),
            paymaster_post_op_gas_limit=_optional_int(data.get("paymasterPostOpGasLimit")),
        )


@dataclass(frozen=True)
class UserOperationLog:
    address: Address
    topics: List[str]
    data: str
    block_number: Optional[int] = None
    transaction_hash: Optional[str] = None
    log_index: Optional[int] = None

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "UserOperationLog":
        return cls(
            address=Address.from_hex(data["address"]),
            topics=list(data.get("topics") or []),
            data=data.get("data") or "0x",
            block_number=_optional_int(data.get("blockNumber")),
            transaction_hash=data.get("transactionHash"),
            log_index=_optional_int(data.get("logIndex")),
        )


@dataclass(frozen=True)
class TransactionReceipt:
    transaction_hash: str
    block_hash: str
    block_number: int
    from_address: Address
    to_address: Optional[Address]
    cumulative_gas_used: int
    gas_used: int
    status: int
    logs: List[UserOperationLog] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "TransactionReceipt":
        return cls(
            transaction_hash=data["transactionHash"],
            block_hash=data.get("blockHash") or "0x",
            block_number=hexutil.parse_int(data.get("blockNumber")),
            from_address=Address.from_hex(data["from"]),
            to_address=Address.from_hex(data["to"]) if data.get("to") else None,
            cumulative_gas_used=hexutil.parse_int(data.get("cumulativeGasUsed")),
            gas_used=hexutil.parse_int(data.get("gasUsed")),
            status=hexutil.parse_int(data.get("status")),
            logs=[UserOperationLog.from_rpc(log) for log in data.get("logs") or []],
        )


@dataclass(frozen=True)
class UserOperationReceipt:
    user_op_hash: str
    sender: Address
    nonce: int
    success: bool
    actual_gas_cost: int
    actual_gas_used: int
    logs: List[UserOperationLog] = field(default_factory=list)
    receipt: Optional[TransactionReceipt] = None
    reason: Optional[str] = None

    @property
    def transaction_hash(self) -> Optional[str]:
        return self.receipt.transaction_hash if self.receipt else None

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "UserOperationReceipt":
        return cls(
            user_op_hash=data["userOpHash"],
            sender=Address.from_hex(data["sender"]),
            nonce=hexutil.parse_int(data.get("nonce")),
            success=bool(data.get("success")),
            actual_gas_cost=hexutil.parse_int(data.get("actualGasCost")),
            actual_gas_used=hexutil.parse_int(data.get("actualGasUsed")),
            logs=[UserOperationLog.from_rpc(log) for log in data.get("logs") or []],
            receipt=TransactionReceipt.from_rpc(data["receipt"]) if data.get("receipt") else None,
            reason=data.get("reason"),
        )


@dataclass(frozen=True)
class UserOperationByHashResponse:
    user_operation: Dict[str, Any]
    entry_point: Address
    block_number: Optional[int] = None
    block_hash: Optional[str] = None
    transaction_hash: Optional[str] = None

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "UserOperationByHashResponse":
        return cls(
            user_operation=data["userOperation"],
            entry_point=Address.from_hex(data["entryPoint"]),
            block_number=_optional_int(data.get("blockNumber")),
            block_hash=data.get("blockHash"),
            transaction_hash=data.get("transactionHash"),
        )


# Paymaster (ERC-7677)

@dataclass(frozen=True)
class PaymasterContext:
    """Context object passed as the last ``pm_*`` parameter."""
    sponsorship_policy_id: Optional[str] = None
    token: Optional[Address] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.sponsorship_policy_id is not None:
            result["sponsorshipPolicyId"] = self.sponsorship_policy_id
        if self.token is not None:
            result["token"] = self.token.hex
        result.update(self.extra)
        return result


@dataclass(frozen=True)
class PaymasterStubData:
    paymaster: Address
    paymaster_data: str
    paymaster_verification_gas_limit: Optional[int] = None
    paymaster_post_op_gas_limit: Optional[int] = None
    is_final: bool = False

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "PaymasterStubData":
        return cls(
            paymaster=Address.from_hex(data["paymaster"]),
            paymaster_data=data.get("paymasterData") or "0x",
            paymaster_verification_gas_limit=_optional_int(data.get("paymasterVerificationGasLimit")),
            paymaster_post_op_gas_limit=_optional_int(data.get("paymasterPostOpGasLimit")),
            is_final=bool(data.get("isFinal", False)),
        )


@dataclass(frozen=True)
class PaymasterData:
    paymaster: Address
    paymaster_data: str
    paymaster_verification_gas_limit: Optional[int] = None
    paymaster_post_op_gas_limit: Optional[int] = None

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "PaymasterData":
        return cls(
            paymaster=Address.from_hex(data["paymaster"]),
            paymaster_data=data.get("paymasterData") or "0x",
            paymaster_verification_gas_limit=_optional_int(data.get("paymasterVerificationGasLimit")),
            paymaster_post_op_gas_limit=_optional_int(data.get("paymasterPostOpGasLimit")),
        )


@dataclass(frozen=True)
class SponsorUserOperationResult:
    """``pm_sponsorUserOperation`` result; v0.6 responses carry ``paymasterAndData``."""
    paymaster: Address
    paymaster_data: str
    paymaster_verification_gas_limit: Optional[int] = None
    paymaster_post_op_gas_limit: Optional[int] = None
    pre_verification_gas: Optional[int] = None
    verification_gas_limit: Optional[int] = None
    call_gas_limit: Optional[int] = None

    @property
    def paymaster_and_data(self) -> str:
        return hexutil.concat([self.paymaster.hex, self.paymaster_data])

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "SponsorUserOperationResult":
        gas = dict(
            pre_verification_gas=_optional_int(data.get("preVerificationGas")),
            verification_gas_limit=_optional_int(data.get("verificationGasLimit")),
            call_gas_limit=_optional_int(data.get("callGasLimit")),
        )
        if "paymasterAndData" in data:
            raw = hexutil.strip_0x(data["paymasterAndData"])
            return cls(paymaster=Address("0x" + raw[:40]), paymaster_data="0x" + raw[40:], **gas)
        return cls(
            paymaster=Address.from_hex(data["paymaster"]),
            paymaster_data=data.get("paymasterData") or "0x",
            paymaster_verification_gas_limit=_optional_int(data.get("paymasterVerificationGasLimit")),
            paymaster_post_op_gas_limit=_optional_int(data.get("paymasterPostOpGasLimit")),
            **gas,
        )


# Public node

@dataclass(frozen=True)
class FeeData:
    gas_price: int
    max_priority_fee_per_gas: Optional[int] = None


# Pimlico

PIMLICO_TERMINAL_STATUSES = ("included", "rejected", "reverted", "failed")


@dataclass(frozen=True)
class PimlicoUserOperationStatus:
    status: str
    transaction_hash: Optional[str] = None
    receipt: Optional[UserOperationReceipt] = None

    @property
    def is_pending(self) -> bool:
        return self.status in ("not_submitted", "submitted")

    @property
    def is_success(self) -> bool:
        return self.status == "included" and bool(self.receipt and self.receipt.success)

    @property
    def is_failed(self) -> bool:
        return self.status in ("rejected", "reverted", "failed")

    @property
    def is_terminal(self) -> bool:
        return self.status in PIMLICO_TERMINAL_STATUSES

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "PimlicoUserOperationStatus":
        receipt = data.get("receipt")
        return cls(
            status=data["status"],
            transaction_hash=data.get("transactionHash"),
            receipt=UserOperationReceipt.from_rpc(receipt) if receipt else None,
        )


@dataclass(frozen=True)
class PimlicoGasPrice:
    max_fee_per_gas: int
    max_priority_fee_per_gas: int

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "PimlicoGasPrice":
        return cls(
            max_fee_per_gas=hexutil.parse_int(data["maxFeePerGas"]),
            max_priority_fee_per_gas=hexutil.parse_int(data["maxPriorityFeePerGas"]),
        )


@dataclass(frozen=True)
class PimlicoGasPrices:
    slow: PimlicoGasPrice
    standard: PimlicoGasPrice
    fast: PimlicoGasPrice

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "PimlicoGasPrices":
        return cls(
            slow=PimlicoGasPrice.from_rpc(data["slow"]),
            standard=PimlicoGasPrice.from_rpc(data["standard"]),
            fast=PimlicoGasPrice.from_rpc(data["fast"]),
        )


@dataclass(frozen=True)
class PimlicoTokenQuote:
    token: Address
    paymaster: Address
    post_op_gas: int
    exchange_rate: int
    exchange_rate_native_to_usd: Optional[int] = None
    balance_slot: Optional[int] = None
    allowance_slot: Optional[int] = None

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "PimlicoTokenQuote":
        return cls(
            token=Address.from_hex(data["token"]),
            paymaster=Address.from_hex(data["paymaster"]),
            post_op_gas=hexutil.parse_int(data["postOpGas"]),
            exchange_rate=hexutil.parse_int(data["exchangeRate"]),
            exchange_rate_native_to_usd=_optional_int(data.get("exchangeRateNativeToUsd")),
            balance_slot=_optional_int(data.get("balanceSlot")),
            allowance_slot=_optional_int(data.get("allowanceSlot")),
        )


@dataclass(frozen=True)
class PimlicoSupportedToken:
    token: Address
    name: str
    symbol: str
    decimals: int

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "PimlicoSupportedToken":
        return cls(
            token=Address.from_hex(data["token"]),
            name=data["name"],
            symbol=data["symbol"],
            decimals=int(data["decimals"]),
        )


@dataclass(frozen=True)
class PimlicoSponsorshipPolicy:
    sponsorship_policy_id: str
    name: str
    author: str
    icon: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "PimlicoSponsorshipPolicy":
        details = data.get("data") or {}
        return cls(
            sponsorship_policy_id=data["sponsorshipPolicyId"],
            name=details.get("name", ""),
            author=details.get("author", ""),
            icon=details.get("icon"),
            description=details.get("description"),
        )


@dataclass(frozen=True)
class PimlicoErc20PaymasterCost:
    cost_in_token: int
    cost_in_usd: int

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "PimlicoErc20PaymasterCost":
        return cls(
            cost_in_token=hexutil.parse_int(data["costInToken"]),
            cost_in_usd=hexutil.parse_int(data["costInUsd"]),
        )
