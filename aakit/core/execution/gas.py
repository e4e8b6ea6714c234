"""
Gas and fee helpers for UserOperations.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ...providers.pimlico import PimlicoClient
from ...providers.public import PublicClient
from ...providers.types import UserOperationGasEstimate
from ...types.address import Address
from ...types.user_operation import UserOperationV06, UserOperationV07
from ..encoding import hexutil


class GasSpeed(str, Enum):
    SLOW = "slow"
    STANDARD = "standard"
    FAST = "fast"


def apply_multiplier(value: int, multiplier: float) -> int:
    """Scale ``value`` by ``multiplier`` at 1/1000 precision, rounding down."""
    if multiplier == 1.0:
        return value
    return round(value * multiplier * 1000) // 1000


@dataclass(frozen=True)
class GasMultipliers:
    verification_gas_limit: float = 1.1
    call_gas_limit: float = 1.1
    pre_verification_gas: float = 1.0
    paymaster_verification_gas_limit: float = 1.1
    paymaster_post_op_gas_limit: float = 1.1

    def apply(self, estimate: UserOperationGasEstimate) -> UserOperationGasEstimate:
        def optional(value: Optional[int], multiplier: float) -> Optional[int]:
            return apply_multiplier(value, multiplier) if value is not None else None

        return UserOperationGasEstimate(
            pre_verification_gas=apply_multiplier(estimate.pre_verification_gas, self.pre_verification_gas),
            verification_gas_limit=apply_multiplier(estimate.verification_gas_limit, self.verification_gas_limit),
            call_gas_limit=apply_multiplier(estimate.call_gas_limit, self.call_gas_limit),
            paymaster_verification_gas_limit=optional(
                estimate.paymaster_verification_gas_limit, self.paymaster_verification_gas_limit
            ),
            paymaster_post_op_gas_limit=optional(
                estimate.paymaster_post_op_gas_limit, self.paymaster_post_op_gas_limit
            ),
        )


NO_MULTIPLIERS = GasMultipliers(1, 1, 1, 1, 1)
STANDARD_MULTIPLIERS = GasMultipliers()
CONSERVATIVE_MULTIPLIERS = GasMultipliers(
    verification_gas_limit=1.3,
    call_gas_limit=1.2,
    pre_verification_gas=1.1,
    paymaster_verification_gas_limit=1.3,
    paymaster_post_op_gas_limit=1.2,
)


def total_gas_limit(estimate: UserOperationGasEstimate) -> int:
    return (
        estimate.pre_verification_gas
        + estimate.verification_gas_limit
        + estimate.call_gas_limit
        + (estimate.paymaster_verification_gas_limit or 0)
        + (estimate.paymaster_post_op_gas_limit or 0)
    )


@dataclass(frozen=True)
class FeeEstimate:
    max_fee_per_gas: int
    max_priority_fee_per_gas: int

    def with_multiplier(self, multiplier: float) -> "FeeEstimate":
        return FeeEstimate(
            max_fee_per_gas=apply_multiplier(self.max_fee_per_gas, multiplier),
            max_priority_fee_per_gas=apply_multiplier(self.max_priority_fee_per_gas, multiplier),
        )


@dataclass(frozen=True)
class GasCostEstimate:
    total_gas_limit: int
    max_gas_cost: int

    @classmethod
    def calculate(cls, estimate: UserOperationGasEstimate, max_fee_per_gas: int) -> "GasCostEstimate":
        total = total_gas_limit(estimate)
        return cls(total_gas_limit=total, max_gas_cost=total * max_fee_per_gas)


async def estimate_fees(public_client: PublicClient, multiplier: float = 1.1) -> FeeEstimate:
    """Fees from the node; the priority fee falls back to the gas price on legacy chains."""
    fee_data = await public_client.get_fee_data()
    priority_fee = fee_data.max_priority_fee_per_gas
    if priority_fee is None:
        priority_fee = fee_data.gas_price
    return FeeEstimate(fee_data.gas_price, priority_fee).with_multiplier(multiplier)


async def estimate_fees_from_pimlico(
    pimlico_client: PimlicoClient,
    speed: GasSpeed = GasSpeed.STANDARD,
) -> FeeEstimate:
    prices = await pimlico_client.get_user_operation_gas_price()
    price = getattr(prices, speed.value)
    return FeeEstimate(price.max_fee_per_gas, price.max_priority_fee_per_gas)


def get_required_prefund(user_op: UserOperationV07) -> int:
    required_gas = (
        user_op.verification_gas_limit
        + user_op.call_gas_limit
        + user_op.pre_verification_gas
        + (user_op.paymaster_verification_gas_limit or 0)
        + (user_op.paymaster_post_op_gas_limit or 0)
    )
    return required_gas * user_op.max_fee_per_gas


def get_required_prefund_v06(user_op: UserOperationV06) -> int:
    # v0.6 reserves verification gas three times over when a paymaster is used
    multiplier = 1 if hexutil.is_empty(user_op.paymaster_and_data) else 3
    required_gas = (
        user_op.call_gas_limit
        + user_op.verification_gas_limit * multiplier
        + user_op.pre_verification_gas
    )
    return required_gas * user_op.max_fee_per_gas


def get_address_from_init_code_or_paymaster_and_data(data: Optional[str]) -> Optional[Address]:
    """Leading 20-byte address of ``initCode`` / ``paymasterAndData``, if any."""
    if hexutil.is_empty(data) or len(data) < 42:
        return None
    prefix = data[:42]
    if not hexutil.is_valid(prefix):
        return None
    return Address.from_hex(prefix)
