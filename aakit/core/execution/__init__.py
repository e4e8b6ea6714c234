"""
UserOperation Execution Layer

Provides the pipeline that turns calls into submitted UserOperations:
- SmartAccountClient: prepare, sign, send and poll for one account
- erc20_paymaster: pay gas in ERC-20 tokens (two-pass approval injection)
- actions: send_transaction, write_contract, send_calls, ERC-7579 modules
- gas: prefund, multipliers and fee estimation helpers

Usage:
    from aakit import PrivateKeyOwner, SimpleSmartAccount
    from aakit.core.execution import SmartAccountClient
    from aakit.providers import create_bundler_client, create_public_client

    public = create_public_client()
    account = SimpleSmartAccount(PrivateKeyOwner(key), chain_id=11155111, public_client=public)
    client = SmartAccountClient(account, create_bundler_client(), public)

    user_op_hash = await client.send_user_operation(
        [Call(to=recipient, value=10**15)],
        max_fee_per_gas=fees.max_fee_per_gas,
        max_priority_fee_per_gas=fees.max_priority_fee_per_gas,
    )
    receipt = await client.wait_for_receipt(user_op_hash)
"""

from .models import (
    CallReceipt,
    CallsStatus,
    CallsStatusType,
    Erc20CostEstimate,
    Erc20PaymasterConfig,
    Erc20PaymasterResult,
    PreparedUserOperation,
    ReceiptResult,
    ReceiptStatus,
)
from .smart_account_client import SmartAccountClient, apply_gas_estimate, apply_gas_estimate_v06
from .erc20_paymaster import (
    ERC20_PAYMASTER_GAS_BUFFER,
    ZERO_RESET_TOKENS,
    create_paymaster_approval_call,
    estimate_erc20_paymaster_cost,
    estimate_token_cost,
    get_approval_call_if_needed,
    get_token_allowance,
    get_token_balance,
    max_cost_in_token,
    prepare_user_operation_for_erc20_paymaster,
    register_zero_reset_token,
)
from .gas import (
    CONSERVATIVE_MULTIPLIERS,
    NO_MULTIPLIERS,
    STANDARD_MULTIPLIERS,
    FeeEstimate,
    GasCostEstimate,
    GasMultipliers,
    GasSpeed,
    estimate_fees,
    estimate_fees_from_pimlico,
    get_address_from_init_code_or_paymaster_and_data,
    get_required_prefund,
    get_required_prefund_v06,
)
from . import actions

__all__ = [
    "SmartAccountClient",
    "apply_gas_estimate",
    "apply_gas_estimate_v06",
    "CallReceipt",
    "CallsStatus",
    "CallsStatusType",
    "Erc20CostEstimate",
    "Erc20PaymasterConfig",
    "Erc20PaymasterResult",
    "PreparedUserOperation",
    "ReceiptResult",
    "ReceiptStatus",
    "ERC20_PAYMASTER_GAS_BUFFER",
    "ZERO_RESET_TOKENS",
    "create_paymaster_approval_call",
    "estimate_erc20_paymaster_cost",
    "estimate_token_cost",
    "get_approval_call_if_needed",
    "get_token_allowance",
    "get_token_balance",
    "max_cost_in_token",
    "prepare_user_operation_for_erc20_paymaster",
    "register_zero_reset_token",
    "CONSERVATIVE_MULTIPLIERS",
    "NO_MULTIPLIERS",
    "STANDARD_MULTIPLIERS",
    "FeeEstimate",
    "GasCostEstimate",
    "GasMultipliers",
    "GasSpeed",
    "estimate_fees",
    "estimate_fees_from_pimlico",
    "get_address_from_init_code_or_paymaster_and_data",
    "get_required_prefund",
    "get_required_prefund_v06",
    "actions",
]
