"""
Paying gas in ERC-20 tokens through a Pimlico-style token paymaster.

The paymaster pulls ``maxCostInToken`` from the account in postOp, so the
first call of the UserOperation must approve it. The approval amount depends
on the gas limits, and the gas limits depend on the calldata, so the flow
runs in two passes:

1. Estimate with a worst-case (max) approval already in the batch.
2. Compute the real cost, swap in an exact approval, re-encode the calldata
   and ask the paymaster to sign the final operation.
"""

from __future__ import annotations

import logging
from typing import AbstractSet, Dict, List, Optional, Sequence

from ...providers.pimlico import PimlicoClient
from ...providers.public import PublicClient
from ...providers.types import PaymasterContext, PimlicoTokenQuote
from ...types.address import Address
from ...types.call import Call
from ...types.user_operation import UserOperationV07
from ..errors import ConfigurationError, ValidationError
from ..standards.erc20 import (
    MAX_UINT256,
    decode_uint256_result,
    encode_allowance_call,
    encode_approve,
    encode_balance_of_call,
    erc20_balance_override,
)
from .models import Erc20CostEstimate, Erc20PaymasterConfig, Erc20PaymasterResult
from .smart_account_client import SmartAccountClient

logger = logging.getLogger(__name__)

ERC20_PAYMASTER_GAS_BUFFER = 75000

# Tokens whose approve() reverts unless the current allowance is zero.
ZERO_RESET_TOKENS: Dict[Address, str] = {
    Address.from_hex("0xdAC17F958D2ee523a2206206994597C13D831ec7"): "USDT (Ethereum mainnet)",
}


def register_zero_reset_token(token: Address, label: str = "") -> None:
    """Add ``token`` to the process-wide table. Prefer ``Erc20PaymasterConfig.zero_reset_tokens`` per call."""
    ZERO_RESET_TOKENS[token] = label or token.checksum


def requires_zero_reset(token: Address, extra: AbstractSet[Address] = frozenset()) -> bool:
    return token in ZERO_RESET_TOKENS or token in extra


def max_cost_in_token(user_op: UserOperationV07, quote: PimlicoTokenQuote) -> int:
    """((userOpMaxGas * maxFee) + postOpGas * maxFee) * exchangeRate / 1e18, truncated."""
    user_op_max_gas = (
        user_op.pre_verification_gas
        + user_op.call_gas_limit
        + user_op.verification_gas_limit
        + (user_op.paymaster_post_op_gas_limit or 0)
        + (user_op.paymaster_verification_gas_limit or 0)
    )
    user_op_max_cost = user_op_max_gas * user_op.max_fee_per_gas
    return ((user_op_max_cost + quote.post_op_gas * user_op.max_fee_per_gas) * quote.exchange_rate) // 10**18


def _approval_calls(
    token: Address, spender: Address, amount: int, zero_reset_tokens: AbstractSet[Address] = frozenset()
) -> List[Call]:
    calls = [encode_approve(token, spender, amount)]
    if requires_zero_reset(token, zero_reset_tokens):
        calls.insert(0, encode_approve(token, spender, 0))
    return calls


async def _first_quote(pimlico_client: PimlicoClient, token: Address) -> PimlicoTokenQuote:
    quotes = await pimlico_client.get_token_quotes([token])
    if not quotes:
        raise ValidationError(
            f"Token {token.checksum} is not supported by the ERC-20 paymaster",
            {"token": token.hex},
        )
    return quotes[0]


async def prepare_user_operation_for_erc20_paymaster(
    smart_account_client: SmartAccountClient,
    pimlico_client: PimlicoClient,
    public_client: PublicClient,
    token: Address,
    calls: Sequence[Call],
    max_fee_per_gas: int,
    max_priority_fee_per_gas: int,
    nonce: Optional[int] = None,
    config: Erc20PaymasterConfig = Erc20PaymasterConfig(),
) -> Erc20PaymasterResult:
    """
    Prepare a UserOperation whose gas is paid in ``token``.

    The returned operation carries the account's stub signature; sign it
    with ``SmartAccountClient.sign_user_operation`` before sending.
    """
    paymaster = smart_account_client.paymaster
    if paymaster is None:
        raise ConfigurationError("SmartAccountClient needs a paymaster to pay gas in ERC-20 tokens")

    quote = await _first_quote(pimlico_client, token)
    account = smart_account_client.account
    account_address = await account.get_address()

    simulation_calls = _approval_calls(token, quote.paymaster, MAX_UINT256, config.zero_reset_tokens) + list(calls)

    state_override = None
    if config.balance_override:
        balance_slot = config.balance_slot if config.balance_slot is not None else quote.balance_slot
        if balance_slot is None:
            raise ValidationError(
                f"Balance override requested but no balance slot is known for {token.checksum}. "
                "Provide balance_slot in the config.",
                {"token": token.hex},
            )
        state_override = erc20_balance_override(token, account_address, balance_slot)

    context = PaymasterContext(token=token)
    initial = await smart_account_client.prepare_user_operation(
        simulation_calls,
        max_fee_per_gas,
        max_priority_fee_per_gas,
        nonce=nonce,
        paymaster_context=context,
        state_override=state_override,
    )

    cost = max_cost_in_token(initial, quote)
    allowance = await get_token_allowance(public_client, token, account_address, quote.paymaster)
    logger.debug(f"ERC-20 paymaster cost={cost} allowance={allowance} token={token.checksum}")

    final_calls = list(calls)
    approval_injected = allowance < cost
    if approval_injected:
        final_calls = _approval_calls(token, quote.paymaster, cost, config.zero_reset_tokens) + final_calls

    # Same deployment path as the first pass, so a launchpad Safe keeps setupSafe
    final_call_data = smart_account_client.encode_call_data(final_calls, is_deployment=initial.factory is not None)
    unsigned = UserOperationV07(
        sender=initial.sender,
        nonce=initial.nonce,
        factory=initial.factory,
        factory_data=initial.factory_data,
        call_data=final_call_data,
        call_gas_limit=initial.call_gas_limit,
        verification_gas_limit=initial.verification_gas_limit,
        pre_verification_gas=initial.pre_verification_gas,
        max_fee_per_gas=initial.max_fee_per_gas,
        max_priority_fee_per_gas=initial.max_priority_fee_per_gas,
        paymaster_verification_gas_limit=initial.paymaster_verification_gas_limit,
        paymaster_post_op_gas_limit=initial.paymaster_post_op_gas_limit,
        signature=initial.signature,
    )
    final_data = await paymaster.get_paymaster_data(unsigned, account.entry_point, account.chain_id, context)

    # copy_with skips None, so the estimated paymaster limits stay unless the paymaster overrides them
    user_op = unsigned.copy_with(
        paymaster=final_data.paymaster,
        paymaster_data=final_data.paymaster_data,
        paymaster_verification_gas_limit=final_data.paymaster_verification_gas_limit,
        paymaster_post_op_gas_limit=final_data.paymaster_post_op_gas_limit,
        signature=account.get_stub_signature(),
    )
    return Erc20PaymasterResult(
        user_operation=user_op,
        token_quote=quote,
        max_cost_in_token=cost,
        approval_injected=approval_injected,
    )


async def estimate_erc20_paymaster_cost(
    pimlico_client: PimlicoClient,
    token: Address,
    user_op: UserOperationV07,
) -> Erc20CostEstimate:
    quote = await _first_quote(pimlico_client, token)
    return Erc20CostEstimate(
        max_cost_in_token=max_cost_in_token(user_op, quote),
        exchange_rate=quote.exchange_rate,
        post_op_gas=quote.post_op_gas,
        paymaster_address=quote.paymaster,
    )


async def get_token_allowance(
    public_client: PublicClient,
    token: Address,
    owner: Address,
    spender: Address,
) -> int:
    result = await public_client.call(Call(to=token, data=encode_allowance_call(owner, spender)))
    return decode_uint256_result(result)


async def get_token_balance(public_client: PublicClient, token: Address, account: Address) -> int:
    result = await public_client.call(Call(to=token, data=encode_balance_of_call(account)))
    return decode_uint256_result(result)


def create_paymaster_approval_call(token: Address, paymaster: Address, amount: Optional[int] = None) -> Call:
    return encode_approve(token, paymaster, MAX_UINT256 if amount is None else amount)


def estimate_token_cost(quote: PimlicoTokenQuote, user_op: UserOperationV07) -> int:
    """Quick token estimate from the quote's postOp gas, without paymaster verification gas."""
    total_gas = (
        user_op.pre_verification_gas
        + user_op.verification_gas_limit
        + user_op.call_gas_limit
        + (user_op.paymaster_post_op_gas_limit or 0)
        + quote.post_op_gas
    )
    return total_gas * user_op.max_fee_per_gas * quote.exchange_rate // 10**18


async def get_approval_call_if_needed(
    public_client: PublicClient,
    token: Address,
    owner: Address,
    spender: Address,
    required_amount: int,
    approval_amount: Optional[int] = None,
) -> Optional[Call]:
    allowance = await get_token_allowance(public_client, token, owner, spender)
    if allowance >= required_amount:
        return None
    return create_paymaster_approval_call(token, spender, approval_amount)
