"""
ERC-20 call encoders and ``eth_call`` / ``eth_estimateUserOperationGas`` state overrides.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ...types.address import Address
from ...types.call import Call
from ..encoding import hexutil
from ..encoding.abi import encode_abi_bytes, encode_call, function_selector
from ..hashing.message_hash import keccak256

MAX_UINT256 = (1 << 256) - 1

MAX_OVERRIDE_AMOUNT = int("7" + "F" * 63, 16)
DEFAULT_OVERRIDE_BALANCE = int("100000000000000000000000000" + "F" * 37, 16)


class Erc20Selectors:
    APPROVE = function_selector("approve(address,uint256)")
    ALLOWANCE = function_selector("allowance(address,address)")
    BALANCE_OF = function_selector("balanceOf(address)")
    TRANSFER = function_selector("transfer(address,uint256)")
    TRANSFER_FROM = function_selector("transferFrom(address,address,uint256)")


class Erc20StorageSlots:
    """Known mapping slots for common token implementations."""
    OPENZEPPELIN_BALANCE = 0
    OPENZEPPELIN_ALLOWANCE = 1
    USDC_BALANCE = 9
    USDC_ALLOWANCE = 10
    USDT_BALANCE = 2
    USDT_ALLOWANCE = 4
    DAI_BALANCE = 2
    DAI_ALLOWANCE = 3


def encode_approve(token: Address, spender: Address, amount: int) -> Call:
    return Call(to=token, data=encode_call(Erc20Selectors.APPROVE, ["address", "uint256"], [spender, amount]))


def encode_transfer(token: Address, to: Address, amount: int) -> Call:
    return Call(to=token, data=encode_call(Erc20Selectors.TRANSFER, ["address", "uint256"], [to, amount]))


def encode_transfer_from(token: Address, sender: Address, to: Address, amount: int) -> Call:
    return Call(
        to=token,
        data=encode_call(Erc20Selectors.TRANSFER_FROM, ["address", "address", "uint256"], [sender, to, amount]),
    )


def encode_allowance_call(owner: Address, spender: Address) -> str:
    return encode_call(Erc20Selectors.ALLOWANCE, ["address", "address"], [owner, spender])


def encode_balance_of_call(account: Address) -> str:
    return encode_call(Erc20Selectors.BALANCE_OF, ["address"], [account])


def decode_uint256_result(result: Optional[str]) -> int:
    if hexutil.is_empty(result):
        return 0
    return hexutil.to_int(result)


# State overrides

@dataclass(frozen=True)
class StateDiff:
    slot: str
    value: str

    def to_json(self) -> Dict[str, str]:
        return {self.slot: self.value}


@dataclass(frozen=True)
class StateOverride:
    address: Address
    balance: Optional[int] = None
    nonce: Optional[int] = None
    code: Optional[str] = None
    state_diff: List[StateDiff] = field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.balance is not None:
            result["balance"] = hexutil.from_int(self.balance)
        if self.nonce is not None:
            result["nonce"] = hexutil.from_int(self.nonce)
        if self.code is not None:
            result["code"] = self.code
        if self.state_diff:
            result["stateDiff"] = {diff.slot: diff.value for diff in self.state_diff}
        return result


def state_overrides_to_json(overrides: Sequence[StateOverride]) -> Dict[str, Any]:
    return {override.address.hex: override.to_json() for override in overrides}


def balance_storage_slot(owner: Address, slot: int) -> str:
    """keccak256(pad32(owner) || uint256(slot)), the ``balances[owner]`` slot."""
    return hexutil.encode(keccak256(encode_abi_bytes(["address", "uint256"], [owner, slot])))


def allowance_storage_slot(owner: Address, spender: Address, slot: int) -> str:
    """The ``allowances[owner][spender]`` slot."""
    inner = keccak256(encode_abi_bytes(["address", "uint256"], [owner, slot]))
    return hexutil.encode(keccak256(encode_abi_bytes(["address", "bytes32"], [spender, inner])))


def erc20_balance_override(
    token: Address,
    owner: Address,
    slot: int,
    balance: Optional[int] = None,
) -> List[StateOverride]:
    amount = DEFAULT_OVERRIDE_BALANCE if balance is None else balance
    return [
        StateOverride(
            address=token,
            state_diff=[StateDiff(slot=balance_storage_slot(owner, slot), value=hexutil.from_int(amount, 32))],
        )
    ]


def erc20_allowance_override(
    token: Address,
    owner: Address,
    spender: Address,
    slot: int,
    amount: Optional[int] = None,
) -> List[StateOverride]:
    value = MAX_OVERRIDE_AMOUNT if amount is None else amount
    return [
        StateOverride(
            address=token,
            state_diff=[
                StateDiff(slot=allowance_storage_slot(owner, spender, slot), value=hexutil.from_int(value, 32))
            ],
        )
    ]


def merge_state_overrides(overrides: Sequence[StateOverride]) -> List[StateOverride]:
    """
    Collapse overrides that target the same address.

    Later values win for balance, nonce and code; state diffs are merged by slot.
    """
    grouped: Dict[str, List[StateOverride]] = {}
    for override in overrides:
        grouped.setdefault(override.address.hex, []).append(override)

    merged: List[StateOverride] = []
    for group in grouped.values():
        if len(group) == 1:
            merged.append(group[0])
            continue
        balance = nonce = code = None
        diffs: Dict[str, StateDiff] = {}
        for item in group:
            if item.balance is not None:
                balance = item.balance
            if item.nonce is not None:
                nonce = item.nonce
            if item.code is not None:
                code = item.code
            for diff in item.state_diff:
                diffs[diff.slot] = diff
        merged.append(
            StateOverride(
                address=group[0].address,
                balance=balance,
                nonce=nonce,
                code=code,
                state_diff=list(diffs.values()),
            )
        )
    return merged


def erc20_paymaster_override(
    token: Address,
    owner: Address,
    spender: Address,
    balance_slot: int,
    allowance_slot: int,
    balance: Optional[int] = None,
    allowance: Optional[int] = None,
) -> List[StateOverride]:
    return merge_state_overrides(
        erc20_balance_override(token, owner, balance_slot, balance)
        + erc20_allowance_override(token, owner, spender, allowance_slot, allowance)
    )
