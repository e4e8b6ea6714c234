"""Tests for the ERC-7677 paymaster client and the UserOperation merge helpers."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from aakit.providers.paymaster import (
    PaymasterClient,
    with_paymaster_data,
    with_paymaster_stub,
    with_paymaster_stub_v06,
    with_sponsorship,
    with_sponsorship_v06,
)
from aakit.providers.types import PaymasterContext, PaymasterData, PaymasterStubData, SponsorUserOperationResult
from aakit.types import Address, EntryPointVersion, UserOperationV06, UserOperationV07, entry_point_address

ENTRY_POINT = entry_point_address(EntryPointVersion.V07)
SENDER = Address("0x9999999999999999999999999999999999999999")
PAYMASTER = Address("0x777777777777777777777777777777777777eeee")
TOKEN = Address("0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48")


@pytest.fixture
def rpc() -> MagicMock:
    client = MagicMock()
    client.call = AsyncMock()
    client.timeout_s = 30
    return client


@pytest.fixture
def paymaster(rpc) -> PaymasterClient:
    return PaymasterClient(rpc)


def _user_op() -> UserOperationV07:
    return UserOperationV07(sender=SENDER, nonce=1, call_data="0x", call_gas_limit=10, verification_gas_limit=20)


# =============================================================================
# pm_* methods
# =============================================================================


class TestPaymasterMethods:
    @pytest.mark.asyncio
    async def test_stub_data_params_include_chain_and_context(self, paymaster, rpc):
        rpc.call.return_value = {
            "paymaster": PAYMASTER.hex,
            "paymasterData": "0x1234",
            "paymasterVerificationGasLimit": "0x7530",
            "paymasterPostOpGasLimit": "0x0",
            "isFinal": True,
        }
        context = PaymasterContext(sponsorship_policy_id="sp_test", token=TOKEN)
        op = _user_op()

        stub = await paymaster.get_paymaster_stub_data(op, ENTRY_POINT, 8453, context)

        assert stub.paymaster == PAYMASTER
        assert stub.paymaster_verification_gas_limit == 30000
        assert stub.paymaster_post_op_gas_limit == 0
        assert stub.is_final
        rpc.call.assert_awaited_once_with(
            "pm_getPaymasterStubData",
            [op.to_json(), ENTRY_POINT.hex, "0x2105", {"sponsorshipPolicyId": "sp_test", "token": TOKEN.hex}],
        )

    @pytest.mark.asyncio
    async def test_paymaster_data_without_context(self, paymaster, rpc):
        rpc.call.return_value = {"paymaster": PAYMASTER.hex, "paymasterData": "0xff"}

        data = await paymaster.get_paymaster_data(_user_op(), ENTRY_POINT, 1)

        assert data.paymaster_data == "0xff"
        assert data.paymaster_verification_gas_limit is None
        method, params = rpc.call.await_args.args
        assert method == "pm_getPaymasterData"
        assert params[2:] == ["0x1"]

    @pytest.mark.asyncio
    async def test_sponsor_omits_chain_id(self, paymaster, rpc):
        rpc.call.return_value = {
            "paymaster": PAYMASTER.hex,
            "paymasterData": "0x01",
            "preVerificationGas": "0x10",
            "verificationGasLimit": "0x20",
            "callGasLimit": "0x30",
        }

        result = await paymaster.sponsor_user_operation(_user_op(), ENTRY_POINT, PaymasterContext(extra={"x": 1}))

        assert result.pre_verification_gas == 16
        assert rpc.call.await_args.args[1][2:] == [{"x": 1}]

    def test_v06_sponsorship_splits_paymaster_and_data(self):
        result = SponsorUserOperationResult.from_rpc(
            {"paymasterAndData": PAYMASTER.hex + "abcd", "preVerificationGas": "0x5"}
        )

        assert result.paymaster == PAYMASTER
        assert result.paymaster_data == "0xabcd"
        assert result.paymaster_and_data == PAYMASTER.hex + "abcd"
        assert result.call_gas_limit is None


# =============================================================================
# Merge helpers
# =============================================================================


class TestMergeHelpers:
    def test_stub_then_final_data(self):
        stub = PaymasterStubData(PAYMASTER, "0x00", 30000, 10000)
        with_stub = with_paymaster_stub(_user_op(), stub)

        assert with_stub.paymaster == PAYMASTER
        assert with_stub.paymaster_verification_gas_limit == 30000

        final = with_paymaster_data(with_stub, PaymasterData(PAYMASTER, "0xfeed"))
        assert final.paymaster_data == "0xfeed"
        # Absent limits keep the stub's values
        assert final.paymaster_post_op_gas_limit == 10000

    def test_sponsorship_keeps_missing_gas_fields(self):
        result = SponsorUserOperationResult(PAYMASTER, "0x01", pre_verification_gas=99)

        merged = with_sponsorship(_user_op(), result)

        assert merged.pre_verification_gas == 99
        assert merged.call_gas_limit == 10
        assert merged.verification_gas_limit == 20

    def test_v06_helpers_write_paymaster_and_data(self):
        op = UserOperationV06(sender=SENDER, nonce=0, call_data="0x", call_gas_limit=7)

        assert with_paymaster_stub_v06(op, PaymasterStubData(PAYMASTER, "0x12")).paymaster_and_data == PAYMASTER.hex + "12"

        sponsored = with_sponsorship_v06(op, SponsorUserOperationResult(PAYMASTER, "0x", verification_gas_limit=3))
        assert sponsored.paymaster_and_data == PAYMASTER.hex
        assert sponsored.verification_gas_limit == 3
        assert sponsored.call_gas_limit == 7
