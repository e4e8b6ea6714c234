"""Tests for the Pimlico bundler extensions."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from aakit.providers.pimlico import PimlicoClient, pack_user_operation_v07
from aakit.types import Address, EntryPointVersion, UserOperationV07, entry_point_address

ENTRY_POINT = entry_point_address(EntryPointVersion.V07)
SENDER = Address("0x9999999999999999999999999999999999999999")
PAYMASTER = Address("0x777777777777777777777777777777777777eeee")
FACTORY = Address("0x91E60e0613810449d098b0b5Ec8b51A0FE8c8985")
TOKEN = Address("0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48")
INFLATOR = Address("0x1111111111111111111111111111111111111111")
USER_OP_HASH = "0x" + "ab" * 32


@pytest.fixture
def rpc() -> MagicMock:
    client = MagicMock()
    client.call = AsyncMock()
    client.timeout_s = 30
    return client


@pytest.fixture
def pimlico(rpc) -> PimlicoClient:
    return PimlicoClient(rpc, ENTRY_POINT)


def _user_op(**changes) -> UserOperationV07:
    return UserOperationV07(sender=SENDER, nonce=0, call_data="0x", **changes)


class TestPackUserOperation:
    def test_plain_operation_has_no_optional_groups(self):
        packed = pack_user_operation_v07(_user_op())

        assert "factory" not in packed
        assert "paymaster" not in packed
        assert packed["nonce"] == "0x0"

    def test_groups_filled_with_defaults(self):
        packed = pack_user_operation_v07(_user_op(factory=FACTORY, paymaster=PAYMASTER))

        assert packed["factory"] == FACTORY.hex
        assert packed["factoryData"] == "0x"
        assert packed["paymasterVerificationGasLimit"] == "0x0"
        assert packed["paymasterPostOpGasLimit"] == "0x0"
        assert packed["paymasterData"] == "0x"


# =============================================================================
# Status and gas prices
# =============================================================================


class TestStatus:
    @pytest.mark.asyncio
    async def test_status_parsing(self, pimlico, rpc):
        rpc.call.return_value = {"status": "submitted", "transactionHash": "0x01"}

        status = await pimlico.get_user_operation_status(USER_OP_HASH)

        assert status.is_pending
        assert not status.is_terminal
        assert status.transaction_hash == "0x01"
        rpc.call.assert_awaited_once_with("pimlico_getUserOperationStatus", [USER_OP_HASH])

    @pytest.mark.asyncio
    async def test_wait_stops_at_terminal_status(self, pimlico, rpc):
        rpc.call.side_effect = [
            {"status": "not_submitted"},
            {"status": "submitted"},
            {"status": "rejected"},
        ]

        status = await pimlico.wait_for_user_operation_status(USER_OP_HASH, timeout=5, polling_interval=0)

        assert status.is_failed
        assert rpc.call.await_count == 3

    @pytest.mark.asyncio
    async def test_wait_returns_latest_status_after_timeout(self, pimlico, rpc):
        rpc.call.return_value = {"status": "submitted"}

        status = await pimlico.wait_for_user_operation_status(USER_OP_HASH, timeout=0, polling_interval=0)

        assert status.status == "submitted"
        assert rpc.call.await_count == 1

    @pytest.mark.asyncio
    async def test_gas_prices(self, pimlico, rpc):
        tier = {"maxFeePerGas": "0x64", "maxPriorityFeePerGas": "0xa"}
        rpc.call.return_value = {"slow": tier, "standard": tier, "fast": {"maxFeePerGas": "0xc8", "maxPriorityFeePerGas": "0x14"}}

        prices = await pimlico.get_user_operation_gas_price()

        assert prices.standard.max_fee_per_gas == 100
        assert prices.fast.max_priority_fee_per_gas == 20


# =============================================================================
# Sending and ERC-20 paymaster support
# =============================================================================


class TestPimlicoExtensions:
    @pytest.mark.asyncio
    async def test_send_compressed_param_order(self, pimlico, rpc):
        rpc.call.return_value = USER_OP_HASH
        op = _user_op()

        assert await pimlico.send_compressed_user_operation(op, INFLATOR, "0xc0ffee") == USER_OP_HASH
        rpc.call.assert_awaited_once_with(
            "pimlico_sendCompressedUserOperation",
            [pack_user_operation_v07(op), ENTRY_POINT.hex, "0xc0ffee", INFLATOR.hex],
        )

    @pytest.mark.asyncio
    async def test_token_quotes_fetch_chain_id_first(self, pimlico, rpc):
        rpc.call.side_effect = [
            "0x2105",
            {
                "quotes": [
                    {
                        "token": TOKEN.hex,
                        "paymaster": PAYMASTER.hex,
                        "postOpGas": "0xc350",
                        "exchangeRate": "0x5af3107a4000",
                        "balanceSlot": "0x9",
                        "allowanceSlot": "0xa",
                    }
                ]
            },
        ]

        quotes = await pimlico.get_token_quotes([TOKEN])

        assert quotes[0].paymaster == PAYMASTER
        assert quotes[0].post_op_gas == 50000
        assert quotes[0].exchange_rate == 10**14
        assert quotes[0].balance_slot == 9
        assert quotes[0].exchange_rate_native_to_usd is None
        assert rpc.call.await_args_list[0].args == ("eth_chainId",)
        assert rpc.call.await_args_list[1].args == (
            "pimlico_getTokenQuotes",
            [{"tokens": [TOKEN.hex]}, ENTRY_POINT.hex, "0x2105"],
        )

    @pytest.mark.asyncio
    async def test_supported_tokens_list_or_object(self, pimlico, rpc):
        token = {"token": TOKEN.hex, "name": "USD Coin", "symbol": "USDC", "decimals": 6}

        rpc.call.return_value = [token]
        assert (await pimlico.get_supported_tokens())[0].symbol == "USDC"

        rpc.call.return_value = {"tokens": [token]}
        assert (await pimlico.get_supported_tokens())[0].decimals == 6

    @pytest.mark.asyncio
    async def test_erc20_paymaster_cost(self, pimlico, rpc):
        rpc.call.return_value = {"costInToken": "0x3e8", "costInUsd": "0x1"}

        cost = await pimlico.estimate_erc20_paymaster_cost(_user_op(), TOKEN)

        assert cost.cost_in_token == 1000
        assert rpc.call.await_args.args[1][2] == TOKEN.hex

    @pytest.mark.asyncio
    async def test_validate_policies_skips_empty_input(self, pimlico, rpc):
        assert await pimlico.validate_sponsorship_policies(_user_op(), []) == []
        rpc.call.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_validate_policies(self, pimlico, rpc):
        rpc.call.return_value = [
            {"sponsorshipPolicyId": "sp_1", "data": {"name": "Launch", "author": "team"}},
        ]

        policies = await pimlico.validate_sponsorship_policies(_user_op(), ["sp_1", "sp_2"])

        assert policies[0].sponsorship_policy_id == "sp_1"
        assert policies[0].name == "Launch"
        assert policies[0].icon is None
        assert rpc.call.await_args.args[1][2] == ["sp_1", "sp_2"]
