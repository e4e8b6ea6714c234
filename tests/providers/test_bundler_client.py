"""Tests for the ERC-4337 bundler client."""

from types import SimpleNamespace

import pytest
from unittest.mock import AsyncMock, MagicMock

from aakit.core.standards.erc20 import StateDiff, StateOverride
from aakit.providers import bundler as bundler_module
from aakit.providers.bundler import BundlerClient, state_override_param, user_op_json_with_authorization
from aakit.types import (
    EIP7702_FACTORY_MARKER,
    Address,
    Eip7702Authorization,
    EntryPointVersion,
    UserOperationV07,
    entry_point_address,
)

ENTRY_POINT = entry_point_address(EntryPointVersion.V07)
SENDER = Address("0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266")
TOKEN = Address("0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48")
USER_OP_HASH = "0x" + "ab" * 32

RECEIPT = {
    "userOpHash": USER_OP_HASH,
    "sender": SENDER.hex,
    "nonce": "0x0",
    "success": True,
    "actualGasCost": "0x100",
    "actualGasUsed": "0x10",
    "logs": [],
    "receipt": {
        "transactionHash": "0x" + "cd" * 32,
        "blockHash": "0x" + "ef" * 32,
        "blockNumber": "0x10",
        "from": "0x4337000c2828f5260d8921fd25829f606b9e8680",
        "to": ENTRY_POINT.hex,
        "cumulativeGasUsed": "0x5208",
        "gasUsed": "0x5208",
        "status": "0x1",
        "logs": [{"address": ENTRY_POINT.hex, "topics": ["0x01"], "data": "0x"}],
    },
}


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def monotonic(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def rpc() -> MagicMock:
    client = MagicMock()
    client.call = AsyncMock()
    client.timeout_s = 30
    return client


@pytest.fixture
def bundler(rpc) -> BundlerClient:
    return BundlerClient(rpc, ENTRY_POINT)


def _user_op(**changes) -> UserOperationV07:
    return UserOperationV07(sender=SENDER, nonce=0, call_data="0x", **changes)


def _authorization() -> Eip7702Authorization:
    return Eip7702Authorization(
        chain_id=1,
        address=Address("0xe6Cae83BdE06E4c305530e199D7217f42808555B"),
        nonce=0,
        v=28,
        r=1,
        s=2,
    )


# =============================================================================
# Request shaping
# =============================================================================


class TestAuthorizationPayload:
    def test_marker_factory_is_shortened(self):
        op = _user_op(factory=EIP7702_FACTORY_MARKER, factory_data="0x")
        payload = user_op_json_with_authorization(op, [_authorization()])

        assert payload["factory"] == "0x7702"
        assert payload["eip7702Auth"]["yParity"] == "0x01"
        assert payload["eip7702Auth"]["address"] == "0xe6cae83bde06e4c305530e199d7217f42808555b"

    def test_regular_factory_untouched(self):
        factory = Address("0x91E60e0613810449d098b0b5Ec8b51A0FE8c8985")
        payload = user_op_json_with_authorization(_user_op(factory=factory, factory_data="0x01"), [])

        assert payload["factory"] == factory.hex
        assert "eip7702Auth" not in payload


def test_state_override_param_accepts_models_and_dicts():
    overrides = [StateOverride(address=TOKEN, state_diff=[StateDiff(slot="0x01", value="0x02")])]

    assert state_override_param(overrides) == {TOKEN.hex: {"stateDiff": {"0x01": "0x02"}}}
    assert state_override_param({"0xabc": {}}) == {"0xabc": {}}
    assert state_override_param(None) is None


# =============================================================================
# Methods
# =============================================================================


class TestBundlerMethods:
    @pytest.mark.asyncio
    async def test_send_user_operation(self, bundler, rpc):
        rpc.call.return_value = USER_OP_HASH
        op = _user_op()

        assert await bundler.send_user_operation(op) == USER_OP_HASH
        rpc.call.assert_awaited_once_with("eth_sendUserOperation", [op.to_json(), ENTRY_POINT.hex])

    @pytest.mark.asyncio
    async def test_send_with_authorization(self, bundler, rpc):
        rpc.call.return_value = USER_OP_HASH
        op = _user_op(factory=EIP7702_FACTORY_MARKER, factory_data="0x")

        await bundler.send_user_operation_with_authorization(op, [_authorization()])

        method, params = rpc.call.await_args.args
        assert method == "eth_sendUserOperation"
        assert params[0]["factory"] == "0x7702"
        assert "eip7702Auth" in params[0]

    @pytest.mark.asyncio
    async def test_estimate_without_override(self, bundler, rpc):
        rpc.call.return_value = {
            "preVerificationGas": "0xc350",
            "verificationGasLimit": "0x186a0",
            "callGasLimit": "0x7530",
            "paymasterVerificationGasLimit": "0x1",
        }

        estimate = await bundler.estimate_user_operation_gas(_user_op())

        assert estimate.pre_verification_gas == 50000
        assert estimate.verification_gas_limit == 100000
        assert estimate.call_gas_limit == 30000
        assert estimate.paymaster_verification_gas_limit == 1
        assert estimate.paymaster_post_op_gas_limit is None
        assert len(rpc.call.await_args.args[1]) == 2

    @pytest.mark.asyncio
    async def test_estimate_with_override_appends_param(self, bundler, rpc):
        rpc.call.return_value = {"preVerificationGas": "0x1", "verificationGas": "0x2", "callGasLimit": "0x3"}
        overrides = [StateOverride(address=TOKEN, balance=1)]

        estimate = await bundler.estimate_user_operation_gas(_user_op(), overrides)

        assert estimate.verification_gas_limit == 2
        params = rpc.call.await_args.args[1]
        assert params[2] == {TOKEN.hex: {"balance": "0x1"}}

    @pytest.mark.asyncio
    async def test_receipt_parsing(self, bundler, rpc):
        rpc.call.return_value = RECEIPT

        receipt = await bundler.get_user_operation_receipt(USER_OP_HASH)

        assert receipt.success
        assert receipt.actual_gas_cost == 256
        assert receipt.transaction_hash == "0x" + "cd" * 32
        assert receipt.receipt.succeeded
        assert receipt.receipt.logs[0].topics == ["0x01"]

    @pytest.mark.asyncio
    async def test_missing_receipt_is_none(self, bundler, rpc):
        rpc.call.return_value = None
        assert await bundler.get_user_operation_receipt(USER_OP_HASH) is None
        assert await bundler.get_user_operation_by_hash(USER_OP_HASH) is None

    @pytest.mark.asyncio
    async def test_user_operation_by_hash(self, bundler, rpc):
        rpc.call.return_value = {
            "userOperation": {"sender": SENDER.hex},
            "entryPoint": ENTRY_POINT.hex,
            "blockNumber": "0x5",
            "transactionHash": "0x01",
        }

        result = await bundler.get_user_operation_by_hash(USER_OP_HASH)

        assert result.entry_point == ENTRY_POINT
        assert result.block_number == 5

    @pytest.mark.asyncio
    async def test_chain_and_entry_points(self, bundler, rpc):
        rpc.call.side_effect = ["0xaa36a7", [ENTRY_POINT.checksum]]

        assert await bundler.chain_id() == 11155111
        assert await bundler.supported_entry_points() == [ENTRY_POINT]


# =============================================================================
# Receipt polling
# =============================================================================


class TestReceiptPolling:
    @pytest.mark.asyncio
    async def test_polls_until_receipt(self, bundler, rpc):
        rpc.call.side_effect = [None, None, RECEIPT]

        receipt = await bundler.wait_for_user_operation_receipt(USER_OP_HASH, timeout=5, polling_interval=0)

        assert receipt.user_op_hash == USER_OP_HASH
        assert rpc.call.await_count == 3

    @pytest.mark.asyncio
    async def test_zero_timeout_never_polls(self, bundler, rpc):
        rpc.call.return_value = None

        assert await bundler.wait_for_user_operation_receipt(USER_OP_HASH, timeout=0, polling_interval=0) is None
        rpc.call.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_timeout_returns_none_after_polling(self, bundler, rpc, monkeypatch):
        clock = FakeClock()
        monkeypatch.setattr(bundler_module, "time", SimpleNamespace(monotonic=clock.monotonic))
        monkeypatch.setattr(bundler_module, "asyncio", SimpleNamespace(sleep=clock.sleep))
        rpc.call.return_value = None

        receipt = await bundler.wait_for_user_operation_receipt(USER_OP_HASH, timeout=5, polling_interval=2)

        assert receipt is None
        assert rpc.call.await_count == 3
        # last sleep is clipped to the deadline
        assert clock.sleeps == [2, 2, 1]
        assert clock.now == 5

    @pytest.mark.asyncio
    async def test_health_check_reports_entry_point_support(self, bundler, rpc):
        rpc.ready = AsyncMock(return_value=True)
        rpc.call.return_value = [ENTRY_POINT.hex]

        assert await bundler.health_check() == {"status": "healthy", "entryPointSupported": True}
