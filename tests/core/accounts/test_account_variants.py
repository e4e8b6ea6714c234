"""
Tests for the Light, Trust, Kernel, Nexus and Safe account families.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from eth_abi import encode as eth_abi_encode

from aakit.core.accounts import (
    KERNEL_ADDRESSES,
    NEXUS_ADDRESSES,
    SAFE_7579_ADDRESSES,
    TRUST_ADDRESSES,
    Kernel7702SmartAccount,
    KernelSmartAccount,
    KernelVersion,
    LightAccountVersion,
    LightSmartAccount,
    NexusSmartAccount,
    SafeSmartAccount,
    TrustSmartAccount,
)
from aakit.core.accounts.base import DUMMY_ECDSA_SIGNATURE
from aakit.core.accounts.kernel import KernelSelectors, ROOT_MODE_PREFIX
from aakit.core.accounts.safe import SafeSelectors
from aakit.core.accounts.trust import TRUST_CREATE_ACCOUNT
from aakit.core.encoding import hexutil
from aakit.core.errors import (
    InvalidThresholdError,
    UnsupportedOperationError,
    UnsupportedVersionError,
    ValidationError,
)
from aakit.core.hashing import hash_typed_data
from aakit.core.signing import PrivateKeyOwner, recover_address, split_signature
from aakit.core.standards.erc7579 import Selectors as Erc7579Selectors
from aakit.types import Address, Call, EntryPointVersion, UserOperationV06, UserOperationV07

OWNER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
SECOND_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
ACCOUNT_ADDRESS = Address("0x9999999999999999999999999999999999999999")
TARGET_A = Address("0x1111111111111111111111111111111111111111")
TARGET_B = Address("0x2222222222222222222222222222222222222222")


@pytest.fixture
def owner() -> PrivateKeyOwner:
    return PrivateKeyOwner(OWNER_KEY)


@pytest.fixture
def second_owner() -> PrivateKeyOwner:
    return PrivateKeyOwner(SECOND_KEY)


def _user_op(sender: Address = ACCOUNT_ADDRESS) -> UserOperationV07:
    return UserOperationV07(
        sender=sender,
        nonce=1,
        call_data="0x",
        call_gas_limit=100000,
        verification_gas_limit=100000,
        pre_verification_gas=50000,
        max_fee_per_gas=10**9,
        max_priority_fee_per_gas=10**9,
    )


# =============================================================================
# Light
# =============================================================================


class TestLightAccount:
    def test_version_follows_entry_point(self, owner):
        assert LightSmartAccount(owner, 1).version == LightAccountVersion.V2_0_0
        v06 = LightSmartAccount(owner, 1, entry_point_version=EntryPointVersion.V06)
        assert v06.version == LightAccountVersion.V1_1_0

    def test_entry_point_v08_unsupported(self, owner):
        with pytest.raises(UnsupportedVersionError):
            LightSmartAccount(owner, 1, entry_point_version=EntryPointVersion.V08)

    def test_v2_signatures_carry_type_byte(self, owner):
        stub = LightSmartAccount(owner, 1).get_stub_signature()
        assert stub == "0x00" + DUMMY_ECDSA_SIGNATURE[2:]
        v1_stub = LightSmartAccount(owner, 1, entry_point_version=EntryPointVersion.V06).get_stub_signature()
        assert v1_stub == DUMMY_ECDSA_SIGNATURE

    @pytest.mark.asyncio
    async def test_user_operation_signature_prefixed(self, owner):
        account = LightSmartAccount(owner, 1, address=ACCOUNT_ADDRESS)
        signature = await account.sign_user_operation(_user_op())
        assert signature.startswith("0x00")
        assert hexutil.byte_length(signature) == 66

    @pytest.mark.asyncio
    async def test_message_signature_needs_address(self, owner):
        account = LightSmartAccount(owner, 1, address=ACCOUNT_ADDRESS)
        assert hexutil.byte_length(await account.sign_message("hi")) == 66


# =============================================================================
# Trust
# =============================================================================


class TestTrustAccount:
    @pytest.mark.asyncio
    async def test_factory_passes_owner_as_bytes(self, owner):
        account = TrustSmartAccount(owner, 1)
        factory = await account.get_factory_data()

        expected = eth_abi_encode(
            ["address", "bytes", "uint256"],
            [TRUST_ADDRESSES.secp256k1_verification_facet.hex, owner.address.as_bytes(), 0],
        )
        assert factory.factory == TRUST_ADDRESSES.factory
        assert factory.factory_data == TRUST_CREATE_ACCOUNT + expected.hex()

    def test_pinned_to_entry_point_v06(self, owner):
        assert TrustSmartAccount(owner, 1).entry_point_version == EntryPointVersion.V06

    @pytest.mark.asyncio
    async def test_v07_signing_points_to_v06_path(self, owner):
        account = TrustSmartAccount(owner, 1, address=ACCOUNT_ADDRESS)
        with pytest.raises(UnsupportedOperationError) as exc_info:
            await account.sign_user_operation(_user_op())
        assert exc_info.value.alternative == "sign_user_operation_v06"

    @pytest.mark.asyncio
    async def test_v06_signing(self, owner):
        account = TrustSmartAccount(owner, 1, address=ACCOUNT_ADDRESS)
        op = UserOperationV06(sender=ACCOUNT_ADDRESS, nonce=0, call_data="0x")
        assert hexutil.byte_length(await account.sign_user_operation_v06(op)) == 65

    def test_custom_nonce_key(self, owner):
        assert TrustSmartAccount(owner, 1, nonce_key=9).nonce_key == 9


# =============================================================================
# Kernel
# =============================================================================


class TestKernelAccount:
    def test_v3_nonce_key_selects_root_validator(self, owner):
        account = KernelSmartAccount(owner, 1)
        validator = KERNEL_ADDRESSES[KernelVersion.V0_3_1].ecdsa_validator
        assert account.nonce_key == int(validator.hex, 16) << 16

    @pytest.mark.asyncio
    async def test_v3_deploys_through_meta_factory(self, owner):
        account = KernelSmartAccount(owner, 1)
        factory = await account.get_factory_data()
        assert factory.factory == KERNEL_ADDRESSES[KernelVersion.V0_3_1].meta_factory
        assert factory.factory_data.startswith(KernelSelectors.DEPLOY_WITH_FACTORY)

    def test_v3_uses_erc7579_execute(self, owner):
        account = KernelSmartAccount(owner, 1)
        encoded = account.encode_calls([Call(to=TARGET_A), Call(to=TARGET_B)])
        assert encoded.startswith(Erc7579Selectors.EXECUTE)

    def test_v2_runs_on_entry_point_v06(self, owner):
        account = KernelSmartAccount(owner, 1, version=KernelVersion.V0_2_4)
        assert account.entry_point_version == EntryPointVersion.V06
        assert account.nonce_key == 0
        assert account.encode_call(Call(to=TARGET_A)).startswith(KernelSelectors.EXECUTE_V2)
        assert account.get_stub_signature() == ROOT_MODE_PREFIX + DUMMY_ECDSA_SIGNATURE[2:]

    @pytest.mark.asyncio
    async def test_v2_signature_has_root_prefix(self, owner):
        account = KernelSmartAccount(owner, 1, version=KernelVersion.V0_2_4, address=ACCOUNT_ADDRESS)
        op = UserOperationV06(sender=ACCOUNT_ADDRESS, nonce=0, call_data="0x")
        signature = await account.sign_user_operation_v06(op)
        assert signature.startswith(ROOT_MODE_PREFIX)
        assert hexutil.byte_length(signature) == 4 + 65

    def test_7702_requires_v033(self, owner):
        with pytest.raises(UnsupportedVersionError):
            Kernel7702SmartAccount(owner, 1, version=KernelVersion.V0_3_1)

    @pytest.mark.asyncio
    async def test_7702_authorization_targets_implementation(self, owner):
        account = Kernel7702SmartAccount(owner, 1)
        authorization = await account.get_authorization(0)
        assert authorization.address == KERNEL_ADDRESSES[KernelVersion.V0_3_3].account_implementation
        assert await account.get_address() == owner.address


# =============================================================================
# Nexus
# =============================================================================


class TestNexusAccount:
    def test_nonce_key_embeds_validator(self, owner):
        account = NexusSmartAccount(owner, 1)
        assert account.nonce_key == int(NEXUS_ADDRESSES.k1_validator.hex, 16)

    def test_stub_signature_shape(self, owner):
        stub = NexusSmartAccount(owner, 1).get_stub_signature()
        assert hexutil.byte_length(stub) == 32 + 32 + 32 + 65 + 31

    @pytest.mark.asyncio
    async def test_signature_prefixed_with_validator(self, owner):
        account = NexusSmartAccount(owner, 1, address=ACCOUNT_ADDRESS)
        signature = await account.sign_user_operation(_user_op())
        assert signature.startswith(NEXUS_ADDRESSES.k1_validator.hex)
        assert hexutil.byte_length(signature) == 20 + 65

    @pytest.mark.asyncio
    async def test_attesters_sorted_in_factory_data(self, owner):
        unsorted = NexusSmartAccount(owner, 1, attesters=[TARGET_B, TARGET_A], threshold=1)
        ordered = NexusSmartAccount(owner, 1, attesters=[TARGET_A, TARGET_B], threshold=1)
        assert (await unsorted.get_factory_data()) == (await ordered.get_factory_data())


# =============================================================================
# Safe
# =============================================================================


class TestSafeAccount:
    def test_threshold_validation(self, owner):
        with pytest.raises(InvalidThresholdError):
            SafeSmartAccount([owner], 1, threshold=2)
        with pytest.raises(InvalidThresholdError):
            SafeSmartAccount([owner], 1, threshold=0)
        with pytest.raises(ValidationError):
            SafeSmartAccount([], 1)

    @pytest.mark.asyncio
    async def test_address_computed_locally(self, owner):
        public = MagicMock()
        public.get_sender_address = AsyncMock()
        account = SafeSmartAccount([owner], 1, public_client=public)

        address = await account.get_address()

        assert address == SafeSmartAccount([PrivateKeyOwner(OWNER_KEY)], 1).compute_address()
        assert address != SafeSmartAccount([owner], 1, salt_nonce=1).compute_address()
        public.get_sender_address.assert_not_awaited()

    def test_batch_goes_through_multisend(self, owner):
        account = SafeSmartAccount([owner], 1)
        single = account.encode_calls([Call(to=TARGET_A)])
        batch = account.encode_calls([Call(to=TARGET_A), Call(to=TARGET_B)])
        assert single.startswith(SafeSelectors.EXECUTE_USER_OP_WITH_ERROR_STRING)
        assert batch.startswith(SafeSelectors.EXECUTE_USER_OP_WITH_ERROR_STRING)
        assert account.addresses.multi_send.hex[2:] in batch

    def test_stub_signature_per_owner(self, owner, second_owner):
        account = SafeSmartAccount([owner, second_owner], 1, threshold=2)
        assert hexutil.byte_length(account.get_stub_signature()) == 12 + 2 * 65

    @pytest.mark.asyncio
    async def test_signatures_sorted_by_owner_address(self, owner, second_owner):
        account = SafeSmartAccount([owner, second_owner], 1, threshold=2, address=ACCOUNT_ADDRESS)
        op = _user_op()

        signature = await account.sign_user_operation(op)

        assert signature.startswith("0x" + "00" * 12)
        safe_op_hash = hash_typed_data(account.get_safe_op_typed_data(op))
        body = hexutil.slice_hex(signature, 12)
        signers = []
        for index in range(2):
            v, r, s = split_signature(hexutil.slice_hex(body, index * 65, (index + 1) * 65))
            signers.append(recover_address(safe_op_hash, v, r, s))
        assert signers == sorted([owner.address, second_owner.address], key=lambda a: a.hex)

    def test_launchpad_first_operation_differs_from_later_ones(self, owner):
        account = SafeSmartAccount([owner], 1, erc7579_launchpad=SAFE_7579_ADDRESSES.launchpad)
        calls = [Call(to=TARGET_A, value=1), Call(to=TARGET_B, data="0xabcd")]

        first = account.encode_calls_for_deployment(calls)
        later = account.encode_calls(calls)

        assert first.startswith(SafeSelectors.SETUP_SAFE)
        assert later.startswith(Erc7579Selectors.EXECUTE)
        assert first != later

    def test_launchpad_verifies_with_7579_module(self, owner):
        account = SafeSmartAccount([owner], 1, erc7579_launchpad=SAFE_7579_ADDRESSES.launchpad)
        assert account.safe_4337_module == SAFE_7579_ADDRESSES.safe_7579_module
        assert account.get_initializer().startswith(SafeSelectors.PRE_VALIDATION_SETUP)

    def test_standard_deployment_ignores_deployment_path(self, owner):
        account = SafeSmartAccount([owner], 1)
        calls = [Call(to=TARGET_A)]
        assert account.encode_calls_for_deployment(calls) == account.encode_calls(calls)
