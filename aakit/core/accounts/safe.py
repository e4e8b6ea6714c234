"""
Safe smart account with the Safe4337Module.

Two deployment modes:

Standard
    ``setup`` delegatecalls MultiSend to enable the 4337 module, which is
    also the fallback handler. Calls go through
    ``executeUserOpWithErrorString`` and batches through MultiSend.

ERC-7579 (when ``erc7579_launchpad`` is given)
    The proxy points at the Safe7579 launchpad. ``preValidationSetup`` commits
    to the hash of the full init data; the first UserOperation calls
    ``setupSafe`` with that data plus the user's calls, after which calls use
    ERC-7579 ``execute``.

The address is computed locally with CREATE2 against the proxy factory.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from ...types.address import ZERO_ADDRESS, Address
from ...types.call import Call
from ...types.typed_data import TypedData, TypedDataDomain, TypedDataField
from ...types.user_operation import EntryPointVersion, UserOperationV07
from ..derivation import get_create2_address
from ..encoding import hexutil
from ..encoding.abi import encode_abi, encode_call, function_selector
from ..errors import InvalidThresholdError, UnsupportedVersionError, ValidationError
from ..hashing.message_hash import hash_message, hash_typed_data, keccak256
from ..hashing.packed import get_init_code, get_paymaster_and_data
from ..signing.owner import AccountOwner
from ..standards.erc7579 import encode_7579_calls, encode_7579_execute
from ..standards.multisend import MultiSendCall, OperationType, encode_multi_send, encode_multi_send_with_operations
from .addresses import SAFE_7579_ADDRESSES, SAFE_ADDRESSES, SafeAddresses, SafeVersion
from .base import AccountKind, FactoryData, SmartAccount

PROXY_CREATION_CODE = (
    "0x608060405234801561001057600080fd5b506040516101e63803806101e68339818101604052602081101561003357"
    "600080fd5b8101908080519060200190929190505050600073ffffffffffffffffffffffffffffffffffffffff168173"
    "ffffffffffffffffffffffffffffffffffffffff1614156100ca576040517f08c379a000000000000000000000000000"
    "00000000000000000000000000000081526004018080602001828103825260228152602001806101c460229139604001"
    "91505060405180910390fd5b806000806101000a81548173ffffffffffffffffffffffffffffffffffffffff02191690"
    "8373ffffffffffffffffffffffffffffffffffffffff1602179055505060ab806101196000396000f3fe608060405273"
    "ffffffffffffffffffffffffffffffffffffffff600054167fa619486e00000000000000000000000000000000000000"
    "00000000000000000060003514156050578060005260206000f35b3660008037600080366000845af43d6000803e6000"
    "8114156070573d6000fd5b3d6000f3fea264697066735822122003d1488ee65e08fa41e58e888a9865554c535f2c7712"
    "6a82cb4c0f917f31441364736f6c63430007060033496e76616c69642073696e676c65746f6e20616464726573732070"
    "726f7669646564"
)


class SafeSelectors:
    SETUP = function_selector("setup(address[],uint256,address,bytes,address,address,uint256,address)")
    EXECUTE_USER_OP_WITH_ERROR_STRING = function_selector("executeUserOpWithErrorString(address,uint256,bytes,uint8)")
    CREATE_PROXY_WITH_NONCE = function_selector("createProxyWithNonce(address,bytes,uint256)")
    ENABLE_MODULES = function_selector("enableModules(address[])")
    INIT_SAFE_7579 = function_selector(
        "initSafe7579(address,(address,bytes)[],(address,bytes)[],(address,bytes)[],address[],uint8)"
    )
    PRE_VALIDATION_SETUP = function_selector("preValidationSetup(bytes32,address,bytes)")
    SETUP_SAFE = function_selector("setupSafe((address,address[],uint256,address,bytes,address,(address,bytes)[],bytes))")


SAFE_OP_TYPES = {
    "SafeOp": [
        TypedDataField("safe", "address"),
        TypedDataField("nonce", "uint256"),
        TypedDataField("initCode", "bytes"),
        TypedDataField("callData", "bytes"),
        TypedDataField("verificationGasLimit", "uint128"),
        TypedDataField("callGasLimit", "uint128"),
        TypedDataField("preVerificationGas", "uint256"),
        TypedDataField("maxPriorityFeePerGas", "uint128"),
        TypedDataField("maxFeePerGas", "uint128"),
        TypedDataField("paymasterAndData", "bytes"),
        TypedDataField("validAfter", "uint48"),
        TypedDataField("validUntil", "uint48"),
        TypedDataField("entryPoint", "address"),
    ]
}


@dataclass(frozen=True)
class Safe7579ModuleInit:
    """A module installed by the launchpad: ``(address module, bytes initData)``."""
    module: Address
    init_data: str = "0x"

    def as_tuple(self):
        return (self.module, self.init_data)


def encode_safe_setup(
    owners: Sequence[Address],
    threshold: int,
    to: Address,
    data: str,
    fallback_handler: Address,
    payment_token: Address = ZERO_ADDRESS,
    payment: int = 0,
    payment_receiver: Address = ZERO_ADDRESS,
) -> str:
    return encode_call(
        SafeSelectors.SETUP,
        ["address[]", "uint256", "address", "bytes", "address", "address", "uint256", "address"],
        [list(owners), threshold, to, data, fallback_handler, payment_token, payment, payment_receiver],
    )


def encode_enable_modules(modules: Sequence[Address]) -> str:
    return encode_call(SafeSelectors.ENABLE_MODULES, ["address[]"], [list(modules)])


def encode_execute_user_op(to: Address, value: int, data: str, operation: OperationType) -> str:
    return encode_call(
        SafeSelectors.EXECUTE_USER_OP_WITH_ERROR_STRING,
        ["address", "uint256", "bytes", "uint8"],
        [to, value, data, int(operation)],
    )


def encode_create_proxy_with_nonce(singleton: Address, initializer: str, salt_nonce: int) -> str:
    return encode_call(
        SafeSelectors.CREATE_PROXY_WITH_NONCE,
        ["address", "bytes", "uint256"],
        [singleton, initializer, salt_nonce],
    )


def encode_init_safe_7579(
    safe_7579: Address,
    executors: Sequence[Safe7579ModuleInit],
    fallbacks: Sequence[Safe7579ModuleInit],
    hooks: Sequence[Safe7579ModuleInit],
    attesters: Sequence[Address],
    threshold: int,
) -> str:
    return encode_call(
        SafeSelectors.INIT_SAFE_7579,
        ["address", "(address,bytes)[]", "(address,bytes)[]", "(address,bytes)[]", "address[]", "uint8"],
        [
            safe_7579,
            [m.as_tuple() for m in executors],
            [m.as_tuple() for m in fallbacks],
            [m.as_tuple() for m in hooks],
            sorted(attesters, key=lambda a: a.hex),
            threshold,
        ],
    )


def encode_pre_validation_setup(init_hash: str, to: Address, pre_init: str = "0x") -> str:
    return encode_call(
        SafeSelectors.PRE_VALIDATION_SETUP,
        ["bytes32", "address", "bytes"],
        [init_hash, to, pre_init],
    )


class SafeSmartAccount(SmartAccount):
    kind = AccountKind.SAFE
    display_name = "Safe account"

    def __init__(
        self,
        owners: List[AccountOwner],
        chain_id: int,
        threshold: int = 1,
        version: SafeVersion = SafeVersion.V1_4_1,
        entry_point_version: EntryPointVersion = EntryPointVersion.V07,
        salt_nonce: int = 0,
        addresses: Optional[SafeAddresses] = None,
        public_client: Optional[Any] = None,
        address: Optional[Address] = None,
        erc7579_launchpad: Optional[Address] = None,
        validators: Sequence[Safe7579ModuleInit] = (),
        executors: Sequence[Safe7579ModuleInit] = (),
        fallbacks: Sequence[Safe7579ModuleInit] = (),
        hooks: Sequence[Safe7579ModuleInit] = (),
        attesters: Sequence[Address] = (),
        attesters_threshold: int = 0,
    ) -> None:
        if not owners:
            raise ValidationError("At least one owner is required")
        if threshold > len(owners):
            raise InvalidThresholdError(threshold, len(owners))
        if threshold <= 0:
            raise InvalidThresholdError(threshold, len(owners))

        resolved = addresses or SAFE_ADDRESSES.get((version, entry_point_version))
        if resolved is None:
            raise UnsupportedVersionError(
                f"Safe version {version.value} does not support EntryPoint version {entry_point_version.value}",
                {"version": version.value, "entry_point_version": entry_point_version.value},
            )

        super().__init__(chain_id, entry_point_version, public_client, address)
        self.owners = list(owners)
        self.threshold = threshold
        self.version = version
        self.salt_nonce = salt_nonce
        self.addresses = resolved
        self.erc7579_launchpad = erc7579_launchpad
        self.validators = list(validators)
        self.executors = list(executors)
        self.fallbacks = list(fallbacks)
        self.hooks = list(hooks)
        self.attesters = list(attesters)
        self.attesters_threshold = attesters_threshold

    @property
    def is_erc7579_enabled(self) -> bool:
        return self.erc7579_launchpad is not None

    @property
    def safe_4337_module(self) -> Address:
        """Module that validates UserOperations (and is the SafeOp verifying contract)."""
        if self.is_erc7579_enabled:
            return SAFE_7579_ADDRESSES.safe_7579_module
        return self.addresses.safe_4337_module

    @property
    def _proxy_singleton(self) -> Address:
        return self.erc7579_launchpad if self.is_erc7579_enabled else self.addresses.singleton

    def _sorted_owners(self) -> List[AccountOwner]:
        return sorted(self.owners, key=lambda o: o.address.hex)

    # Deployment

    def get_initializer(self) -> str:
        if self.is_erc7579_enabled:
            return encode_pre_validation_setup(self.get_init_hash(), ZERO_ADDRESS)
        return self._standard_initializer()

    def _standard_initializer(self) -> str:
        enable_modules = encode_enable_modules([self.addresses.safe_4337_module])
        multi_send_data = encode_multi_send_with_operations([
            MultiSendCall(
                to=self.addresses.module_setup,
                value=0,
                data=enable_modules,
                operation=OperationType.DELEGATE_CALL,
            )
        ])
        return encode_safe_setup(
            owners=[o.address for o in self.owners],
            threshold=self.threshold,
            to=self.addresses.multi_send,
            data=multi_send_data,
            fallback_handler=self.addresses.safe_4337_module,
        )

    def _init_safe_7579_data(self) -> str:
        return encode_init_safe_7579(
            safe_7579=SAFE_7579_ADDRESSES.safe_7579_module,
            executors=self.executors,
            fallbacks=self.fallbacks,
            hooks=self.hooks,
            attesters=self.attesters,
            threshold=self.attesters_threshold,
        )

    def _init_data_fields(self) -> list:
        return [
            self.addresses.singleton,
            [o.address for o in self.owners],
            self.threshold,
            self.erc7579_launchpad,
            self._init_safe_7579_data(),
            SAFE_7579_ADDRESSES.safe_7579_module,
            [m.as_tuple() for m in self.validators],
        ]

    def get_init_hash(self) -> str:
        """keccak256 of the launchpad ``InitData`` fields, without the trailing callData."""
        encoded = encode_abi(
            ["address", "address[]", "uint256", "address", "bytes", "address", "(address,bytes)[]"],
            self._init_data_fields(),
        )
        return hexutil.encode(keccak256(encoded))

    def get_salt(self) -> bytes:
        initializer_hash = keccak256(self.get_initializer())
        return keccak256(initializer_hash + self.salt_nonce.to_bytes(32, "big"))

    def compute_address(self) -> Address:
        deployment_code = hexutil.concat([PROXY_CREATION_CODE, self._proxy_singleton.abi_encoded()])
        return get_create2_address(self.addresses.proxy_factory, self.get_salt(), keccak256(deployment_code))

    async def get_address(self) -> Address:
        cached = self._address.get()
        if cached is not None:
            return cached
        if self._configured_address is not None:
            return self._address.set(self._configured_address)
        return self._address.set(self.compute_address())

    async def get_factory_data(self) -> Optional[FactoryData]:
        data = encode_create_proxy_with_nonce(self._proxy_singleton, self.get_initializer(), self.salt_nonce)
        return FactoryData(factory=self.addresses.proxy_factory, factory_data=data)

    # Execution

    def encode_call(self, call: Call) -> str:
        if self.is_erc7579_enabled:
            return encode_7579_execute(call)
        return encode_execute_user_op(call.to, call.value, call.data, OperationType.CALL)

    def _encode_batch(self, calls: Sequence[Call]) -> str:
        if self.is_erc7579_enabled:
            return encode_7579_calls(calls)
        return encode_execute_user_op(
            self.addresses.multi_send,
            0,
            encode_multi_send(calls),
            OperationType.DELEGATE_CALL,
        )

    def encode_calls_for_deployment(self, calls: Sequence[Call]) -> str:
        """Call data for the first UserOperation of a not-yet-deployed account."""
        if not self.is_erc7579_enabled:
            return self.encode_calls(calls)
        user_call_data = encode_7579_calls(calls)
        fields = self._init_data_fields() + [user_call_data]
        return encode_call(
            SafeSelectors.SETUP_SAFE,
            ["(address,address[],uint256,address,bytes,address,(address,bytes)[],bytes)"],
            [fields],
        )

    # Signatures

    def get_stub_signature(self) -> str:
        parts = ["0x" + "00" * 6, "0x" + "00" * 6]
        for owner in self._sorted_owners():
            parts.extend([owner.address.abi_encoded(), hexutil.ZERO_32, "0x01"])
        return hexutil.concat(parts)

    def get_safe_op_typed_data(self, user_op: UserOperationV07) -> TypedData:
        return TypedData(
            domain=TypedDataDomain(chain_id=self.chain_id, verifying_contract=self.safe_4337_module),
            types=SAFE_OP_TYPES,
            primary_type="SafeOp",
            message={
                "safe": user_op.sender,
                "nonce": user_op.nonce,
                "initCode": get_init_code(user_op),
                "callData": user_op.call_data,
                "verificationGasLimit": user_op.verification_gas_limit,
                "callGasLimit": user_op.call_gas_limit,
                "preVerificationGas": user_op.pre_verification_gas,
                "maxPriorityFeePerGas": user_op.max_priority_fee_per_gas,
                "maxFeePerGas": user_op.max_fee_per_gas,
                "paymasterAndData": get_paymaster_and_data(user_op),
                "validAfter": 0,
                "validUntil": 0,
                "entryPoint": self.entry_point,
            },
        )

    async def sign_user_operation(self, user_op: UserOperationV07) -> str:
        safe_op_hash = hash_typed_data(self.get_safe_op_typed_data(user_op))
        signatures = await self._sign_with_owners(safe_op_hash)
        return hexutil.concat(["0x" + "00" * 12, signatures])

    async def sign_message(self, message: str) -> str:
        return await self._sign_with_owners(hash_message(message))

    async def sign_typed_data(self, typed_data: TypedData) -> str:
        return await self._sign_with_owners(hash_typed_data(typed_data))

    async def _sign_with_owners(self, hash: str) -> str:
        signatures = [await owner.sign_raw_hash(hash) for owner in self._sorted_owners()]
        return hexutil.concat(signatures)
