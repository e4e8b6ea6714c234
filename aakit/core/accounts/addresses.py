"""
Deployed contract addresses per account family and version.

Each table is built once at import time; account constructors take the
matching entry as a keyword argument so tests and forks can inject their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from ...types.address import Address
from ...types.user_operation import EntryPointVersion


# Simple

SIMPLE_ACCOUNT_FACTORIES: Dict[EntryPointVersion, Address] = {
    EntryPointVersion.V06: Address("0x9406Cc6185a346906296840746125a0E44976454"),
    EntryPointVersion.V07: Address("0x91E60e0613810449d098b0b5Ec8b51A0FE8c8985"),
    EntryPointVersion.V08: Address("0x13E9ed32155810FDbd067D4522C492D6f68E5944"),
}

SIMPLE_7702_LOGIC = Address("0xe6Cae83BdE06E4c305530e199D7217f42808555B")


# Light

class LightAccountVersion(str, Enum):
    V1_1_0 = "1.1.0"
    V2_0_0 = "2.0.0"


LIGHT_ACCOUNT_FACTORIES: Dict[LightAccountVersion, Address] = {
    LightAccountVersion.V1_1_0: Address("0x00004EC70002a32400f8ae005A26081065620D20"),
    LightAccountVersion.V2_0_0: Address("0x0000000000400CdFef5E2714E63d8040b700BC24"),
}


# Safe

class SafeVersion(str, Enum):
    V1_4_1 = "1.4.1"
    V1_5_0 = "1.5.0"


@dataclass(frozen=True)
class SafeAddresses:
    module_setup: Address
    safe_4337_module: Address
    proxy_factory: Address
    singleton: Address
    multi_send: Address
    multi_send_call_only: Address
    webauthn_shared_signer: Optional[Address] = None
    p256_verifier: Optional[Address] = None


@dataclass(frozen=True)
class Safe7579Addresses:
    safe_7579_module: Address
    launchpad: Address
    rhinestone_attester: Address


SAFE_7579_ADDRESSES = Safe7579Addresses(
    safe_7579_module=Address("0x7579EE8307284F293B1927136486880611F20002"),
    launchpad=Address("0x7579011aB74c46090561ea277Ba79D510c6C00ff"),
    rhinestone_attester=Address("0x000000333034E9f539ce08819E12c1b8Cb29084d"),
)

_SAFE_141_V07 = SafeAddresses(
    module_setup=Address("0x2dd68b007B46fBe91B9A7c3EDa5A7a1063cB5b47"),
    safe_4337_module=Address("0x75cf11467937ce3F2f357CE24ffc3DBF8fD5c226"),
    proxy_factory=Address("0x4e1DCf7AD4e460CfD30791CCC4F9c8a4f820ec67"),
    singleton=Address("0x41675C099F32341bf84BFc5382aF534df5C7461a"),
    multi_send=Address("0x38869bf66a61cF6bDB996A6aE40D5853Fd43B526"),
    multi_send_call_only=Address("0x9641d764fc13c8B624c04430C7356C1C7C8102e2"),
    webauthn_shared_signer=Address("0xfD90FAd33ee8b58f32c00aceEad1358e4AFC23f9"),
    p256_verifier=Address("0x445a0683e494ea0c5AF3E83c5159fBE47Cf9e765"),
)

SAFE_ADDRESSES: Dict[Tuple[SafeVersion, EntryPointVersion], SafeAddresses] = {
    (SafeVersion.V1_4_1, EntryPointVersion.V06): SafeAddresses(
        module_setup=Address("0x8EcD4ec46D4D2a6B64fE960B3D64e8B94B2234eb"),
        safe_4337_module=Address("0xa581c4A4DB7175302464fF3C06380BC3270b4037"),
        proxy_factory=Address("0x4e1DCf7AD4e460CfD30791CCC4F9c8a4f820ec67"),
        singleton=Address("0x41675C099F32341bf84BFc5382aF534df5C7461a"),
        multi_send=Address("0x38869bf66a61cF6bDB996A6aE40D5853Fd43B526"),
        multi_send_call_only=Address("0x9641d764fc13c8B624c04430C7356C1C7C8102e2"),
    ),
    (SafeVersion.V1_4_1, EntryPointVersion.V07): _SAFE_141_V07,
    (SafeVersion.V1_5_0, EntryPointVersion.V07): SafeAddresses(
        module_setup=Address("0x2dd68b007B46fBe91B9A7c3EDa5A7a1063cB5b47"),
        safe_4337_module=Address("0x75cf11467937ce3F2f357CE24ffc3DBF8fD5c226"),
        proxy_factory=Address("0x14F2982D601c9458F93bd70B218933A6f8165e7b"),
        singleton=Address("0xFf51A5898e281Db6DfC7855790607438dF2ca44b"),
        multi_send=Address("0x218543288004CD07832472D464648173c77D7eB7"),
        multi_send_call_only=Address("0x0c28E9886f79618371c5Af86aA7e5Cf62dddd8dC"),
        webauthn_shared_signer=Address("0xfD90FAd33ee8b58f32c00aceEad1358e4AFC23f9"),
        p256_verifier=Address("0x445a0683e494ea0c5AF3E83c5159fBE47Cf9e765"),
    ),
}


# Kernel

class KernelVersion(str, Enum):
    V0_2_4 = "0.2.4"
    V0_3_1 = "0.3.1"
    V0_3_3 = "0.3.3"

    @property
    def uses_erc7579(self) -> bool:
        return self is not KernelVersion.V0_2_4

    @property
    def supports_eip7702(self) -> bool:
        return self is KernelVersion.V0_3_3


@dataclass(frozen=True)
class KernelAddresses:
    account_implementation: Address
    factory: Address
    meta_factory: Optional[Address] = None
    ecdsa_validator: Optional[Address] = None


KERNEL_ADDRESSES: Dict[KernelVersion, KernelAddresses] = {
    KernelVersion.V0_2_4: KernelAddresses(
        account_implementation=Address("0xd3082872F8B06073A021b4602e022d5A070d7cfC"),
        factory=Address("0x5de4839a76cf55d0c90e2061ef4386d962E15ae3"),
        ecdsa_validator=Address("0xd9AB5096a832b9ce79914329DAEE236f8Eea0390"),
    ),
    KernelVersion.V0_3_1: KernelAddresses(
        account_implementation=Address("0xBAC849bB641841b44E965fB01A4Bf5F074f84b4D"),
        factory=Address("0xaac5D4240AF87249B3f71BC8E4A2cae074A3E419"),
        meta_factory=Address("0xd703aaE79538628d27099B8c4f621bE4CCd142d5"),
        ecdsa_validator=Address("0x845ADb2C711129d4f3966735eD98a9F09fC4cE57"),
    ),
    KernelVersion.V0_3_3: KernelAddresses(
        account_implementation=Address("0xd6CEDDe84be40893d153Be9d467CD6aD37875b28"),
        factory=Address("0x2577507b78c2008Ff367261CB6285d44ba5eF2E9"),
        meta_factory=Address("0xd703aaE79538628d27099B8c4f621bE4CCd142d5"),
        ecdsa_validator=Address("0x845ADb2C711129d4f3966735eD98a9F09fC4cE57"),
    ),
}


# Nexus

@dataclass(frozen=True)
class NexusAddresses:
    k1_validator_factory: Address
    k1_validator: Address


NEXUS_ADDRESSES = NexusAddresses(
    k1_validator_factory=Address("0x00000bb19a3579F4D779215dEf97AFbd0e30DB55"),
    k1_validator=Address("0x00000004171351c442B202678c48D8AB5B321E8f"),
)


# Trust (Barz)

@dataclass(frozen=True)
class TrustAddresses:
    factory: Address
    secp256k1_verification_facet: Address


TRUST_ADDRESSES = TrustAddresses(
    factory=Address("0x729c310186a57833f622630a16d13f710b83272a"),
    secp256k1_verification_facet=Address("0x81b9E3689390C7e74cF526594A105Dea21a8cdD5"),
)
