"""
Smart account families.

Each family knows its factory, call encoding, stub signature and signature
format. Address tables live in ``addresses`` and can be overridden per
instance.
"""

from .addresses import (
    KERNEL_ADDRESSES,
    LIGHT_ACCOUNT_FACTORIES,
    NEXUS_ADDRESSES,
    SAFE_7579_ADDRESSES,
    SAFE_ADDRESSES,
    SIMPLE_7702_LOGIC,
    SIMPLE_ACCOUNT_FACTORIES,
    TRUST_ADDRESSES,
    KernelAddresses,
    KernelVersion,
    LightAccountVersion,
    NexusAddresses,
    Safe7579Addresses,
    SafeAddresses,
    SafeVersion,
    TrustAddresses,
)
from .base import (
    DUMMY_ECDSA_SIGNATURE,
    AccountKind,
    Eip7702Account,
    FactoryData,
    SmartAccount,
    SmartAccountV06,
)
from .kernel import Kernel7702SmartAccount, KernelSmartAccount
from .light import LightSmartAccount
from .nexus import NexusSmartAccount
from .safe import Safe7579ModuleInit, SafeSmartAccount
from .simple import Simple7702SmartAccount, SimpleSmartAccount
from .trust import TrustSmartAccount

__all__ = [
    "KERNEL_ADDRESSES",
    "LIGHT_ACCOUNT_FACTORIES",
    "NEXUS_ADDRESSES",
    "SAFE_7579_ADDRESSES",
    "SAFE_ADDRESSES",
    "SIMPLE_7702_LOGIC",
    "SIMPLE_ACCOUNT_FACTORIES",
    "TRUST_ADDRESSES",
    "KernelAddresses",
    "KernelVersion",
    "LightAccountVersion",
    "NexusAddresses",
    "Safe7579Addresses",
    "SafeAddresses",
    "SafeVersion",
    "TrustAddresses",
    "DUMMY_ECDSA_SIGNATURE",
    "AccountKind",
    "Eip7702Account",
    "FactoryData",
    "SmartAccount",
    "SmartAccountV06",
    "Kernel7702SmartAccount",
    "KernelSmartAccount",
    "LightSmartAccount",
    "NexusSmartAccount",
    "Safe7579ModuleInit",
    "SafeSmartAccount",
    "Simple7702SmartAccount",
    "SimpleSmartAccount",
    "TrustSmartAccount",
]
