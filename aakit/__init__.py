"""
aakit: ERC-4337 UserOperation construction and signing.

Usage:
    from aakit import PrivateKeyOwner, SimpleSmartAccount, SmartAccountClient
    from aakit.providers import create_bundler_client, create_public_client
"""

from .types import (
    Address,
    Call,
    Eip7702Authorization,
    EntryPointVersion,
    TypedData,
    TypedDataDomain,
    TypedDataField,
    UserOperationV06,
    UserOperationV07,
)
from .core.signing import AccountOwner, PrivateKeyOwner
from .core.accounts import (
    AccountKind,
    Kernel7702SmartAccount,
    KernelSmartAccount,
    LightSmartAccount,
    NexusSmartAccount,
    SafeSmartAccount,
    Simple7702SmartAccount,
    SimpleSmartAccount,
    SmartAccount,
    TrustSmartAccount,
)
from .core.execution import SmartAccountClient

__version__ = "0.1.0"

__all__ = [
    "Address",
    "Call",
    "Eip7702Authorization",
    "EntryPointVersion",
    "TypedData",
    "TypedDataDomain",
    "TypedDataField",
    "UserOperationV06",
    "UserOperationV07",
    "AccountOwner",
    "PrivateKeyOwner",
    "AccountKind",
    "SmartAccount",
    "SimpleSmartAccount",
    "Simple7702SmartAccount",
    "LightSmartAccount",
    "SafeSmartAccount",
    "KernelSmartAccount",
    "Kernel7702SmartAccount",
    "NexusSmartAccount",
    "TrustSmartAccount",
    "SmartAccountClient",
]
