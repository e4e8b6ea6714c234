"""
Error Classification

Every error raised by aakit carries an ErrorCategory and an ErrorContext.
Errors are either recoverable (transport hiccups the caller may retry) or
unrecoverable (bad input, unsupported combinations, structured RPC errors).
Nothing in aakit retries on its own except receipt polling.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Categories of errors."""

    VALIDATION = "validation"         # Bad input, raised before any network access
    RESOLUTION = "resolution"         # Account address cannot be determined
    PROTOCOL = "protocol"             # Structured JSON-RPC error from a collaborator
    UNSUPPORTED = "unsupported"       # Wrong signing path for this account
    CONFIGURATION = "configuration"   # Missing client or setting
    NETWORK = "network"               # Transport failure
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Additional context about an error."""

    category: ErrorCategory = ErrorCategory.UNKNOWN
    recoverable: bool = False
    suggested_action: Optional[str] = None
    provider: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class AAError(Exception):
    """
    Base class for errors that retrying will not fix.

    These errors need the caller to change something:
    - Invalid inputs (empty batch, bad threshold)
    - Unsupported account version / EntryPoint pairs
    - Missing address resolution inputs
    - Errors returned by a bundler, paymaster or node
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.context = context or ErrorContext(category=category, recoverable=False)


class RecoverableError(Exception):
    """Base class for transient errors the caller may retry."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        retry_after: Optional[float] = None,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.retry_after = retry_after
        self.context = context or ErrorContext(category=category, recoverable=True)


# Input validation
class ValidationError(AAError):
    """Input rejected before any network access."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message,
            category=ErrorCategory.VALIDATION,
            context=ErrorContext(
                category=ErrorCategory.VALIDATION,
                recoverable=False,
                details=details or {},
            ),
        )


class EmptyBatchError(ValidationError):
    """An encode or send was attempted with no calls."""

    def __init__(self, message: str = "At least one call is required"):
        super().__init__(message)


class InvalidThresholdError(ValidationError):
    """Signer threshold is zero or exceeds the number of owners."""

    def __init__(self, threshold: int, owners: int):
        if threshold <= 0:
            message = "Threshold must be greater than 0"
        else:
            message = f"Threshold ({threshold}) cannot exceed number of owners ({owners})"
        super().__init__(message, details={"threshold": threshold, "owners": owners})
        self.threshold = threshold
        self.owners = owners


class UnsupportedVersionError(ValidationError):
    """Account version and EntryPoint version do not go together."""


class AbiEncodingError(ValidationError):
    """A value does not match the ABI type it is being encoded as."""


# Resolution
class AddressResolutionError(AAError):
    """Account address cannot be computed locally and nothing was supplied."""

    def __init__(self, account: str):
        message = (
            f"{account} address cannot be computed without a client. "
            "Either provide `address` or `public_client` when creating the account."
        )
        super().__init__(
            message,
            category=ErrorCategory.RESOLUTION,
            context=ErrorContext(
                category=ErrorCategory.RESOLUTION,
                recoverable=False,
                suggested_action="Pass address= or public_client=",
                details={"account": account, "missing": ["address", "public_client"]},
            ),
        )


# Wrong signing path
class UnsupportedOperationError(AAError):
    """Operation not available for this account."""

    def __init__(self, message: str, alternative: Optional[str] = None):
        super().__init__(
            message,
            category=ErrorCategory.UNSUPPORTED,
            context=ErrorContext(
                category=ErrorCategory.UNSUPPORTED,
                recoverable=False,
                suggested_action=f"Use {alternative} instead" if alternative else None,
            ),
        )
        self.alternative = alternative


class ConfigurationError(AAError):
    """A required client or setting is missing."""

    def __init__(self, message: str):
        super().__init__(message, category=ErrorCategory.CONFIGURATION)


# Protocol / RPC
_AA_CODE_RE = re.compile(r"AA\d+")


class RpcError(AAError):
    """Structured error returned by a JSON-RPC collaborator."""

    provider = "rpc"

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(
            message,
            category=ErrorCategory.PROTOCOL,
            context=ErrorContext(
                category=ErrorCategory.PROTOCOL,
                recoverable=False,
                provider=self.provider,
                details={"code": code, "data": data},
            ),
        )
        self.code = code
        self.data = data

    @property
    def aa_error_code(self) -> Optional[str]:
        """EntryPoint validation code (AA10..AA99) carried in the error data."""
        if self.data is None:
            return None
        match = _AA_CODE_RE.search(str(self.data))
        return match.group(0) if match else None

    def __str__(self) -> str:
        suffix = f" - {self.data}" if self.data is not None else ""
        return f"{type(self).__name__}({self.code}): {self.message}{suffix}"


class BundlerRpcError(RpcError):
    provider = "bundler"


class PaymasterRpcError(RpcError):
    provider = "paymaster"


class PublicRpcError(RpcError):
    provider = "public"


# Transport
class NetworkError(RecoverableError):
    """Connectivity or timeout failure talking to an RPC endpoint."""

    def __init__(self, message: str = "Network error", provider: Optional[str] = None):
        super().__init__(
            message,
            category=ErrorCategory.NETWORK,
            retry_after=5.0,
            context=ErrorContext(
                category=ErrorCategory.NETWORK,
                recoverable=True,
                provider=provider,
                suggested_action="Retry with exponential backoff",
            ),
        )
