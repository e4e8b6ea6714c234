"""Tests for the error taxonomy."""

from aakit.core.errors import (
    AAError,
    AddressResolutionError,
    BundlerRpcError,
    EmptyBatchError,
    ErrorCategory,
    InvalidThresholdError,
    NetworkError,
    PaymasterRpcError,
    RecoverableError,
    RpcError,
    UnsupportedOperationError,
    ValidationError,
)


class TestErrorClassification:
    def test_validation_errors_are_not_recoverable(self):
        error = EmptyBatchError()
        assert isinstance(error, ValidationError)
        assert isinstance(error, AAError)
        assert error.category == ErrorCategory.VALIDATION
        assert not error.context.recoverable

    def test_network_error_is_recoverable(self):
        error = NetworkError("timeout", provider="bundler")
        assert isinstance(error, RecoverableError)
        assert not isinstance(error, AAError)
        assert error.context.recoverable
        assert error.context.provider == "bundler"
        assert error.retry_after == 5.0

    def test_threshold_messages(self):
        assert "greater than 0" in InvalidThresholdError(0, 2).message
        too_high = InvalidThresholdError(3, 2)
        assert "cannot exceed" in too_high.message
        assert too_high.context.details == {"threshold": 3, "owners": 2}

    def test_address_resolution_names_missing_inputs(self):
        error = AddressResolutionError("Simple account")
        assert error.category == ErrorCategory.RESOLUTION
        assert error.context.details["missing"] == ["address", "public_client"]
        assert "public_client" in error.message

    def test_unsupported_operation_suggests_alternative(self):
        error = UnsupportedOperationError("no v0.7 signing", alternative="sign_user_operation_v06")
        assert error.alternative == "sign_user_operation_v06"
        assert error.context.suggested_action == "Use sign_user_operation_v06 instead"


class TestRpcErrors:
    def test_provider_per_subclass(self):
        assert RpcError(1, "x").context.provider == "rpc"
        assert BundlerRpcError(1, "x").context.provider == "bundler"
        assert PaymasterRpcError(1, "x").context.provider == "paymaster"

    def test_aa_error_code_extraction(self):
        assert BundlerRpcError(-32500, "reverted", "AA25 invalid account nonce").aa_error_code == "AA25"
        assert BundlerRpcError(-32500, "reverted", {"reason": "AA33 reverted"}).aa_error_code == "AA33"
        assert BundlerRpcError(-32500, "reverted").aa_error_code is None

    def test_str_includes_code_and_data(self):
        assert str(RpcError(-32601, "method not found")) == "RpcError(-32601): method not found"
        assert str(BundlerRpcError(3, "reverted", "0x01")) == "BundlerRpcError(3): reverted - 0x01"
