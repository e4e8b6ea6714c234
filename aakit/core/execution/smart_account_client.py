"""
SmartAccountClient: builds, signs and submits UserOperations for one account.

Pipeline for EntryPoint v0.7/v0.8 accounts:

    sender -> (EIP-7702 authorization) -> deployment check -> nonce
    -> factory or 7702 marker -> calldata -> stub op -> paymaster stub
    -> gas estimate -> final paymaster data -> sign -> submit -> poll

Every step works on an immutable UserOperation and returns an updated copy.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ...config import settings
from ...providers.bundler import BundlerClient, StateOverrideParam, state_override_param
from ...providers.paymaster import (
    PaymasterClient,
    with_paymaster_data,
    with_paymaster_stub,
    with_sponsorship_v06,
)
from ...providers.public import PublicClient
from ...providers.types import PaymasterContext, UserOperationGasEstimate, UserOperationReceipt
from ...types.address import Address
from ...types.call import Call
from ...types.eip7702 import EIP7702_FACTORY_MARKER, Eip7702Authorization
from ...types.typed_data import TypedData
from ...types.user_operation import UserOperationV06, UserOperationV07
from ..accounts.base import AccountKind, SmartAccount, SmartAccountV06
from ..encoding import hexutil
from ..errors import UnsupportedOperationError
from .models import PreparedUserOperation, ReceiptResult, ReceiptStatus

logger = logging.getLogger(__name__)


def apply_gas_estimate(user_op: UserOperationV07, estimate: UserOperationGasEstimate) -> UserOperationV07:
    """Merge estimated limits; paymaster limits the estimate omits keep their stub values."""
    return user_op.copy_with(
        pre_verification_gas=estimate.pre_verification_gas,
        verification_gas_limit=estimate.verification_gas_limit,
        call_gas_limit=estimate.call_gas_limit,
        paymaster_verification_gas_limit=estimate.paymaster_verification_gas_limit,
        paymaster_post_op_gas_limit=estimate.paymaster_post_op_gas_limit,
    )


def apply_gas_estimate_v06(user_op: UserOperationV06, estimate: UserOperationGasEstimate) -> UserOperationV06:
    return user_op.copy_with(
        pre_verification_gas=estimate.pre_verification_gas,
        verification_gas_limit=estimate.verification_gas_limit,
        call_gas_limit=estimate.call_gas_limit,
    )


class SmartAccountClient:
    """
    Orchestrates the UserOperation lifecycle for a single smart account.

    Collaborators are injected: a bundler, a public node client and an
    optional ERC-7677 paymaster. The client holds no state between calls.
    """

    def __init__(
        self,
        account: SmartAccount,
        bundler: BundlerClient,
        public_client: PublicClient,
        paymaster: Optional[PaymasterClient] = None,
    ) -> None:
        self.account = account
        self.bundler = bundler
        self.public_client = public_client
        self.paymaster = paymaster

    async def get_address(self) -> Address:
        return await self.account.get_address()

    async def _create_authorization_if_needed(self, address: Address) -> Optional[Eip7702Authorization]:
        match self.account.kind:
            case AccountKind.SIMPLE_7702 | AccountKind.KERNEL_7702:
                pass
            case _:
                return None

        if await self.public_client.is_deployed(address):
            return None

        eoa_nonce = await self.public_client.get_transaction_count(address)
        logger.debug(f"Signing EIP-7702 authorization for {address.checksum} (nonce={eoa_nonce})")
        return await self.account.get_authorization(eoa_nonce)

    def encode_call_data(self, calls: Sequence[Call], is_deployment: bool = False) -> str:
        """Call data for ``calls``; a deploying launchpad Safe gets ``setupSafe`` instead of ``execute``."""
        match self.account.kind:
            case AccountKind.SAFE if is_deployment and self.account.is_erc7579_enabled:
                # The launchpad's setupSafe runs the first batch during deployment
                return self.account.encode_calls_for_deployment(calls)
            case _:
                return self.account.encode_calls(calls)

    async def prepare_user_operation_with_auth(
        self,
        calls: Sequence[Call],
        max_fee_per_gas: int,
        max_priority_fee_per_gas: int,
        nonce: Optional[int] = None,
        paymaster_context: Optional[PaymasterContext] = None,
        sender: Optional[Address] = None,
        state_override: StateOverrideParam = None,
    ) -> PreparedUserOperation:
        """
        Build a gas-estimated, paymaster-finalized UserOperation with a stub
        signature, plus the EIP-7702 authorization when the EOA still needs
        delegating.
        """
        if sender is None:
            sender = await self.account.get_address()

        authorization = await self._create_authorization_if_needed(sender)
        is_deployed = await self.public_client.is_deployed(sender)

        if nonce is None:
            nonce = await self.public_client.get_account_nonce(
                sender, self.account.entry_point, self.account.nonce_key
            )

        factory: Optional[Address] = None
        factory_data: Optional[str] = None
        if not is_deployed:
            if authorization is not None:
                factory, factory_data = EIP7702_FACTORY_MARKER, hexutil.EMPTY
            else:
                deployment = await self.account.get_factory_data()
                if deployment is not None:
                    factory, factory_data = deployment.factory, deployment.factory_data

        call_data = self.encode_call_data(calls, is_deployment=factory is not None)
        logger.debug(
            f"Preparing UserOperation sender={sender.checksum} nonce={nonce} "
            f"calls={len(calls)} deploy={factory is not None}"
        )

        user_op = UserOperationV07(
            sender=sender,
            nonce=nonce,
            factory=factory,
            factory_data=factory_data,
            call_data=call_data,
            max_fee_per_gas=max_fee_per_gas,
            max_priority_fee_per_gas=max_priority_fee_per_gas,
            signature=self.account.get_stub_signature(),
        )

        stub = None
        if self.paymaster is not None:
            stub = await self.paymaster.get_paymaster_stub_data(
                user_op, self.account.entry_point, self.account.chain_id, paymaster_context
            )
            user_op = with_paymaster_stub(user_op, stub)

        override = state_override_param(state_override) if state_override else None
        if authorization is not None:
            estimate = await self.bundler.estimate_user_operation_gas_with_authorization(
                user_op, [authorization], override
            )
        else:
            estimate = await self.bundler.estimate_user_operation_gas(user_op, override)
        user_op = apply_gas_estimate(user_op, estimate)
        logger.debug(
            f"Gas estimate: pvg={estimate.pre_verification_gas} "
            f"vgl={estimate.verification_gas_limit} cgl={estimate.call_gas_limit}"
        )

        if self.paymaster is not None and stub is not None and not stub.is_final:
            data = await self.paymaster.get_paymaster_data(
                user_op, self.account.entry_point, self.account.chain_id, paymaster_context
            )
            user_op = with_paymaster_data(user_op, data)

        return PreparedUserOperation(user_op=user_op, authorization=authorization)

    async def prepare_user_operation(
        self,
        calls: Sequence[Call],
        max_fee_per_gas: int,
        max_priority_fee_per_gas: int,
        nonce: Optional[int] = None,
        paymaster_context: Optional[PaymasterContext] = None,
        sender: Optional[Address] = None,
        state_override: StateOverrideParam = None,
    ) -> UserOperationV07:
        prepared = await self.prepare_user_operation_with_auth(
            calls,
            max_fee_per_gas,
            max_priority_fee_per_gas,
            nonce=nonce,
            paymaster_context=paymaster_context,
            sender=sender,
            state_override=state_override,
        )
        return prepared.user_op

    async def sign_user_operation(self, user_op: UserOperationV07) -> UserOperationV07:
        signature = await self.account.sign_user_operation(user_op)
        return user_op.copy_with(signature=signature)

    async def send_prepared_user_operation(
        self,
        user_op: UserOperationV07,
        authorization: Optional[Eip7702Authorization] = None,
    ) -> str:
        if authorization is not None:
            user_op_hash = await self.bundler.send_user_operation_with_authorization(user_op, [authorization])
        else:
            user_op_hash = await self.bundler.send_user_operation(user_op)
        logger.info(f"Submitted UserOperation {user_op_hash} from {user_op.sender.checksum}")
        return user_op_hash

    async def send_user_operation(
        self,
        calls: Sequence[Call],
        max_fee_per_gas: int,
        max_priority_fee_per_gas: int,
        nonce: Optional[int] = None,
        paymaster_context: Optional[PaymasterContext] = None,
        sender: Optional[Address] = None,
        state_override: StateOverrideParam = None,
    ) -> str:
        prepared = await self.prepare_user_operation_with_auth(
            calls,
            max_fee_per_gas,
            max_priority_fee_per_gas,
            nonce=nonce,
            paymaster_context=paymaster_context,
            sender=sender,
            state_override=state_override,
        )
        signed = await self.sign_user_operation(prepared.user_op)
        return await self.send_prepared_user_operation(signed, prepared.authorization)

    async def send_user_operation_and_wait(
        self,
        calls: Sequence[Call],
        max_fee_per_gas: int,
        max_priority_fee_per_gas: int,
        nonce: Optional[int] = None,
        paymaster_context: Optional[PaymasterContext] = None,
        sender: Optional[Address] = None,
        state_override: StateOverrideParam = None,
        timeout: Optional[float] = None,
        polling_interval: Optional[float] = None,
    ) -> Optional[UserOperationReceipt]:
        user_op_hash = await self.send_user_operation(
            calls,
            max_fee_per_gas,
            max_priority_fee_per_gas,
            nonce=nonce,
            paymaster_context=paymaster_context,
            sender=sender,
            state_override=state_override,
        )
        return await self.wait_for_receipt(user_op_hash, timeout, polling_interval)

    async def wait_for_receipt(
        self,
        user_op_hash: str,
        timeout: Optional[float] = None,
        polling_interval: Optional[float] = None,
    ) -> Optional[UserOperationReceipt]:
        """Receipt, or None when ``timeout`` elapses first (not an error)."""
        return await self.bundler.wait_for_user_operation_receipt(
            user_op_hash,
            timeout=timeout if timeout is not None else settings.receipt_timeout_seconds,
            polling_interval=(
                polling_interval if polling_interval is not None else settings.receipt_poll_interval_seconds
            ),
        )

    async def wait_for_receipt_result(
        self,
        user_op_hash: str,
        timeout: Optional[float] = None,
        polling_interval: Optional[float] = None,
    ) -> ReceiptResult:
        receipt = await self.wait_for_receipt(user_op_hash, timeout, polling_interval)
        if receipt is None:
            return ReceiptResult(user_op_hash=user_op_hash, status=ReceiptStatus.UNRESOLVED)
        return ReceiptResult(user_op_hash=user_op_hash, status=ReceiptStatus.RESOLVED, receipt=receipt)

    # EntryPoint v0.6

    async def prepare_user_operation_v06(
        self,
        calls: Sequence[Call],
        max_fee_per_gas: int,
        max_priority_fee_per_gas: int,
        nonce: Optional[int] = None,
        paymaster_context: Optional[PaymasterContext] = None,
        sender: Optional[Address] = None,
    ) -> UserOperationV06:
        """
        v0.6 flow. With a paymaster, ``pm_sponsorUserOperation`` returns the
        paymaster blob and gas limits in one step; otherwise the bundler
        estimates.
        """
        if sender is None:
            sender = await self.account.get_address()

        is_deployed = await self.public_client.is_deployed(sender)
        init_code = hexutil.EMPTY if is_deployed else await self.account.get_init_code()

        if nonce is None:
            nonce = await self.public_client.get_account_nonce(
                sender, self.account.entry_point, self.account.nonce_key
            )

        user_op = UserOperationV06(
            sender=sender,
            nonce=nonce,
            init_code=init_code,
            call_data=self.account.encode_calls(calls),
            max_fee_per_gas=max_fee_per_gas,
            max_priority_fee_per_gas=max_priority_fee_per_gas,
            signature=self.account.get_stub_signature(),
        )
        logger.debug(f"Preparing v0.6 UserOperation sender={sender.checksum} nonce={nonce}")

        if self.paymaster is not None:
            sponsorship = await self.paymaster.sponsor_user_operation(
                user_op, self.account.entry_point, paymaster_context
            )
            return with_sponsorship_v06(user_op, sponsorship)

        estimate = await self.bundler.estimate_user_operation_gas(user_op)
        return apply_gas_estimate_v06(user_op, estimate)

    async def sign_user_operation_v06(self, user_op: UserOperationV06) -> UserOperationV06:
        if not isinstance(self.account, SmartAccountV06):
            raise UnsupportedOperationError(
                f"{self.account.display_name} does not support EntryPoint v0.6 signing",
                alternative="sign_user_operation",
            )
        signature = await self.account.sign_user_operation_v06(user_op)
        return user_op.copy_with(signature=signature)

    async def send_prepared_user_operation_v06(self, user_op: UserOperationV06) -> str:
        user_op_hash = await self.bundler.send_user_operation(user_op)
        logger.info(f"Submitted v0.6 UserOperation {user_op_hash} from {user_op.sender.checksum}")
        return user_op_hash

    async def send_user_operation_v06(
        self,
        calls: Sequence[Call],
        max_fee_per_gas: int,
        max_priority_fee_per_gas: int,
        nonce: Optional[int] = None,
        paymaster_context: Optional[PaymasterContext] = None,
        sender: Optional[Address] = None,
    ) -> str:
        user_op = await self.prepare_user_operation_v06(
            calls,
            max_fee_per_gas,
            max_priority_fee_per_gas,
            nonce=nonce,
            paymaster_context=paymaster_context,
            sender=sender,
        )
        signed = await self.sign_user_operation_v06(user_op)
        return await self.send_prepared_user_operation_v06(signed)

    async def send_user_operation_v06_and_wait(
        self,
        calls: Sequence[Call],
        max_fee_per_gas: int,
        max_priority_fee_per_gas: int,
        nonce: Optional[int] = None,
        paymaster_context: Optional[PaymasterContext] = None,
        sender: Optional[Address] = None,
        timeout: Optional[float] = None,
        polling_interval: Optional[float] = None,
    ) -> Optional[UserOperationReceipt]:
        user_op_hash = await self.send_user_operation_v06(
            calls,
            max_fee_per_gas,
            max_priority_fee_per_gas,
            nonce=nonce,
            paymaster_context=paymaster_context,
            sender=sender,
        )
        return await self.wait_for_receipt(user_op_hash, timeout, polling_interval)

    # Signing pass-throughs

    async def sign_message(self, message: str) -> str:
        return await self.account.sign_message(message)

    async def sign_typed_data(self, typed_data: TypedData) -> str:
        return await self.account.sign_typed_data(typed_data)

    async def aclose(self) -> None:
        await self.bundler.aclose()
        if self.paymaster is not None:
            await self.paymaster.aclose()
