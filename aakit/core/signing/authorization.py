"""
EIP-7702 authorizations.

The signed payload is ``keccak256(0x05 || rlp([chain_id, address, nonce]))``.
"""

from __future__ import annotations

from ...types.address import Address
from ...types.eip7702 import Eip7702Authorization
from ..encoding import hexutil
from ..encoding.rlp import authorization_preimage
from ..hashing.message_hash import keccak256
from .owner import AccountOwner, recover_address, split_signature


def get_authorization_hash(chain_id: int, address: Address, nonce: int) -> str:
    return hexutil.encode(keccak256(authorization_preimage(chain_id, address.hex, nonce)))


async def sign_authorization(
    owner: AccountOwner,
    chain_id: int,
    contract_address: Address,
    nonce: int,
) -> Eip7702Authorization:
    """Have ``owner`` delegate its EOA to ``contract_address``."""
    auth_hash = get_authorization_hash(chain_id, contract_address, nonce)
    v, r, s = split_signature(await owner.sign_raw_hash(auth_hash))
    return Eip7702Authorization(
        chain_id=chain_id,
        address=contract_address,
        nonce=nonce,
        v=v,
        r=r,
        s=s,
    )


def recover_authorization_signer(authorization: Eip7702Authorization) -> Address:
    auth_hash = get_authorization_hash(authorization.chain_id, authorization.address, authorization.nonce)
    return recover_address(auth_hash, authorization.v, authorization.r, authorization.s)
