"""
Tests for account owners and EIP-7702 authorizations.

Recovery goes through eth_account so signatures are checked by an
independent implementation.
"""

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct, encode_typed_data

from aakit.core.encoding import hexutil
from aakit.core.hashing import hash_message, keccak256
from aakit.core.encoding.rlp import authorization_preimage
from aakit.core.signing import (
    PrivateKeyOwner,
    get_authorization_hash,
    recover_address,
    recover_authorization_signer,
    sign_authorization,
    split_signature,
)
from aakit.types import Address, TypedData, TypedDataDomain, TypedDataField

PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
OWNER_ADDRESS = Address("0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266")
SIMPLE_7702_DELEGATE = Address("0xe6Cae83BdE06E4c305530e199D7217f42808555B")


@pytest.fixture
def owner() -> PrivateKeyOwner:
    return PrivateKeyOwner(PRIVATE_KEY)


def test_owner_address(owner):
    assert owner.address == OWNER_ADDRESS
    assert len(owner.public_key) == 64


@pytest.mark.asyncio
async def test_personal_message_signature_recovers(owner):
    message_hash = hash_message("hello")
    signature = await owner.sign_personal_message(message_hash)

    assert hexutil.byte_length(signature) == 65
    v, _, _ = split_signature(signature)
    assert v in (27, 28)
    recovered = Account.recover_message(encode_defunct(primitive=hexutil.decode(message_hash)), signature=signature)
    assert Address.from_hex(recovered) == OWNER_ADDRESS


@pytest.mark.asyncio
async def test_raw_hash_signature_recovers(owner):
    digest = hexutil.encode(keccak256(b"payload"))
    v, r, s = split_signature(await owner.sign_raw_hash(digest))

    assert v in (27, 28)
    assert recover_address(digest, v, r, s) == OWNER_ADDRESS


@pytest.mark.asyncio
async def test_typed_data_signature_matches_eth_account(owner):
    typed_data = TypedData(
        domain=TypedDataDomain(name="Test", version="1", chain_id=1),
        types={"Greeting": [TypedDataField("text", "string"), TypedDataField("to", "address")]},
        primary_type="Greeting",
        message={"text": "gm", "to": OWNER_ADDRESS.checksum},
    )
    signature = await owner.sign_typed_data(typed_data)

    reference = encode_typed_data(
        full_message={
            "types": {
                "EIP712Domain": [
                    {"name": "name", "type": "string"},
                    {"name": "version", "type": "string"},
                    {"name": "chainId", "type": "uint256"},
                ],
                "Greeting": [{"name": "text", "type": "string"}, {"name": "to", "type": "address"}],
            },
            "primaryType": "Greeting",
            "domain": {"name": "Test", "version": "1", "chainId": 1},
            "message": {"text": "gm", "to": OWNER_ADDRESS.checksum},
        }
    )
    assert Address.from_hex(Account.recover_message(reference, signature=signature)) == OWNER_ADDRESS


def test_split_signature_rejects_wrong_length():
    with pytest.raises(ValueError):
        split_signature("0x" + "00" * 64)


# =============================================================================
# EIP-7702 authorizations
# =============================================================================


class TestAuthorization:
    def test_hash_covers_magic_prefixed_rlp(self):
        expected = hexutil.encode(keccak256(authorization_preimage(1, SIMPLE_7702_DELEGATE.hex, 0)))
        assert get_authorization_hash(1, SIMPLE_7702_DELEGATE, 0) == expected

    @pytest.mark.asyncio
    async def test_signed_authorization_recovers_to_owner(self, owner):
        authorization = await sign_authorization(owner, 1, SIMPLE_7702_DELEGATE, 0)

        assert authorization.chain_id == 1
        assert authorization.address == SIMPLE_7702_DELEGATE
        assert authorization.nonce == 0
        assert authorization.v in (27, 28)
        assert recover_authorization_signer(authorization) == owner.address

    @pytest.mark.asyncio
    async def test_rpc_format(self, owner):
        authorization = await sign_authorization(owner, 1, SIMPLE_7702_DELEGATE, 3)
        rpc = authorization.to_rpc_format()

        assert rpc["chainId"] == "0x1"
        assert rpc["nonce"] == "0x3"
        assert rpc["address"] == SIMPLE_7702_DELEGATE.hex
        assert rpc["yParity"] in ("0x00", "0x01")
        assert len(rpc["r"]) == 66
        assert len(rpc["s"]) == 66
