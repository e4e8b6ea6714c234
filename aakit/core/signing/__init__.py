from .authorization import get_authorization_hash, recover_authorization_signer, sign_authorization
from .owner import AccountOwner, PrivateKeyOwner, recover_address, split_signature

__all__ = [
    "AccountOwner",
    "PrivateKeyOwner",
    "recover_address",
    "split_signature",
    "get_authorization_hash",
    "recover_authorization_signer",
    "sign_authorization",
]
