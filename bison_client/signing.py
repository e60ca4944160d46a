"""
EIP-712 order authorization signing.

Orders are authorized off-chain: the user signs an ``OrderAuthorization``
struct against the vault contract's domain and the API verifies it.
"""

from typing import Any, Dict, Union

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_account.signers.local import LocalAccount

ORDER_AUTH_DOMAIN_NAME = "BisonOrderAuth"
ORDER_AUTH_DOMAIN_VERSION = "1"
ORDER_AUTH_PRIMARY_TYPE = "OrderAuthorization"

EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

ORDER_AUTHORIZATION_TYPE = [
    {"name": "marketId", "type": "string"},
    {"name": "action", "type": "string"},
    {"name": "side", "type": "string"},
    {"name": "number", "type": "uint256"},
    {"name": "priceMyrs", "type": "uint256"},
    {"name": "expiry", "type": "uint256"},
]

Signer = Union[LocalAccount, str]


def build_order_authorization(
    *,
    chain_id: int,
    vault_address: str,
    market_id: str,
    action: str,
    side: str,
    number: int,
    price_myrs: int,
    expiry: int,
) -> Dict[str, Any]:
    """
    Build the full EIP-712 typed-data document for an order.

    Args:
        chain_id: EVM chain id of the vault
        vault_address: Vault contract (the verifying contract)
        market_id: Market identifier
        action: "buy" or "sell"
        side: "yes" or "no"
        number: Contract count
        price_myrs: Limit price
        expiry: Unix timestamp (seconds) after which the signature is void
    """
    if action not in ("buy", "sell"):
        raise ValueError(f"Unsupported order action: {action}")
    if side not in ("yes", "no"):
        raise ValueError(f"Unsupported order side: {side}")

    return {
        "types": {
            "EIP712Domain": EIP712_DOMAIN_TYPE,
            ORDER_AUTH_PRIMARY_TYPE: ORDER_AUTHORIZATION_TYPE,
        },
        "primaryType": ORDER_AUTH_PRIMARY_TYPE,
        "domain": {
            "name": ORDER_AUTH_DOMAIN_NAME,
            "version": ORDER_AUTH_DOMAIN_VERSION,
            "chainId": int(chain_id),
            "verifyingContract": vault_address,
        },
        "message": {
            "marketId": market_id,
            "action": action,
            "side": side,
            "number": int(number),
            "priceMyrs": int(price_myrs),
            "expiry": int(expiry),
        },
    }


def resolve_signer(signer: Signer) -> LocalAccount:
    """Accept either a LocalAccount or a hex private key."""
    if isinstance(signer, str):
        return Account.from_key(signer)
    return signer


def sign_order_authorization(signer: Signer, typed_data: Dict[str, Any]) -> str:
    """Sign a typed-data document and return the 0x-prefixed signature."""
    account = resolve_signer(signer)
    signable = encode_typed_data(full_message=typed_data)
    signed = account.sign_message(signable)
    return "0x" + bytes(signed.signature).hex()
