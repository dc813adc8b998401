"""Wallet address checks.

Ownership of the address is proven upstream by the wallet provider; here we
only reject strings that cannot be a Solana public key.
"""

import re

from optik_arcade.errors import ValidationError

# base58 alphabet (no 0, O, I, l); 32 bytes encode to 32-44 chars
_SOLANA_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def is_valid_wallet_address(address) -> bool:
    if not isinstance(address, str):
        return False
    return bool(_SOLANA_ADDRESS_RE.match(address))


def require_wallet_address(address) -> str:
    """Return the address unchanged, or raise ValidationError."""
    if not address:
        raise ValidationError("Wallet address required")
    if not is_valid_wallet_address(address):
        raise ValidationError(f"Invalid wallet address: {address!r}")
    return address


def short_address(address: str) -> str:
    return address[:6] + "..." + address[-4:] if len(address) > 12 else address
