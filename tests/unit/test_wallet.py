"""Wallet address format checks."""

import pytest

from optik_arcade.errors import ValidationError
from optik_arcade.wallet import is_valid_wallet_address, require_wallet_address, short_address


class TestWalletAddress:

    def test_valid(self, wallet, other_wallet):
        assert is_valid_wallet_address(wallet)
        assert is_valid_wallet_address(other_wallet)

    @pytest.mark.parametrize("address", [
        "",
        "abc",
        "0x24691E54aFafe2416a8252097C9Ca67557271475",  # ethereum, contains 0
        "O" * 44,                                       # O is not base58
        "l" * 40,                                       # l is not base58
        "1" * 45,                                       # too long
        "1" * 31,                                       # too short
        None,
        12345,
    ])
    def test_invalid(self, address):
        assert not is_valid_wallet_address(address)

    def test_require_returns_address(self, wallet):
        assert require_wallet_address(wallet) == wallet

    def test_require_missing(self):
        with pytest.raises(ValidationError, match="required"):
            require_wallet_address("")

    def test_require_malformed(self):
        with pytest.raises(ValidationError, match="Invalid wallet"):
            require_wallet_address("not-a-wallet")

    def test_short_address(self, wallet):
        assert short_address(wallet) == "9xQeWv...VFin"
        assert short_address("abc") == "abc"
