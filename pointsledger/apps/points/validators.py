from web3 import Web3


def is_valid_wallet(wallet) -> bool:
    """Ethereum address check; mixed-case input must carry a valid checksum."""
    if not isinstance(wallet, str):
        return False
    wallet = wallet.strip()
    if not Web3.is_address(wallet):
        return False
    digits = wallet[2:] if wallet[:2].lower() == "0x" else wallet
    if digits != digits.lower() and digits != digits.upper():
        return Web3.is_checksum_address(wallet)
    return True
