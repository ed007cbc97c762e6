import re


# Solana: Base58, 32-44 chars
_SOLANA_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")

LAMPORTS_PER_SOL = 1_000_000_000


class InvalidWalletAddress(ValueError):
    """Raised when a wallet identifier cannot possibly be analyzed."""


def is_solana_address(address: str) -> bool:
    return bool(_SOLANA_ADDRESS_RE.match(address.strip()))


def validate_wallet_address(address: str) -> str:
    """Return the stripped address or raise InvalidWalletAddress."""
    if not isinstance(address, str):
        raise InvalidWalletAddress("Wallet address must be a string")
    address = address.strip()
    if not address:
        raise InvalidWalletAddress("Wallet address is empty")
    if not is_solana_address(address):
        raise InvalidWalletAddress(f"Unrecognized Solana address format: {address}")
    return address


def short_address(address: str, chars: int = 6) -> str:
    """Truncate: 7xKXtg...gAsU"""
    if len(address) <= chars * 2 + 3:
        return address
    return f"{address[:chars]}...{address[-chars:]}"


def lamports_to_sol(lamports: int | str) -> float:
    return int(lamports) / LAMPORTS_PER_SOL


def redact_key(api_key: str, chars: int = 8) -> str:
    return f"{api_key[:chars]}..." if api_key else "<none>"
