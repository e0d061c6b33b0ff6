import re

from chainprice.domain.enums import Network
from chainprice.exceptions import InvalidRequestError

_EVM_ADDRESS = re.compile(r"^0x[0-9a-f]{40}$")


def normalize_token_address(address: str) -> str:
    """Lowercase and validate an EVM contract address."""
    if not isinstance(address, str):
        raise InvalidRequestError("Token address must be a string")
    normalized = address.strip().lower()
    if not _EVM_ADDRESS.match(normalized):
        raise InvalidRequestError(f"Invalid token address: {address!r}")
    return normalized


def parse_network(network: str | Network) -> Network:
    try:
        return Network(network)
    except ValueError:
        supported = ", ".join(n.value for n in Network)
        raise InvalidRequestError(f"Unsupported network {network!r} (expected one of: {supported})") from None


def validate_timestamp(timestamp: int) -> int:
    if isinstance(timestamp, bool) or not isinstance(timestamp, int):
        raise InvalidRequestError("Timestamp must be an integer number of unix seconds")
    if timestamp <= 0:
        raise InvalidRequestError(f"Timestamp must be positive, got {timestamp}")
    return timestamp
