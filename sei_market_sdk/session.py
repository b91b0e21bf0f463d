"""
Session identity passed explicitly to purchase flows.
"""
from dataclasses import dataclass
from typing import Optional, Union

DEMO_PREFIX = "demo_"


@dataclass(frozen=True)
class WalletSession:
    """A user identified by their connected wallet."""
    address: str

    @property
    def is_demo(self) -> bool:
        return False

    @property
    def demo_identifier(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class DemoSession:
    """A trial user tracked by IP address."""
    ip: str

    @property
    def is_demo(self) -> bool:
        return True

    @property
    def demo_identifier(self) -> Optional[str]:
        return self.ip

    @property
    def pseudo_address(self) -> str:
        return f"{DEMO_PREFIX}{self.ip}"


SessionContext = Union[WalletSession, DemoSession]


def session_from_address(address: str) -> SessionContext:
    """
    Build a session from a stored identity string.

    ``demo_<ip>`` pseudo-addresses become a DemoSession; anything else is a
    wallet address.
    """
    if not address:
        raise ValueError("address must not be empty")
    if address.startswith(DEMO_PREFIX):
        ip = address[len(DEMO_PREFIX):]
        if not ip:
            raise ValueError(f"Demo identity without an IP: {address!r}")
        return DemoSession(ip=ip)
    return WalletSession(address=address)
