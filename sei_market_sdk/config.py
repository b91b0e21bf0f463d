"""
Network and environment configuration for the SEI Market SDK.
"""
import importlib.resources
import json
import logging
import os
import urllib.parse
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_NETWORK = "sei-mainnet"
DEFAULT_TESTNET = "sei-testnet"
DEFAULT_CONFIRMATION_TIMEOUT = 60.0
DEFAULT_HTTP_TIMEOUT = 30

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Network:
    """A chain the marketplace accepts payments on."""
    name: str
    chain_id: int
    chain_name: str
    rpc_url: str
    explorer_url: str
    explorer_tx_path: str = "/tx/{hash}"
    symbol: str = "SEI"
    decimals: int = 18
    testnet: bool = False

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "Network":
        currency = data.get("nativeCurrency", {})
        return cls(
            name=name,
            chain_id=int(data["chainId"]),
            chain_name=data.get("chainName", name),
            rpc_url=data["rpc"],
            explorer_url=data.get("explorer", "").rstrip("/"),
            explorer_tx_path=data.get("explorerTxPath", "/tx/{hash}"),
            symbol=currency.get("symbol", "SEI"),
            decimals=int(currency.get("decimals", 18)),
            testnet=bool(data.get("testnet", False)),
        )

    def explorer_tx_url(self, tx_hash: str) -> str:
        """Return the block explorer URL for a transaction."""
        return self.explorer_url + self.explorer_tx_path.format(hash=tx_hash)


class NetworkConfig:
    """Access to the bundled network catalogue."""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load the network catalogue shipped with the package.

        Returns:
            Mapping of network name to raw network configuration
        """
        if cls._networks_cache is not None:
            return cls._networks_cache

        resource = importlib.resources.files("sei_market_sdk").joinpath("networks.json")
        with resource.open("r", encoding="utf-8") as f:
            cls._networks_cache = json.load(f)
        return cls._networks_cache

    @classmethod
    def get_network(cls, name: str) -> Dict[str, Any]:
        """
        Get the raw configuration of a network.

        Raises:
            ValueError: If the network is unknown
        """
        networks = cls.load_networks()
        if name not in networks:
            raise ValueError(f"Unknown network '{name}'. Available: {', '.join(sorted(networks))}")
        return networks[name]

    @classmethod
    def resolve(cls, name: str) -> Network:
        """Get a network as a :class:`Network`."""
        return Network.from_dict(name, cls.get_network(name))


def validate_url(name: str, url: str) -> str:
    """
    Require https for remote endpoints.

    Localhost is always allowed; set SEI_MARKET_ALLOW_INSECURE=1 to allow
    plain http elsewhere during development.

    Raises:
        ValueError: If the URL is malformed or insecure
    """
    parsed = urllib.parse.urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ValueError(f"{name} is not a valid URL: {url!r}")

    is_local = parsed.hostname in ("localhost", "127.0.0.1", "::1")
    if parsed.scheme != "https" and not is_local:
        if os.environ.get("SEI_MARKET_ALLOW_INSECURE") != "1":
            raise ValueError(
                f"{name} must use https:// for security (got: {parsed.scheme}://). "
                "Set SEI_MARKET_ALLOW_INSECURE=1 to allow HTTP for development."
            )
    return url.rstrip("/")


@dataclass
class MarketSettings:
    """Runtime settings, usually read from the environment."""
    network: Network
    ledger_url: str
    rpc_url: Optional[str] = None
    recipient_address: Optional[str] = None
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT
    http_timeout: int = DEFAULT_HTTP_TIMEOUT

    @property
    def effective_rpc_url(self) -> str:
        return self.rpc_url or self.network.rpc_url

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "MarketSettings":
        """
        Build settings from SEI_MARKET_* environment variables.

        The testnet is selected when SEI_MARKET_USE_TESTNET is truthy or
        SEI_MARKET_ENV is "development", unless SEI_MARKET_NETWORK names a
        network explicitly.

        Raises:
            ValueError: If a required variable is missing or invalid
        """
        env = os.environ if environ is None else environ

        network_name = env.get("SEI_MARKET_NETWORK")
        if not network_name:
            use_testnet = (
                env.get("SEI_MARKET_USE_TESTNET", "").strip().lower() in _TRUE_VALUES
                or env.get("SEI_MARKET_ENV", "").strip().lower() == "development"
            )
            network_name = DEFAULT_TESTNET if use_testnet else DEFAULT_NETWORK
        network = NetworkConfig.resolve(network_name)

        ledger_url = env.get("SEI_MARKET_LEDGER_URL")
        if not ledger_url:
            raise ValueError("SEI_MARKET_LEDGER_URL must be set")

        rpc_url = env.get("SEI_MARKET_RPC_URL") or None
        supabase_url = env.get("SEI_MARKET_SUPABASE_URL") or None

        try:
            confirmation_timeout = float(
                env.get("SEI_MARKET_CONFIRMATION_TIMEOUT", DEFAULT_CONFIRMATION_TIMEOUT)
            )
            http_timeout = int(env.get("SEI_MARKET_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT))
        except ValueError as e:
            raise ValueError(f"Invalid timeout setting: {e}")
        if confirmation_timeout <= 0:
            raise ValueError("SEI_MARKET_CONFIRMATION_TIMEOUT must be positive")

        settings = cls(
            network=network,
            ledger_url=validate_url("SEI_MARKET_LEDGER_URL", ledger_url),
            rpc_url=validate_url("SEI_MARKET_RPC_URL", rpc_url) if rpc_url else None,
            recipient_address=env.get("SEI_MARKET_RECIPIENT_ADDRESS") or None,
            supabase_url=validate_url("SEI_MARKET_SUPABASE_URL", supabase_url) if supabase_url else None,
            supabase_key=env.get("SEI_MARKET_SUPABASE_KEY") or None,
            confirmation_timeout=confirmation_timeout,
            http_timeout=http_timeout,
        )
        logger.debug(f"Loaded settings for network {network.name} (chain {network.chain_id})")
        return settings
