"""
Seller wallet lookup.

Listings reference their seller by user id; the receiving wallet address is
looked up at purchase time.
"""
import logging
import time
from typing import Dict, Optional, Protocol

import jwt
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import validate_url
from .exceptions import DirectoryError


class SellerDirectory(Protocol):
    """Resolves a user id to the wallet address that receives payments."""

    def resolve_wallet(self, user_id: str) -> Optional[str]:
        ...


class StaticDirectory:
    """Directory backed by a fixed mapping."""

    def __init__(self, wallets: Dict[str, str]):
        self.wallets = dict(wallets)

    def resolve_wallet(self, user_id: str) -> Optional[str]:
        return self.wallets.get(user_id)


class SupabaseDirectory:
    """
    Directory backed by the ``users`` table of a Supabase project.

    Uses the PostgREST endpoint with the project's publishable key.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        table: str = "users",
        timeout: int = 30,
        retry_count: int = 3,
        logger: Optional[logging.Logger] = None
    ):
        """
        Args:
            url: Supabase project URL
            api_key: Publishable (anon) API key
            table: Table holding ``id`` and ``wallet_address`` columns
            timeout: Timeout for HTTP requests in seconds
            retry_count: Retries for idempotent lookups
            logger: Optional logger instance
        """
        if not api_key:
            raise ValueError("api_key must be provided")
        self.url = validate_url("supabase_url", url)
        self.table = table
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)
        self._check_api_key(api_key)

        self.session = requests.Session()
        self.session.headers.update({
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        })
        retries = Retry(
            total=retry_count,
            backoff_factor=0.5,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["GET"],
            raise_on_status=False
        )
        self.session.mount("http://", HTTPAdapter(max_retries=retries))
        self.session.mount("https://", HTTPAdapter(max_retries=retries))

    def _check_api_key(self, api_key: str) -> None:
        """Warn about keys that should not be used from a client."""
        try:
            claims = jwt.decode(api_key, options={"verify_signature": False, "verify_exp": False})
        except jwt.InvalidTokenError:
            # New-style publishable keys are not JWTs
            self.logger.debug("Supabase key is not a JWT, skipping claim checks")
            return

        if claims.get("role") == "service_role":
            self.logger.warning(
                "Supabase key has the service_role claim; use the publishable key on clients"
            )
        exp = claims.get("exp")
        if isinstance(exp, (int, float)) and exp < time.time():
            self.logger.warning("Supabase key has expired")

    def resolve_wallet(self, user_id: str) -> Optional[str]:
        """
        Look up a user's wallet address.

        Returns:
            The wallet address, or None if the user has none

        Raises:
            DirectoryError: If the lookup fails
        """
        try:
            response = self.session.get(
                f"{self.url}/rest/v1/{self.table}",
                params={"id": f"eq.{user_id}", "select": "wallet_address"},
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            self.logger.error(f"Wallet lookup failed for user {user_id}: {e}")
            raise DirectoryError(f"Wallet lookup failed: {str(e)}")

        try:
            rows = response.json()
        except ValueError as e:
            raise DirectoryError(f"Invalid JSON response from directory: {str(e)}")

        if not isinstance(rows, list) or not rows:
            self.logger.debug(f"No user row for {user_id}")
            return None
        wallet = rows[0].get("wallet_address")
        return wallet or None

    def close(self) -> None:
        self.session.close()
