#!/usr/bin/env python3
"""
Buy access to a marketplace listing with native SEI.
"""
import logging
import os

from sei_market_sdk import FailureKind, Listing, MarketClient, PurchasePhase, WalletSession


def main():
    """
    Demonstrate a listing purchase.

    This example shows how to:
    1. Initialize the client from SEI_MARKET_* environment variables
    2. Prepare a purchase and follow its state changes
    3. Confirm it and handle the outcome
    """
    logging.basicConfig(level=logging.INFO)

    private_key = os.environ.get("PRIVATE_KEY")
    if not private_key:
        print("ERROR: PRIVATE_KEY environment variable is required")
        return

    client = MarketClient.from_env(priv_key=private_key)

    listing = Listing(
        id=os.environ.get("LISTING_ID", "listing-1"),
        research_id=os.environ.get("RESEARCH_ID", "research-1"),
        user_id=os.environ.get("SELLER_ID", "seller-1"),
        price_sei=os.environ.get("PRICE_SEI", "0.01"),
    )

    with client:
        print(f"Balance: {client.get_balance()} {client.network.symbol}")
        purchase = client.purchase(
            listing,
            WalletSession(client.wallet.address),
            on_change=lambda attempt: print(f"  -> {attempt.phase.value}"),
        )
        attempt = purchase.confirm()

        if attempt.phase == PurchasePhase.SUCCESS:
            print("Purchase complete!")
            print(f"Transaction: {attempt.explorer_url}")
        else:
            print(f"Purchase failed ({attempt.failure_kind.value}): {attempt.error}")
            if attempt.failure_kind == FailureKind.SUPPORT:
                print("Retrying settlement with the same transaction...")
                attempt = purchase.retry_settlement()
                print(f"Result: {attempt.phase.value}")


if __name__ == "__main__":
    main()
