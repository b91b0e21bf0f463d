#!/usr/bin/env python3
"""
Buy platform credits with native SEI.
"""
import os
import sys

from sei_market_sdk import MarketClient, PurchasePhase, WalletSession


def main():
    private_key = os.environ.get("PRIVATE_KEY")
    if not private_key:
        print("ERROR: PRIVATE_KEY environment variable is required")
        return

    client = MarketClient.from_env(priv_key=private_key)
    packages = client.credit_packages()

    print(f"Credit packages on {client.network.chain_name}:")
    for i, pkg in enumerate(packages):
        bonus = f" (+{pkg.bonus} bonus)" if pkg.bonus else ""
        popular = " *popular*" if pkg.popular else ""
        print(f"  [{i}] {pkg.credits} credits{bonus} for {pkg.price_str} {client.network.symbol}{popular}")

    # Package index, or "custom:<credits>"
    choice = sys.argv[1] if len(sys.argv) > 1 else "0"
    session = WalletSession(client.wallet.address)

    with client:
        if choice.startswith("custom:"):
            purchase = client.buy_credits(session, credits=int(choice.split(":", 1)[1]))
        else:
            purchase = client.buy_credits(session, package=packages[int(choice)])

        print(f"Paying {purchase.attempt.amount} {client.network.symbol}...")
        attempt = purchase.confirm()

        if attempt.phase == PurchasePhase.SUCCESS:
            data = attempt.ack.data or {}
            print(f"Credits added: {data.get('creditsAdded')}, new balance: {data.get('newBalance')}")
            print(f"Transaction: {attempt.explorer_url}")
        else:
            print(f"Credit purchase failed: {attempt.error}")


if __name__ == "__main__":
    main()
