"""
Ledger app: per-asset balances, fee splits and recorded payout intents.

Components:
    - models: Balance, FeeSplit, Withdrawal, SweepIntent
    - services: FeeLedger (atomic fee split credit, withdrawal requests)
    - sweeps: periodic hot-address sweep intent recording

Related apps:
    - invoices: credits each detected payment exactly once
    - merchants: fee percentage resolution
    - chains: balance lookups for sweeps

Usage:
    from ledger.services import fee_ledger

    split = fee_ledger.credit(merchant.id, "btc", Decimal("0.01"),
                              idempotency_key=f"payment:{payment.id}")
"""
