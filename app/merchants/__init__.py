"""
Merchants app: merchants, their stores and platform fee configuration.

Models:
    - Merchant: webhook target/secret, status, fee override
    - Store: per-store confirmation policy and deposit addresses
    - PlatformSettings: global fee percentage (singleton row)

Services (import from merchants.services):
    - MerchantService: webhook settings, fees and suspension
    - fee_stats / system_stats: read-only admin statistics

Related apps:
    - invoices: invoices belong to a merchant and store
    - ledger: balances are owned by merchants
    - webhooks: deliveries are signed with the merchant secret
"""
