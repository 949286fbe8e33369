"""
Chains app: blockchain data access with health-aware failover.

Components:
    - assets: asset codes, chain mapping, confirmation defaults
    - health: ProviderHealthRegistry (in-process backend health)
    - providers: QuickNode, NowNodes and GetBlock backends
    - pool: ChainProviderPool and the process singleton get_pool()

Related apps:
    - invoices: payment detection and confirmation counting
    - ledger: balance checks for sweep intents
    - rates: shares the CoinGecko source for price lookups

Usage:
    from chains.pool import get_pool

    transactions = get_pool().get_transactions("btc", address)
"""
