"""
Auxiliary protocol clients: pricing, token balances, DEX swap pairs, Aave,
Snapshot, CyberConnect and risk lists (Greysafe, Chainalysis, HAPI).

Each client raises NoDataError for a documented empty answer and
UpstreamUnavailableError for anything unexpected.
"""
