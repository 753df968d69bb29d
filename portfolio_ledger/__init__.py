"""Portfolio ledger: derive holdings, cash and realized PnL from a trading log."""
