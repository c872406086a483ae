"""Game domain: rules, turn engine, state aggregation and reconciliation."""
