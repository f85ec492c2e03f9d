"""Domain layer: storage model, ports and the reconciliation core."""
