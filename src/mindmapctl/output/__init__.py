"""Output layer — rich rendering for humans, JSON for machines."""
