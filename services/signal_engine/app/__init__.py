"""HTTP surface of the signal engine."""
