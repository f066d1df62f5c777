"""HTTP surface: the Partner API webhook receiver."""
