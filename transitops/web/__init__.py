"""HTTP surface for transitops."""
