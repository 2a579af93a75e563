"""HTTP operations surface."""
