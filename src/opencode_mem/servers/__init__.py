"""HTTP surface of the memory worker."""
