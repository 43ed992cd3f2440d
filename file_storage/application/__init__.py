"""Application layer: storage facade, path building, and variant processing."""
