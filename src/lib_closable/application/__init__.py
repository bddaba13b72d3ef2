"""Application layer: ports consumed by the closable core."""
