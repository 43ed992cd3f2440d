"""Infrastructure: storage drivers, adapter factories, registry, persistence."""
