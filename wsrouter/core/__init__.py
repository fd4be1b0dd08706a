"""Routing core: envelope codec, subscription registry, coordinator."""
