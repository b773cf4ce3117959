"""Per-entity reaction systems: damage pipeline, wetness, scorched, steam and spores."""
