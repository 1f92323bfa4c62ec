"""Contract rule plugins; see registry.get_rules() for the fixed run order."""
