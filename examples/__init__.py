"""Example DSLs built with inikio."""
