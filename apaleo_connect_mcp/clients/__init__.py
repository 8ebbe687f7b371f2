"""HTTP clients: authenticated request driver and resource gateway."""
