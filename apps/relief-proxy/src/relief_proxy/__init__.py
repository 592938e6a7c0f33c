"""Read-through proxy for the emergency and relief-action feeds."""
