"""Card store adapters."""
