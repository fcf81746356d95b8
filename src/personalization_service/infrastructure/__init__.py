"""Storage and catalog adapters."""
