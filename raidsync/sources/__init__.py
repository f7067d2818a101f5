"""Remote and local data sources."""
