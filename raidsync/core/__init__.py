"""Core infrastructure: configuration, errors, HTTP transport, local store."""
