"""Infrastructure layer: HTTP transport, authentication and data loading."""
