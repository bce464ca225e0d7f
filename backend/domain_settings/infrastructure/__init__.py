"""Infrastructure Layer — file persistence, schema loading, directory HTTP client, logging."""
