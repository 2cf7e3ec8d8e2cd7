"""Cross-cutting infrastructure: settings, logging, request context and identity."""
