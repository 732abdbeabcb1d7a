"""Command-line interface for inspecting sqlite-kv namespaces."""
