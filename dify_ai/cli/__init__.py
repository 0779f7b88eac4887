"""Command line interface for dify_ai."""
