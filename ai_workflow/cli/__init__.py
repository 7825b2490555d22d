"""Command-line interface for ai-workflow."""
