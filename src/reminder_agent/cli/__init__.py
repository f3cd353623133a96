"""Command-line entrypoint, composition root and console commands."""
