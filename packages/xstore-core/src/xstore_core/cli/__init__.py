"""Command-line interface for the XStore operator."""
