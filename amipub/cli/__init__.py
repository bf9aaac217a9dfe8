"""Command line interface for amipub."""
