"""Command line interface for menunotes."""
