"""Bundled mission data for the demo game."""
