"""Marmoraria command line interface."""
