"""Polaris command-line interface."""
