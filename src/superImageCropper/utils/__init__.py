"""Shared helpers for loading images, parsing colours and console logging."""
