"""Adaptive playlist engine packages."""
