"""Operational command line utilities."""
