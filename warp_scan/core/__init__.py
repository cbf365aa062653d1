"""Shared infrastructure for WARP Endpoint Scan."""
