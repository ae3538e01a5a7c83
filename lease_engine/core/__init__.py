"""Lease accounting calculations."""
