"""Payments module."""
