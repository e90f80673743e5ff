"""Pinwatch community report service."""
