"""Destination kinds, validation and typed models."""
