"""Configurable-product selection, validation and pricing engine."""
