"""Packaged WHO growth reference tables."""
