"""Configuration file handling."""
