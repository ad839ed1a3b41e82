"""Normalisation, palettes and image export."""
