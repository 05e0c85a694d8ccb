"""Gradient lookup tables, compositing and the render pipeline."""
