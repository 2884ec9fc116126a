"""
fractalview
===========
Interactive viewer for a seeded fractal midpoint-displacement point cloud.
"""
__version__ = "0.1.0"
