"""
Receipt Normalizer - Source Package

Prepares receipt photos attached to a transaction before they are handed
to the receipt-scanning action: every image is scaled to fit a maximum
dimension and re-encoded as a compact JPEG.

DESIGN PRINCIPLES:
1. One image in, one image out - or a typed failure
2. Fail early, fail visibly
3. No shared state between calls
4. The raster backend is swappable
"""

__version__ = "1.0.0"
