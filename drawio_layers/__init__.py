"""
drawio-layers - extract, delete, merge and watermark layers of draw.io diagrams.
"""

__version__ = '0.3.0'
