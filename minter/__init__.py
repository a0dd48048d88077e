"""
Solayer NFT deployment toolkit
"""

__version__ = "1.0.0"
