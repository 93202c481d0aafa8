"""
feedgraph: compiles a visual price-feed graph into its configuration document.
"""

__version__ = "0.1.0"
