"""
editren - rename and delete directory entries from your text editor
"""

__version__ = "0.1.0"
