"""
Managed Content Field: inline-edited, moderation-aware entity references.
"""
__version__ = "0.1.0"
