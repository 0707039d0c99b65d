"""
Image configuration modules.
"""
