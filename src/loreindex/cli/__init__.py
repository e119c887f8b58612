"""
Command-line interface for loreindex.
"""
