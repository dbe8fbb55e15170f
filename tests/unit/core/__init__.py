"""
Core modules for modulizer.
"""
