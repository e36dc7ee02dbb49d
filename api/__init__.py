"""
Reference persistence service for Book Studio.
"""
