"""
Test suite for bigmul.
"""
