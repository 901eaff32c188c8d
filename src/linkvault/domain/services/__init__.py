"""
Domain services.

Contains the provider connector contract and its two flow variants.
"""
