"""
Utilities package for DYHE Delivery backend.
"""
