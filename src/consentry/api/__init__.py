"""
Consentry HTTP API layer.
"""
