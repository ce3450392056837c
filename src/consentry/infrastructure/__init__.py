"""
Consentry Infrastructure Layer

Database stores, metrics and error tracking.
Stores implement abstract interfaces so services can be tested with fakes.
"""
