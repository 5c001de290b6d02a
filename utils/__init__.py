"""
Utility helpers: validation, performance instrumentation and response formatting.
"""
