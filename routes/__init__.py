"""
API routes for the simulation worker service.
"""
