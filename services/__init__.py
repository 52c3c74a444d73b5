"""
Deployable services
"""
