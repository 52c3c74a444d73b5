"""
Core module: exceptions shared by the service and the client
"""
