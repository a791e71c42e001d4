"""
Plugins Package - bridge services, handlers and shared helpers
"""
