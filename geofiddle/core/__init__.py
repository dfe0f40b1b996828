"""Core infrastructure shared by every layer.

- config: Environment-driven converter configuration
- constants: Format names, coordinate bounds, codec constants
- exceptions: Custom exception hierarchy
"""
