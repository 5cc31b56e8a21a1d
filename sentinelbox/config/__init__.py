"""
Configuration for sentinel managed connections: the SentinelConfig value object, built from client options
or loaded from a ConfigObj file validated against a schema.
"""
