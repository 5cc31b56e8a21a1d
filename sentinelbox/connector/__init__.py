"""
A connector describes how to reach a Redis server and holds the client once connected.
Connectors can be decorated: an outer connector delegates to an inner one, overriding some behaviors,
such as resolving the address to connect to before the inner connector connects.
"""
