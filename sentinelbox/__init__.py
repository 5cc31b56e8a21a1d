"""


Sentinel managed redis connections

- Connector: describes how to reach a redis server and holds the client once connected.
    RedisConnector connects directly to the host and port in its options.
- SentinelConnector: decorates a connector. Before the inner connector connects, the sentinels
  are asked for the current master address, and the inner connector's host, port and password
  are replaced with the master's.
- sentinels - kept in an EndpointRegistry, in the order they are tried. An unreachable sentinel
  is rotated to the back of the registry, and the next one asked.
- discovery - each sentinel is asked for the master address by name, and then whether that address
  is a live master. A sentinel that doesn't know the name is a configuration error, and fails at once.
- failover - a master that is down or unreachable is retried after a short wait until the failover
  reconnect timeout passes.


More rough notes:

- Outer connectors forward the events of inner connectors, so listeners on the SentinelConnector see
connection, rotation and rebinding events.

- Rotation is never undone. After a failure the next connect() continues from the sentinel that last answered.

"""
