"""
Resolves the address of a redis master through a set of sentinels, and keeps a connector bound to it.

- EndpointRegistry: the sentinels in the order they are tried, and a client for each.
- MasterResolver: asks one sentinel for the master address, and whether that master is live.
- FailoverController: tries the sentinels in turn, rotating past unreachable ones, and retries
  until a master is found or the failover reconnect timeout has passed.
- ConnectionBinder: points a connector at the resolved master.
- SentinelConnector: decorates an unmanaged connector so that each connect() first resolves the master.
"""
