from sentinelbox.connector.base import ConnectorError


class SentinelError(ConnectorError):
    """ Base class for failures to resolve a master through the sentinels. """


class ConfigurationError(SentinelError):
    """ A sentinel reported that no master is registered under the configured name. """


class UnreachableError(SentinelError):
    """ A sentinel, or the resolved master, could not be connected to. """


class MasterUnavailableError(UnreachableError):
    """ The sentinel reported the master address, but not as a live master. """


class DiscoveryTimeoutError(SentinelError, TimeoutError):
    """ Discovering the master took longer than the failover reconnect timeout. """
