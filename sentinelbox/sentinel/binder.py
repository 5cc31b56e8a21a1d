import logging
import time

from sentinelbox.connector.base import ConnectionTimeoutError, Connector, ConnectorError, DelegateConnector
from sentinelbox.sentinel.endpoints import EndpointRegistry, sentinel_client_factory
from sentinelbox.sentinel.errors import DiscoveryTimeoutError, SentinelError, UnreachableError
from sentinelbox.sentinel.failover import FailoverController
from sentinelbox.sentinel.resolver import MasterResolver, MasterSpec, ResolvedMaster
from sentinelbox.support.events import EventSource

logger = logging.getLogger(__name__)


class MasterReboundEvent:
    """ The connector was pointed at a different master address. """
    def __init__(self, connector, address):
        self.connector = connector
        self.address = address


def is_sentinel_managed(master: MasterSpec, endpoints) -> bool:
    """ sentinels are used only when both a master name and at least one sentinel are configured. """
    return bool(master.name) and bool(endpoints)


class ConnectionBinder:
    """
    Applies a resolved master address and password to a connector, changing the connector's options in place.
    Draining commands in flight to the previous address is left to the caller.
    """

    def __init__(self, log=logger):
        self.events = EventSource()
        self.logger = log

    def rebind(self, connector: Connector, resolved: ResolvedMaster, password=None):
        """
        :return: True if the connector's options changed. Rebinding to the address already bound is a no-op.
        """
        address = resolved.address
        changed = connector.configure(host=address.host, port=address.port, password=password)
        if changed:
            self.logger.info("master is at %s" % (address,))
            self.events.fire(MasterReboundEvent(connector, address))
        return changed


class SentinelConnector(DelegateConnector):
    """
    Decorates an unmanaged connector so that connecting first asks the sentinels where the master is.

    Each connect() runs a failover cycle. A pass of the cycle discovers the master, binds the delegate to it
    and connects the delegate. A delegate that fails to connect is treated like an unreachable sentinel,
    so the master is rediscovered after the reconnect wait.

    When a failover reconnect timeout is configured, it also becomes the delegate's socket timeout unless
    one was given, so that connecting to a silent master cannot outlast the timeout.

    When no master name or no sentinels are configured, the delegate is used directly.
    Events from the sentinel registry and the binder are fired on this connector's events.
    """

    def __init__(self, delegate: Connector, config, connection_factory=None, current_time=time.monotonic,
                 sleep=time.sleep, log=logger):
        """
        :param delegate: The connector to the master, whose host, port and password are replaced.
        :param config: The SentinelConfig.
        :param connection_factory: Creates a sentinel client for an Endpoint. By default a redis client
            with the failover reconnect timeout, or default_sentinel_timeout, as its socket timeout.
        """
        super().__init__(delegate)
        self.config = config
        self.master = MasterSpec(config.master_name, config.master_password)
        self.sentinel_managed = is_sentinel_managed(self.master, config.sentinels)
        self.registry = self.controller = None
        self.binder = ConnectionBinder(log)
        self.binder.events.forward_to(self.events)
        delegate.events.forward_to(self.events)
        if self.sentinel_managed:
            timeout = config.failover_reconnect_timeout or None
            factory = connection_factory or sentinel_client_factory(timeout)
            if timeout:
                delegate.configure_defaults(socket_timeout=timeout, socket_connect_timeout=timeout)
            self.registry = EndpointRegistry(config.sentinels, factory, log)
            self.registry.events.forward_to(self.events)
            resolver = MasterResolver(self.master.name, log)
            self.controller = FailoverController(self.registry, resolver, config, current_time, sleep, log)

    def connect(self):
        if not self.sentinel_managed:
            return self.delegate.connect()
        if self.delegate.connected:
            return
        self.controller.run(self._discover_and_connect)

    def resolve_and_rebind(self) -> ResolvedMaster:
        """ finds the master and binds the delegate to it, without connecting. """
        if not self.sentinel_managed:
            raise ConnectorError("master name and sentinels are required to resolve the master")
        resolved = self.controller.resolve()
        self.binder.rebind(self.delegate, resolved, self.master.password)
        return resolved

    def _discover_and_connect(self):
        resolved = self.controller.discover()
        self.binder.rebind(self.delegate, resolved, self.master.password)
        try:
            self.delegate.connect()
        except SentinelError:
            raise
        except ConnectionTimeoutError as e:
            raise DiscoveryTimeoutError("Timeout connecting to master %s at %s" %
                                        (self.master.name, resolved.address)) from e
        except ConnectorError as e:
            raise UnreachableError("Unable to connect to master %s at %s" %
                                   (self.master.name, resolved.address)) from e
        return resolved

    def close(self):
        """ disconnects the delegate and closes the sentinel clients. """
        self.disconnect()
        if self.registry is not None:
            self.registry.close()
