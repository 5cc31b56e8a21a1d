import logging

import redis

from sentinelbox.connector.redisconn import Endpoint
from sentinelbox.sentinel.errors import UnreachableError
from sentinelbox.support.events import EventSource

logger = logging.getLogger(__name__)

default_sentinel_port = 26379

default_sentinel_timeout = 5.0


class SentinelRotatedEvent:
    """ The registry moved on to the next sentinel. """
    def __init__(self, registry, endpoint):
        self.registry = registry
        self.endpoint = endpoint


def sentinel_client_factory(socket_timeout=None):
    """
    Creates a factory for redis-py clients that talk to a sentinel.
    :param socket_timeout: The connect and read timeout applied to each sentinel call, in seconds.
        When None, default_sentinel_timeout is used so that a silent sentinel cannot block forever.
    """
    timeout = socket_timeout or default_sentinel_timeout

    def create_client(endpoint: Endpoint):
        return redis.Redis(host=endpoint.host, port=endpoint.port,
                           socket_timeout=timeout, socket_connect_timeout=timeout,
                           decode_responses=True)
    return create_client


class EndpointRegistry:
    """
    The sentinels for a master, in the order they are tried. The first endpoint is the one currently used.
    Rotating moves the first endpoint to the back, so the registry never loses or reorders endpoints
    other than by rotation.

    A client is created for each sentinel the first time it's needed, and reused from then on.
    """

    def __init__(self, endpoints, connection_factory=None, log=logger):
        """
        :param endpoints: The sentinel endpoints. Each is parsed with Endpoint.parse, so "host:port" strings
            and host/port mappings can be given.
        :param connection_factory: A callable that creates a sentinel client given an Endpoint.
        """
        self._endpoints = [Endpoint.parse(e, default_sentinel_port) for e in endpoints]
        if not self._endpoints:
            raise ValueError("at least one sentinel endpoint is required")
        self._connection_factory = connection_factory or sentinel_client_factory()
        self._connections = dict()
        self.events = EventSource()
        self.logger = log

    def __len__(self):
        return len(self._endpoints)

    def __iter__(self):
        return iter(self.endpoints)

    @property
    def endpoints(self):
        return tuple(self._endpoints)

    def current(self) -> Endpoint:
        return self._endpoints[0]

    def rotate(self) -> Endpoint:
        """ moves the current sentinel to the back and returns the one that replaces it. """
        self._endpoints.append(self._endpoints.pop(0))
        endpoint = self.current()
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug("Trying next sentinel: %s" % (endpoint,))
        self.events.fire(SentinelRotatedEvent(self, endpoint))
        return endpoint

    def connection_for(self, endpoint: Endpoint):
        """
        Retrieves the client for the given sentinel, creating it if this is the first request.
        Raises UnreachableError when the client cannot be created.
        """
        connection = self._connections.get(endpoint)
        if connection is None:
            try:
                connection = self._connection_factory(endpoint)
            except (redis.exceptions.ConnectionError, OSError) as e:
                raise UnreachableError("Unable to connect to sentinel %s" % (endpoint,)) from e
            self._connections[endpoint] = connection
        return connection

    def close(self):
        """ closes the clients created so far. They are recreated when next needed. """
        connections = self._connections
        self._connections = dict()
        for endpoint, connection in connections.items():
            try:
                connection.close()
            except (redis.exceptions.RedisError, OSError) as e:
                self.logger.warning("error closing sentinel client %s: %s" % (endpoint, e))
