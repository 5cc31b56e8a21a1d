import logging
from collections import namedtuple
from collections.abc import Mapping

import redis

from sentinelbox.connector.base import AbstractConnector, ConnectionTimeoutError, ConnectorError

logger = logging.getLogger(__name__)


class Endpoint(namedtuple('Endpoint', ['host', 'port'])):
    """
    Describes a TCP server endpoint by host and port.
    Endpoints are immutable, and equal when both host and port are equal.
    """
    __slots__ = ()

    def __str__(self):
        return "%s:%s" % (self.host, self.port)

    @classmethod
    def parse(cls, value, default_port=6379):
        """
        Builds an endpoint from a "host:port" or "host" string, a mapping with host and port keys,
        or a (host, port) pair.

        >>> Endpoint.parse("10.0.0.5:6380")
        Endpoint(host='10.0.0.5', port=6380)
        >>> Endpoint.parse({"host": "sentinel1"}, 26379)
        Endpoint(host='sentinel1', port=26379)
        """
        if isinstance(value, Endpoint):
            return value
        if isinstance(value, str):
            host, sep, port = value.strip().rpartition(':')
            if not sep:
                host, port = port, default_port
        elif isinstance(value, Mapping):
            host, port = value.get('host'), value.get('port', default_port)
        else:
            host, port = value
        if not host:
            raise ValueError("no host given for endpoint %r" % (value,))
        return cls(host.strip('[]'), int(port))


_missing = object()


class RedisConnector(AbstractConnector):
    """
    A connector that talks directly to a single redis server through a redis-py client.
    The host, port and password are kept in the options dictionary, which can be changed in place
    with configure(). The new options are used the next time the connector connects.
    """
    def __init__(self, host='localhost', port=6379, password=None, client_factory=redis.Redis, **client_options):
        """
        :param client_factory: A callable that creates the client from the connection options.
        :param client_options: Further keyword arguments passed to the client factory, such as socket_timeout.
        """
        super().__init__()
        self.options = dict(client_options, host=host, port=port, password=password)
        self._client_factory = client_factory

    @property
    def endpoint(self):
        return Endpoint(self.options['host'], self.options['port'])

    def configure(self, **options):
        changed = {k: v for k, v in options.items() if self.options.get(k, _missing) != v}
        self.options.update(changed)
        return bool(changed)

    def configure_defaults(self, **options):
        missing = {k: v for k, v in options.items() if self.options.get(k) is None}
        self.options.update(missing)
        return bool(missing)

    def _connect(self):
        client = self._client_factory(**self.options)
        try:
            client.ping()
        except (redis.exceptions.TimeoutError, TimeoutError) as e:
            logger.warning("timeout connecting to redis at %s: %s" % (self.endpoint, e))
            client.close()
            raise ConnectionTimeoutError("Timeout connecting to %s" % (self.endpoint,)) from e
        except (redis.exceptions.ConnectionError, OSError) as e:
            logger.warning("error connecting to redis at %s: %s" % (self.endpoint, e))
            client.close()
            raise ConnectorError("Error connecting to %s" % (self.endpoint,)) from e
        logger.info("connected to redis at %s" % (self.endpoint,))
        return client

    def _disconnect(self, client):
        client.close()
