import logging
from collections import namedtuple

import redis

from sentinelbox.connector.redisconn import Endpoint
from sentinelbox.sentinel.errors import ConfigurationError, DiscoveryTimeoutError, MasterUnavailableError, \
    UnreachableError

logger = logging.getLogger(__name__)


MasterSpec = namedtuple('MasterSpec', ['name', 'password'])
MasterSpec.__new__.__defaults__ = (None,)
MasterSpec.__doc__ = """ The name the sentinels know the master by, and the password used to connect to it. """

ResolvedMaster = namedtuple('ResolvedMaster', ['address', 'confirmed_live'])
ResolvedMaster.__doc__ = """ The master address reported by a sentinel, and whether it was confirmed live. """


def _text(value):
    return value.decode('utf-8') if isinstance(value, bytes) else value


class MasterResolver:
    """
    Performs one discovery round against a single sentinel:

    1. SENTINEL get-master-addr-by-name <name> returns the master's host and port, or nothing when
       the sentinel has no master by that name.
    2. SENTINEL is-master-down-by-addr <host> <port> returns the down flag and run id. A down flag of "1"
       or a run id of "?" means the address is not a live master.
    """

    def __init__(self, master_name, log=logger):
        self.master_name = master_name
        self.logger = log

    def resolve(self, sentinel) -> ResolvedMaster:
        """
        :param sentinel: a redis client connected to a sentinel
        :raises ConfigurationError: the sentinel has no master registered under the name
        :raises UnreachableError: the sentinel could not be reached, or replied with an error or a malformed reply
        :raises MasterUnavailableError: the master is not currently live
        :raises DiscoveryTimeoutError: the sentinel did not reply in time
        """
        try:
            address = self.parse_address(
                sentinel.execute_command('SENTINEL', 'get-master-addr-by-name', self.master_name))
            if address is None:
                raise ConfigurationError("No master named: %s" % self.master_name)
            down_state = sentinel.execute_command('SENTINEL', 'is-master-down-by-addr', address.host, address.port)
        except (redis.exceptions.TimeoutError, TimeoutError) as e:
            raise DiscoveryTimeoutError("Timeout connecting to sentinels") from e
        except (redis.exceptions.ConnectionError, OSError) as e:
            raise UnreachableError("Unable to reach sentinel: %s" % e) from e
        except (redis.exceptions.ResponseError, ValueError) as e:
            raise UnreachableError("Unexpected reply from sentinel: %s" % e) from e

        if self.is_down(down_state):
            raise MasterUnavailableError("The master: %s is currently not available." % self.master_name)
        self.logger.debug("sentinel reports master %s at %s" % (self.master_name, address))
        return ResolvedMaster(address, True)

    @staticmethod
    def parse_address(reply):
        """
        >>> MasterResolver.parse_address([b'10.0.0.5', b'6380'])
        Endpoint(host='10.0.0.5', port=6380)
        >>> MasterResolver.parse_address([]) is None
        True

        Raises ValueError when the reply is not a host and port.
        """
        if not reply:
            return None
        if len(reply) != 2:
            raise ValueError("malformed master address: %r" % (reply,))
        host, port = reply
        if host is None and port is None:
            return None
        if host is None or port is None:
            raise ValueError("malformed master address: %r" % (reply,))
        return Endpoint(_text(host), int(_text(port)))

    @staticmethod
    def is_down(reply):
        if not reply:
            return True
        down_flag = _text(reply[0])
        run_id = _text(reply[1]) if len(reply) > 1 else None
        return str(down_flag) == "1" or run_id == "?"
