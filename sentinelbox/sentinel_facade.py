"""
Assembles sentinel managed connectors from configuration.

    connector = build_sentinel_connector(SentinelConfig(master_name='mymaster',
                                                        sentinels=['10.0.0.1:26379', '10.0.0.2:26379'],
                                                        failover_reconnect_timeout=5))
    connector.connect()
    connector.execute('SET', 'key', 'value')
"""
import logging
import sys
import time

from sentinelbox.config.config import SentinelConfig, load_sentinel_config
from sentinelbox.connector.base import ConnectorError
from sentinelbox.connector.redisconn import RedisConnector
from sentinelbox.sentinel.binder import MasterReboundEvent, SentinelConnector
from sentinelbox.sentinel.endpoints import SentinelRotatedEvent

logger = logging.getLogger(__name__)


def build_sentinel_connector(config: SentinelConfig, connection_factory=None, log=logger,
                             **redis_options) -> SentinelConnector:
    """
    Creates a connector to the master described by the config.
    :param config: the sentinel settings. When the master name or sentinels are missing, the
        connector connects directly to the host and port in redis_options.
    :param connection_factory: optionally creates sentinel clients, given an Endpoint.
    :param redis_options: keyword arguments for the redis client used to connect to the master.
    """
    return SentinelConnector(RedisConnector(**redis_options), config, connection_factory=connection_factory, log=log)


def build_from_options(options, log=logger) -> SentinelConnector:
    """
    Creates a connector from a single dictionary of options, the sentinel settings mixed in with the
    redis client options. The dictionary is not modified.
    """
    options = dict(options)
    config = SentinelConfig.from_options(options)
    return build_sentinel_connector(config, log=log, **options)


def log_sentinel_events(event):
    if isinstance(event, MasterReboundEvent):
        logger.info("master moved to %s" % (event.address,))
    elif isinstance(event, SentinelRotatedEvent):
        logger.info("now using sentinel %s" % (event.endpoint,))


def monitor(config_file, period=1.0):
    """ A helper function that resolves the master periodically, for manual testing. """
    logger.setLevel(logging.INFO)
    logger.addHandler(logging.StreamHandler())
    connector = build_sentinel_connector(load_sentinel_config(config_file))
    connector.events += log_sentinel_events
    try:
        while True:
            try:
                resolved = connector.resolve_and_rebind()
                logger.info("master %s is at %s" % (connector.master.name, resolved.address))
            except ConnectorError as e:
                logger.warning("unable to resolve master: %s" % e)
            time.sleep(period)
    finally:
        connector.close()


if __name__ == '__main__':
    monitor(sys.argv[1])
