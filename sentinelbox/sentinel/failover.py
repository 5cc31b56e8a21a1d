import logging
import time
from enum import Enum

from sentinelbox.sentinel.errors import ConfigurationError, DiscoveryTimeoutError, MasterUnavailableError, \
    UnreachableError
from sentinelbox.support.retry_strategy import RetryState

logger = logging.getLogger(__name__)


class FailoverState(Enum):
    IDLE = 'idle'
    DISCOVERING = 'discovering'
    RESOLVED = 'resolved'
    EXHAUSTED = 'exhausted'
    TIMED_OUT = 'timed_out'
    CONFIG_ERROR = 'config_error'


class FailoverController:
    """
    Drives the master resolver across the sentinels until a master is found.

    There are two bounds on a failover cycle. Within a pass, unreachable sentinels are skipped immediately
    by rotating the registry, up to master_discovery_attempts tries per sentinel. Across passes, a master that
    cannot be reached or is reported down is retried after failover_reconnect_wait seconds, until
    failover_reconnect_timeout seconds have passed since the cycle started.

    :param registry: the EndpointRegistry of sentinels.
    :param resolver: the MasterResolver for the master.
    :param config: a SentinelConfig providing the timeout, wait and attempt settings.
    :param current_time: a callable returning the current time in seconds.
    :param sleep: a callable that waits for the given number of seconds.
    """

    def __init__(self, registry, resolver, config, current_time=time.monotonic, sleep=time.sleep, log=logger):
        self.registry = registry
        self.resolver = resolver
        self.config = config
        self.current_time = current_time
        self.sleep = sleep
        self.logger = log
        self.state = FailoverState.IDLE
        self.retry_state = None

    @property
    def attempt_limit(self):
        return self.config.master_discovery_attempts * len(self.registry)

    def run(self, operation):
        """
        Runs a failover cycle. The operation is invoked once per pass, and its result returned on success.
        UnreachableError from the operation starts a new pass after a wait, unless the deadline has passed.
        ConfigurationError and DiscoveryTimeoutError are never retried. Any other error ends the cycle
        and leaves the controller idle.
        """
        config = self.config
        retry = self.retry_state = RetryState(config.failover_reconnect_timeout, config.failover_reconnect_wait,
                                              self.current_time())
        self.state = FailoverState.DISCOVERING
        try:
            while True:
                retry.begin_pass(self.current_time())
                try:
                    result = operation()
                except ConfigurationError:
                    self.state = FailoverState.CONFIG_ERROR
                    raise
                except DiscoveryTimeoutError:
                    self.state = FailoverState.TIMED_OUT
                    raise
                except UnreachableError as e:
                    wait = retry(self.current_time())
                    if wait < 0:
                        self.state = FailoverState.EXHAUSTED
                        raise
                    self.logger.info("%s - retrying in %ss" % (e, wait))
                    self.sleep(wait)
                    continue
                self.state = FailoverState.RESOLVED
                return result
        finally:
            if self.state is FailoverState.DISCOVERING:
                # an unexpected error ended the cycle
                self.state = FailoverState.IDLE

    def resolve(self):
        """ runs a failover cycle that discovers the master. """
        return self.run(self.discover)

    def discover(self):
        """
        Makes one discovery pass over the sentinels, returning the ResolvedMaster.
        Unreachable sentinels are rotated to the back of the registry and the next one tried, until
        the attempt limit is reached, which is reported as MasterUnavailableError.
        """
        retry = self.retry_state
        if retry is None or self.state is not FailoverState.DISCOVERING:
            # outside of run(), a pass gets its own retry state
            retry = self.retry_state = RetryState(self.config.failover_reconnect_timeout,
                                                  self.config.failover_reconnect_wait, self.current_time())
            retry.begin_pass(self.current_time())
        limit = self.attempt_limit
        while not retry.exhausted(limit):
            if retry.pass_expired(self.current_time()):
                raise DiscoveryTimeoutError("Timeout connecting to sentinels")
            retry.attempt()
            endpoint = self.registry.current()
            try:
                return self.resolver.resolve(self.registry.connection_for(endpoint))
            except MasterUnavailableError:
                raise
            except UnreachableError as e:
                self.logger.info("sentinel %s unreachable: %s" % (endpoint, e))
                self.registry.rotate()
        raise MasterUnavailableError("The master: %s is currently not available. No sentinel replied after %d attempts"
                                     % (self.resolver.master_name, retry.attempt_count))
