import unittest
from unittest.mock import Mock

import redis
from hamcrest import assert_that, is_, calling, raises, contains_exactly, empty, instance_of, has_entries

from sentinelbox.config.config import SentinelConfig
from sentinelbox.connector.base import ConnectorError, ConnectorConnectedEvent
from sentinelbox.connector.redisconn import Endpoint, RedisConnector
from sentinelbox.sentinel.binder import ConnectionBinder, MasterReboundEvent, SentinelConnector, \
    is_sentinel_managed
from sentinelbox.sentinel.endpoints import SentinelRotatedEvent
from sentinelbox.sentinel.errors import ConfigurationError, DiscoveryTimeoutError, MasterUnavailableError, \
    UnreachableError
from sentinelbox.sentinel.failover import FailoverState
from sentinelbox.sentinel.resolver import MasterSpec, ResolvedMaster


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def live_sentinel(host='10.0.0.5', port='6380', down_state=('0', 'f00d')):
    client = Mock()

    def reply(*command):
        if command[1] == 'get-master-addr-by-name':
            return [host, port]
        return list(down_state)

    client.execute_command.side_effect = reply
    return client


def refusing_sentinel():
    client = Mock()
    client.execute_command.side_effect = redis.exceptions.ConnectionError("Connection refused")
    return client


class IsSentinelManagedTest(unittest.TestCase):
    def test_requires_name_and_endpoints(self):
        assert_that(is_sentinel_managed(MasterSpec("mymaster"), ["a:1"]), is_(True))
        assert_that(is_sentinel_managed(MasterSpec(None), ["a:1"]), is_(False))
        assert_that(is_sentinel_managed(MasterSpec(""), ["a:1"]), is_(False))
        assert_that(is_sentinel_managed(MasterSpec("mymaster"), []), is_(False))


class ConnectionBinderTest(unittest.TestCase):

    def test_rebind(self):
        connector = RedisConnector("localhost", 6379)
        listener = Mock()
        sut = ConnectionBinder()
        sut.events += listener
        resolved = ResolvedMaster(Endpoint("10.0.0.5", 6380), True)
        assert_that(sut.rebind(connector, resolved, "secret"), is_(True))
        assert_that(connector.options, has_entries(host="10.0.0.5", port=6380, password="secret"))
        event = listener.call_args[0][0]
        assert_that(event, is_(instance_of(MasterReboundEvent)))
        assert_that(event.connector, is_(connector))
        assert_that(event.address, is_(Endpoint("10.0.0.5", 6380)))

    def test_rebind_is_idempotent(self):
        once = RedisConnector("localhost", 6379, socket_timeout=1)
        twice = RedisConnector("localhost", 6379, socket_timeout=1)
        listener = Mock()
        sut = ConnectionBinder()
        sut.events += listener
        resolved = ResolvedMaster(Endpoint("10.0.0.5", 6380), True)
        sut.rebind(once, resolved, "secret")
        sut.rebind(twice, resolved, "secret")
        assert_that(sut.rebind(twice, resolved, "secret"), is_(False))
        assert_that(twice.options, is_(once.options))
        assert_that(listener.call_count, is_(2))

    def test_rebind_does_not_disconnect(self):
        connector = Mock()
        ConnectionBinder().rebind(connector, ResolvedMaster(Endpoint("h", 1), True))
        connector.configure.assert_called_once_with(host="h", port=1, password=None)
        connector.disconnect.assert_not_called()


class SentinelConnectorTest(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.client_factory = Mock()

    def build(self, clients, **settings):
        settings.setdefault('master_name', 'mymaster')
        config = SentinelConfig(sentinels=list(clients.keys()), **settings)
        delegate = RedisConnector("localhost", 6379, client_factory=self.client_factory)
        return SentinelConnector(delegate, config, connection_factory=lambda endpoint: clients[str(endpoint)],
                                 current_time=self.clock, sleep=self.clock.sleep)

    def test_unmanaged_connects_directly(self):
        delegate = Mock()
        sut = SentinelConnector(delegate, SentinelConfig(sentinels=["a:1"]))
        assert_that(sut.sentinel_managed, is_(False))
        assert_that(sut.registry, is_(None))
        sut.connect()
        delegate.connect.assert_called_once()
        delegate.configure.assert_not_called()

    def test_unmanaged_cannot_resolve(self):
        sut = SentinelConnector(Mock(), SentinelConfig(master_name="mymaster"))
        assert_that(calling(sut.resolve_and_rebind), raises(ConnectorError))

    def test_connect_to_live_master(self):
        sut = self.build({"a:1": live_sentinel()}, master_password="secret", failover_reconnect_timeout=5)
        sut.connect()
        assert_that(sut.connected, is_(True))
        assert_that(sut.endpoint, is_(Endpoint("10.0.0.5", 6380)))
        self.client_factory.assert_called_once_with(host="10.0.0.5", port=6380, password="secret", socket_timeout=5,
                                                    socket_connect_timeout=5)
        assert_that(sut.controller.retry_state.attempt_count, is_(1))

    def test_end_to_end_rotation(self):
        clients = {"a:1": refusing_sentinel(), "b:2": live_sentinel(), "c:3": live_sentinel('10.0.0.9')}
        sut = self.build(clients, failover_reconnect_timeout=5)
        listener = Mock()
        sut.events += listener
        sut.connect()
        assert_that(sut.registry.endpoints, contains_exactly(Endpoint('b', 2), Endpoint('c', 3), Endpoint('a', 1)))
        assert_that(sut.delegate.endpoint, is_(Endpoint("10.0.0.5", 6380)))
        events = [c[0][0] for c in listener.call_args_list]
        assert_that([type(e) for e in events], is_([SentinelRotatedEvent, MasterReboundEvent,
                                                    ConnectorConnectedEvent]))

    def test_connect_when_connected(self):
        sentinel = live_sentinel()
        sut = self.build({"a:1": sentinel}, failover_reconnect_timeout=5)
        sut.connect()
        sut.connect()
        assert_that(sentinel.execute_command.call_count, is_(2))

    def test_unreachable_master_is_rediscovered(self):
        self.client_factory.return_value.ping.side_effect = [redis.exceptions.ConnectionError("refused"), True]
        sentinel = live_sentinel()
        sut = self.build({"a:1": sentinel}, failover_reconnect_timeout=5, failover_reconnect_wait=0.5)
        sut.connect()
        assert_that(sut.connected, is_(True))
        assert_that(self.clock.sleeps, is_([0.5]))
        assert_that(sentinel.execute_command.call_count, is_(4))

    def test_unreachable_master_after_deadline(self):
        self.client_factory.return_value.ping.side_effect = redis.exceptions.ConnectionError("refused")
        sut = self.build({"a:1": live_sentinel()}, failover_reconnect_timeout=1, failover_reconnect_wait=0.5)
        assert_that(calling(sut.connect), raises(UnreachableError, "Unable to connect to master mymaster"))
        assert_that(sut.connected, is_(False))

    def test_master_down(self):
        sut = self.build({"a:1": live_sentinel(down_state=('1', 'f00d'))}, failover_reconnect_timeout=1,
                         failover_reconnect_wait=0.25)
        assert_that(calling(sut.connect), raises(MasterUnavailableError))
        assert_that(self.clock.now, is_(1.25))
        self.client_factory.assert_not_called()

    def test_configuration_error(self):
        sentinel = Mock()
        sentinel.execute_command.return_value = []
        sut = self.build({"a:1": sentinel}, failover_reconnect_timeout=100)
        assert_that(calling(sut.connect), raises(ConfigurationError))
        assert_that(self.clock.sleeps, is_(empty()))
        self.client_factory.assert_not_called()

    def test_resolve_and_rebind(self):
        sut = self.build({"a:1": live_sentinel()}, failover_reconnect_timeout=5)
        resolved = sut.resolve_and_rebind()
        assert_that(resolved.address, is_(Endpoint("10.0.0.5", 6380)))
        assert_that(sut.delegate.options, has_entries(host="10.0.0.5", port=6380))
        assert_that(sut.connected, is_(False))

    def test_rebinding_is_seen_through_other_references(self):
        sut = self.build({"a:1": live_sentinel()}, failover_reconnect_timeout=5)
        delegate = sut.delegate
        options = delegate.options
        sut.resolve_and_rebind()
        assert_that(options, has_entries(host="10.0.0.5", port=6380))
        assert_that(delegate.endpoint, is_(Endpoint("10.0.0.5", 6380)))

    def test_close(self):
        sentinel = live_sentinel()
        sut = self.build({"a:1": sentinel}, failover_reconnect_timeout=5)
        sut.connect()
        client = self.client_factory.return_value
        sut.close()
        client.close.assert_called_once()
        sentinel.close.assert_called_once()
        assert_that(sut.connected, is_(False))

    def test_reconnect_timeout_bounds_the_master_connection(self):
        sut = self.build({"a:1": live_sentinel()}, failover_reconnect_timeout=0.5)
        assert_that(sut.delegate.options, has_entries(socket_timeout=0.5, socket_connect_timeout=0.5))

    def test_given_master_socket_timeout_is_kept(self):
        delegate = RedisConnector("localhost", 6379, client_factory=self.client_factory, socket_timeout=2)
        config = SentinelConfig(master_name="mymaster", sentinels=["a:1"], failover_reconnect_timeout=0.5)
        SentinelConnector(delegate, config, connection_factory=lambda endpoint: live_sentinel())
        assert_that(delegate.options, has_entries(socket_timeout=2, socket_connect_timeout=0.5))

    def test_without_reconnect_timeout_master_options_are_unchanged(self):
        sut = self.build({"a:1": live_sentinel()})
        assert_that(sut.delegate.options, is_({"host": "localhost", "port": 6379, "password": None}))

    def test_silent_master_times_out(self):
        self.client_factory.return_value.ping.side_effect = redis.exceptions.TimeoutError("Timeout reading from socket")
        sut = self.build({"a:1": live_sentinel()}, failover_reconnect_timeout=0.5)
        assert_that(calling(sut.connect), raises(DiscoveryTimeoutError, "Timeout connecting to master mymaster"))
        assert_that(sut.controller.state, is_(FailoverState.TIMED_OUT))
        assert_that(self.clock.sleeps, is_(empty()))
        assert_that(sut.connected, is_(False))

    def test_sentinel_error_reply_moves_to_next_sentinel(self):
        rejecting = Mock()
        rejecting.execute_command.side_effect = [['10.0.0.9', '6380'],
                                                 redis.exceptions.ResponseError("wrong number of arguments")]
        sut = self.build({"a:1": rejecting, "b:2": live_sentinel()}, failover_reconnect_timeout=5)
        sut.connect()
        assert_that(sut.connected, is_(True))
        assert_that(sut.delegate.endpoint, is_(Endpoint("10.0.0.5", 6380)))
        assert_that(sut.registry.current(), is_(Endpoint('b', 2)))
        assert_that(sut.controller.state, is_(FailoverState.RESOLVED))
