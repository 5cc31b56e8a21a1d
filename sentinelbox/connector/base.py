import logging
from abc import abstractmethod

from sentinelbox.support.events import EventSource

logger = logging.getLogger(__name__)


class ConnectorError(Exception):
    """ Indicates an error condition with a connection. """


class ConnectionNotConnectedError(ConnectorError):
    """ Indicates a connection is in the disconnected state when a connection is required. """


class ConnectionTimeoutError(ConnectorError):
    """ Indicates the server did not reply within the socket timeout. """


class ConnectorEvent:
    """ base class for connector events. """
    def __init__(self, connector):
        self.connector = connector

    def __eq__(self, other):
        return type(other) is type(self) and other.connector is self.connector

    __hash__ = None


class ConnectorConnectedEvent(ConnectorEvent):
    """ The connector was connected. """


class ConnectorDisconnectedEvent(ConnectorEvent):
    """ The connector was disconnected. """


class Connector():
    """ A connector describes an endpoint to which a client connection can be established. """

    def __init__(self):
        self.events = EventSource()

    @property
    @abstractmethod
    def endpoint(self):
        """ the endpoint that this connector reaches out to """
        raise NotImplementedError

    @property
    @abstractmethod
    def connected(self) -> bool:
        """
        Determines if this connector is connected to its underlying resource.
        :return: True if this connector is connected to it's underlying resource. False otherwise.
        :rtype: bool
        """
        raise NotImplementedError

    @property
    @abstractmethod
    def client(self):
        """
        Retrieves the client for this connection.
        If the connection is not connected, raises ConnectionNotConnectedError
        """
        raise ConnectionNotConnectedError

    @abstractmethod
    def configure(self, **options) -> bool:
        """
        Changes the options used for the next connection, in place.
        :return: True if any option changed value.
        """
        raise NotImplementedError

    @abstractmethod
    def configure_defaults(self, **options):
        """ Sets the options that have no value yet, leaving options already given unchanged. """
        raise NotImplementedError

    @abstractmethod
    def connect(self):
        """
        Connects this connector to the underlying resource.
        If the connection is already connected, this method returns silently.
        Raises ConnectorError if the connection cannot be established.
        """
        raise NotImplementedError

    @abstractmethod
    def disconnect(self):
        raise NotImplementedError

    @abstractmethod
    def execute(self, *command):
        """ Runs a command on the connected client and returns the reply. """
        raise NotImplementedError


class AbstractConnector(Connector):
    """ Manages the connection cycle to an endpoint."""

    def __init__(self):
        super().__init__()
        self._client = None

    @property
    def connected(self):
        return self._client is not None and self._connected()

    def connect(self):
        if self.connected:
            return

        try:
            self._client = self._connect()
            self.events.fire(ConnectorConnectedEvent(self))
        finally:
            if not self._client:
                self.disconnect()

    def disconnect(self):
        if self._client is None:
            return
        client = self._client
        self._client = None
        self._disconnect(client)
        self.events.fire(ConnectorDisconnectedEvent(self))

    def execute(self, *command):
        return self.client.execute_command(*command)

    @abstractmethod
    def _connect(self):
        """ Template method for subclasses to perform the connection and return the client.
            If connection is not possible, a ConnectorError should be raised.
        """
        raise NotImplementedError

    @abstractmethod
    def _disconnect(self, client):
        """ releases the client. Called after the connector has forgotten the client. """
        raise NotImplementedError

    def _connected(self):
        return self._client is not None

    @property
    def client(self):
        """
        Retrieves the client for this connection.
        raises ConnectionNotConnectedError if not connected
        """
        self.check_connected()
        return self._client

    def check_connected(self):
        if not self.connected:
            raise ConnectionNotConnectedError


class DelegateConnector(Connector):
    """
    Delegates methods to the delegate connector, unless they are overridden
    """
    def __init__(self, delegate):
        super().__init__()
        self.delegate = delegate

    @property
    def client(self):
        return self.delegate.client

    @property
    def endpoint(self):
        return self.delegate.endpoint

    @property
    def connected(self) -> bool:
        return self.delegate.connected

    def configure(self, **options):
        return self.delegate.configure(**options)

    def configure_defaults(self, **options):
        return self.delegate.configure_defaults(**options)

    def connect(self):
        return self.delegate.connect()

    def disconnect(self):
        return self.delegate.disconnect()

    def execute(self, *command):
        return self.delegate.execute(*command)


class ConnectorContextManager:
    """
    Opens the connector on entry, and closes it on exit.
    """

    def __init__(self, connector: Connector):
        self.connector = connector

    def __enter__(self):
        try:
            self.connector.connect()
            logger.debug("Connected to %s" % (self.connector.endpoint,))
        except ConnectorError as e:
            logger.error("Unable to connect to %s - %s" % (self.connector.endpoint, e))
            raise
        return self.connector

    def __exit__(self, exc_type, exc_value, traceback):
        logger.debug("Disconnected from %s" % (self.connector.endpoint,))
        self.connector.disconnect()
        return False
