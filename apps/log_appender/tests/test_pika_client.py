"""Tests for PikaBrokerClient."""

from __future__ import annotations

import ssl
from unittest.mock import MagicMock, patch

import pika
import pytest
from pika.exceptions import AMQPConnectionError, ChannelClosedByBroker, UnroutableError

from apps.log_appender.application.common.dto.options import (
    ConnectOptions,
    ExchangeOptions,
    PublishOptions,
)
from apps.log_appender.application.common.exceptions import BrokerClientError
from apps.log_appender.application.common.result import ErrorKind
from apps.log_appender.infrastructure.messaging.pika_client import (
    PikaBrokerClient,
    build_connection_parameters,
)


@pytest.fixture
def mock_channel() -> MagicMock:
    """Mock BlockingChannel."""
    channel = MagicMock()
    channel.is_open = True
    return channel


@pytest.fixture
def mock_connection(mock_channel: MagicMock) -> MagicMock:
    """Mock BlockingConnection."""
    connection = MagicMock()
    connection.is_open = True
    connection.channel.return_value = mock_channel
    return connection


@pytest.fixture
def connected_client(mock_connection: MagicMock) -> PikaBrokerClient:
    """Client connected with channel 1 open."""
    client = PikaBrokerClient()
    with patch("pika.BlockingConnection", return_value=mock_connection):
        client.connect("localhost", ConnectOptions())
    client.channel_open(1)
    return client


class TestBuildConnectionParameters:
    """build_connection_parameters() tests."""

    def test_defaults(self) -> None:
        """Unset options should keep pika defaults."""
        params = build_connection_parameters("mq.local", ConnectOptions())

        assert params.host == "mq.local"
        assert params.port == pika.ConnectionParameters.DEFAULT_PORT
        assert params.virtual_host == pika.ConnectionParameters.DEFAULT_VIRTUAL_HOST
        assert params.ssl_options is None

    def test_maps_options(self) -> None:
        """Present options should be mapped to pika parameters."""
        options = ConnectOptions(
            user="logger",
            password="secret",
            port=5673,
            vhost="/logs",
            channel_max=16,
            frame_max=131072,
            heartbeat=30,
        )

        params = build_connection_parameters("mq.local", options)

        assert params.port == 5673
        assert params.virtual_host == "/logs"
        assert params.channel_max == 16
        assert params.frame_max == 131072
        assert params.heartbeat == 30
        assert params.credentials.username == "logger"
        assert params.credentials.password == "secret"

    def test_user_without_password_defaults_to_guest(self) -> None:
        """Missing credential half should default to guest."""
        params = build_connection_parameters("mq", ConnectOptions(user="logger"))

        assert params.credentials.username == "logger"
        assert params.credentials.password == "guest"

    def test_ssl(self) -> None:
        """ssl=True should build SSLOptions and default to port 5671."""
        params = build_connection_parameters(
            "mq.local",
            ConnectOptions(ssl=True, ssl_verify_host=False, ssl_init=True),
        )

        assert params.port == 5671
        assert isinstance(params.ssl_options, pika.SSLOptions)
        assert params.ssl_options.server_hostname == "mq.local"
        assert params.ssl_options.context.check_hostname is False

    def test_ssl_cacert(self) -> None:
        """ssl_cacert should be used as CA file."""
        context = ssl.create_default_context()
        with patch("ssl.create_default_context", return_value=context) as mock_create:
            build_connection_parameters(
                "mq",
                ConnectOptions(ssl=True, ssl_cacert="/etc/ssl/ca.pem", port=5443),
            )

        mock_create.assert_called_once_with(cafile="/etc/ssl/ca.pem")


class TestPikaBrokerClient:
    """PikaBrokerClient tests."""

    def test_connect(self, mock_connection: MagicMock) -> None:
        """connect() should open a BlockingConnection."""
        client = PikaBrokerClient()

        with patch("pika.BlockingConnection", return_value=mock_connection) as mock_blocking:
            client.connect("mq.local", ConnectOptions(port=5673))

        params = mock_blocking.call_args[0][0]
        assert params.host == "mq.local"
        assert params.port == 5673
        assert client.is_open

    def test_connect_failure(self) -> None:
        """Connection errors should be wrapped as CONNECT failures."""
        client = PikaBrokerClient()

        with patch("pika.BlockingConnection", side_effect=AMQPConnectionError("refused")):
            with pytest.raises(BrokerClientError) as exc_info:
                client.connect("mq", ConnectOptions())

        assert exc_info.value.kind is ErrorKind.CONNECT
        assert "AMQPConnectionError" in exc_info.value.message
        assert not client.is_open

    def test_connect_os_error(self) -> None:
        """OSError should be wrapped as CONNECT failure."""
        client = PikaBrokerClient()

        with patch("pika.BlockingConnection", side_effect=OSError("unreachable")):
            with pytest.raises(BrokerClientError) as exc_info:
                client.connect("mq", ConnectOptions())

        assert exc_info.value.kind is ErrorKind.CONNECT

    def test_connect_missing_cacert(self) -> None:
        """Unreadable CA file should be wrapped as CONNECT failure."""
        client = PikaBrokerClient()

        with patch("pika.BlockingConnection") as mock_blocking:
            with pytest.raises(BrokerClientError) as exc_info:
                client.connect("mq", ConnectOptions(ssl=True, ssl_cacert="/nonexistent/ca.pem"))

        assert exc_info.value.kind is ErrorKind.CONNECT
        assert "FileNotFoundError" in exc_info.value.message
        mock_blocking.assert_not_called()
        assert not client.is_open

    def test_connect_out_of_range_parameter(self) -> None:
        """Values rejected by pika.ConnectionParameters should be CONNECT failures."""
        client = PikaBrokerClient()

        with patch("pika.BlockingConnection") as mock_blocking:
            with pytest.raises(BrokerClientError) as exc_info:
                client.connect("mq", ConnectOptions(channel_max=70000))

        assert exc_info.value.kind is ErrorKind.CONNECT
        assert "ValueError" in exc_info.value.message
        mock_blocking.assert_not_called()

    def test_channel_open(
        self,
        connected_client: PikaBrokerClient,
        mock_connection: MagicMock,
        mock_channel: MagicMock,
    ) -> None:
        """channel_open() should open the numbered channel."""
        mock_connection.channel.assert_called_once_with(channel_number=1)
        mock_channel.confirm_delivery.assert_not_called()

    def test_channel_open_confirm_delivery(self, mock_connection: MagicMock, mock_channel: MagicMock) -> None:
        """confirm_delivery=True should enable publisher confirms."""
        client = PikaBrokerClient()
        with patch("pika.BlockingConnection", return_value=mock_connection):
            client.connect("mq", ConnectOptions())

        client.channel_open(1, confirm_delivery=True)

        mock_channel.confirm_delivery.assert_called_once()

    def test_channel_open_without_connection(self) -> None:
        """channel_open() before connect() should fail."""
        with pytest.raises(BrokerClientError) as exc_info:
            PikaBrokerClient().channel_open(1)

        assert exc_info.value.kind is ErrorKind.CHANNEL_OPEN

    def test_exchange_declare_passes_present_options(
        self,
        connected_client: PikaBrokerClient,
        mock_channel: MagicMock,
    ) -> None:
        """exchange_declare() should pass only configured options."""
        connected_client.exchange_declare(
            1,
            "X",
            ExchangeOptions(exchange_type="topic", durable=True),
        )

        mock_channel.exchange_declare.assert_called_once_with(
            exchange="X",
            exchange_type="topic",
            durable=True,
        )

    def test_exchange_declare_failure(
        self,
        connected_client: PikaBrokerClient,
        mock_channel: MagicMock,
    ) -> None:
        """Broker errors should be wrapped as DECLARE failures."""
        mock_channel.exchange_declare.side_effect = ChannelClosedByBroker(406, "PRECONDITION_FAILED")

        with pytest.raises(BrokerClientError) as exc_info:
            connected_client.exchange_declare(1, "X", ExchangeOptions())

        assert exc_info.value.kind is ErrorKind.DECLARE

    def test_publish(self, connected_client: PikaBrokerClient, mock_channel: MagicMock) -> None:
        """publish() should call basic_publish with exchange and flags."""
        connected_client.publish(
            1,
            "INFO>cat1",
            b"hello",
            PublishOptions(exchange="X", mandatory=True, immediate=True),
        )

        kwargs = mock_channel.basic_publish.call_args.kwargs
        assert kwargs["exchange"] == "X"
        assert kwargs["routing_key"] == "INFO>cat1"
        assert kwargs["body"] == b"hello"
        assert kwargs["mandatory"] is True
        assert kwargs["properties"].content_type == "text/plain"
        assert "immediate" not in kwargs

    def test_publish_default_exchange(
        self,
        connected_client: PikaBrokerClient,
        mock_channel: MagicMock,
    ) -> None:
        """Missing exchange should publish to the default exchange."""
        connected_client.publish(1, "k", b"m", PublishOptions())

        kwargs = mock_channel.basic_publish.call_args.kwargs
        assert kwargs["exchange"] == ""
        assert kwargs["mandatory"] is False

    def test_publish_failure(self, connected_client: PikaBrokerClient, mock_channel: MagicMock) -> None:
        """Broker errors should be wrapped as PUBLISH failures."""
        mock_channel.basic_publish.side_effect = UnroutableError([])

        with pytest.raises(BrokerClientError) as exc_info:
            connected_client.publish(1, "k", b"m", PublishOptions())

        assert exc_info.value.kind is ErrorKind.PUBLISH

    def test_publish_on_closed_channel(
        self,
        connected_client: PikaBrokerClient,
        mock_channel: MagicMock,
    ) -> None:
        """Publishing on a closed channel should fail as PUBLISH."""
        mock_channel.is_open = False

        with pytest.raises(BrokerClientError) as exc_info:
            connected_client.publish(1, "k", b"m", PublishOptions())

        assert exc_info.value.kind is ErrorKind.PUBLISH
        mock_channel.basic_publish.assert_not_called()

    def test_close(self, connected_client: PikaBrokerClient, mock_connection: MagicMock) -> None:
        """close() should close the connection."""
        connected_client.close()

        mock_connection.close.assert_called_once()
        assert not connected_client.is_open

    def test_close_ignores_broker_errors(
        self,
        connected_client: PikaBrokerClient,
        mock_connection: MagicMock,
    ) -> None:
        """close() on a broken connection should not raise."""
        mock_connection.close.side_effect = ConnectionResetError("reset")

        connected_client.close()  # Should not raise

    def test_close_without_connection(self) -> None:
        """close() without a connection should not raise."""
        PikaBrokerClient().close()
