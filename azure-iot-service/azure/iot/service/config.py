# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------

import ssl
from typing import Optional
from .sastoken import SasToken, SasTokenProvider
from . import constant


DEFAULT_HTTP_PROXY_PORT = 8080
SUPPORTED_PROXY_TYPES = ["HTTP"]


class ProxyOptions:
    """
    A class containing various options to send HTTP traffic through a proxy server
    """

    def __init__(
        self,
        proxy_type: str,
        proxy_address: str,
        proxy_port: Optional[int] = None,
        proxy_username: Optional[str] = None,
        proxy_password: Optional[str] = None,
    ):
        """
        Initializer for proxy options.
        :param str proxy_type: The type of the proxy server. Only "HTTP" is supported
        :param str proxy_address: IP address or DNS name of proxy server
        :param int proxy_port: The port of the proxy server. Defaults to 8080.
        :param str proxy_username: (optional) username for basic authentication with the proxy.
            If it is not provided, authentication will not be used.
        :param str proxy_password: (optional) password for basic authentication with the proxy.

        :raises: ValueError if the proxy type is not supported
        """
        if proxy_type not in SUPPORTED_PROXY_TYPES:
            raise ValueError("Invalid Proxy Type")
        self.proxy_type = proxy_type
        self.proxy_address = proxy_address
        if proxy_port is None:
            self.proxy_port = DEFAULT_HTTP_PROXY_PORT
        else:
            self.proxy_port = int(proxy_port)
        self.proxy_username = proxy_username
        self.proxy_password = proxy_password

    @property
    def url(self) -> str:
        return "http://{address}:{port}".format(address=self.proxy_address, port=self.proxy_port)


class IoTHubServiceClientConfig:
    """
    Class for storing all configurations/options for IoT Hub service clients
    """

    def __init__(
        self,
        *,
        hostname: str,
        ssl_context: ssl.SSLContext,
        sastoken: Optional[SasToken] = None,
        sastoken_provider: Optional[SasTokenProvider] = None,
        product_info: str = "",
        proxy_options: Optional[ProxyOptions] = None,
        timeout: float = constant.DEFAULT_HTTP_TIMEOUT,
    ) -> None:
        """Initializer for IoTHubServiceClientConfig

        :param str hostname: The hostname of the IoT Hub
        :param ssl_context: SSLContext to use with the client
        :type ssl_context: :class:`ssl.SSLContext`
        :param sastoken: A fixed SasToken to authenticate with. Mutually exclusive with
            `sastoken_provider`
        :type sastoken: :class:`SasToken`
        :param sastoken_provider: Provider of renewing SasTokens to authenticate with
        :type sastoken_provider: :class:`SasTokenProvider`
        :param str product_info: A custom identification string appended to the User-Agent
        :param proxy_options: Details of proxy configuration
        :type proxy_options: :class:`ProxyOptions`
        :param float timeout: Total time allowed for a single HTTP request, in seconds

        :raises: ValueError if both `sastoken` and `sastoken_provider` are provided
        :raises: ValueError or TypeError if `timeout` is invalid
        """
        if sastoken and sastoken_provider:
            raise ValueError("Cannot provide both 'sastoken' and 'sastoken_provider'")

        # Network
        self.hostname = hostname
        self.ssl_context = ssl_context
        self.proxy_options = proxy_options
        self.timeout = _sanitize_timeout(timeout)

        # Auth
        self.sastoken = sastoken
        self.sastoken_provider = sastoken_provider

        # Identification
        self.product_info = product_info


# Sanitization #


def _sanitize_timeout(timeout):
    try:
        timeout = float(timeout)
    except (ValueError, TypeError):
        raise TypeError("Invalid type for 'timeout'. Must be a numeric value.")

    if timeout <= 0:
        raise ValueError("'timeout' must be greater than 0")

    return timeout
