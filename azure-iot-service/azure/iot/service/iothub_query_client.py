# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
import asyncio
import functools
import logging
import ssl
from typing import Optional, Type
from types import TracebackType

from . import exceptions as exc
from . import signing_mechanism as sm
from . import connection_string as cs
from . import sastoken as st
from . import config, models
from .query import QueryExecutor, QueryStream
from . import iothub_http_client as http

logger = logging.getLogger(__name__)


def _requires_open(f):
    """Decorator to indicate a method requires the client to already be opened."""

    @functools.wraps(f)
    def check_open_wrapper(*args, **kwargs):
        this = args[0]  # a.k.a. self
        if not this._http_client:
            raise exc.IoTHubClientError("IoTHubQueryClient not open")
        else:
            return f(*args, **kwargs)

    return check_open_wrapper


class IoTHubQueryClient:
    def __init__(
        self,
        *,
        hostname: str,
        shared_access_key_name: Optional[str] = None,
        shared_access_key: Optional[str] = None,
        sastoken: Optional[str] = None,
        sastoken_ttl: int = 3600,
        ssl_context: Optional[ssl.SSLContext] = None,
        **kwargs,
    ) -> None:
        """
        :param str hostname: Hostname of the IoT Hub
        :param str shared_access_key_name: Name of the shared access policy the key belongs to.
            The policy must grant registry read permission to query twins.
        :param str shared_access_key: A key that can be used to generate SAS Tokens
        :param str sastoken: A SAS Token string to use directly as a credential
        :param sastoken_ttl: Time-to-live (in seconds) for SAS tokens generated when using
            'shared_access_key' authentication.
            Default is 3600 seconds (1 hour).
        :param ssl_context: Custom SSL context to be used when making requests.
            If not provided, a default one will be used
        :type ssl_context: :class:`ssl.SSLContext`

        :keyword str product_info: Arbitrary product information which will be included in the
            User-Agent string
        :keyword proxy_options: Configuration structure for sending traffic through a proxy server
        :type: proxy_options: :class:`ProxyOptions`
        :keyword float timeout: Total time allowed for each HTTP request, in seconds.
            Default is 10 seconds

        :raises: ValueError if an invalid combination of parameters are provided
        :raises: ValueError if an invalid parameter value is provided
        :raises: TypeError if an unsupported keyword argument is provided
        """
        _validate_kwargs(**kwargs)
        if shared_access_key and sastoken:
            raise ValueError(
                "Incompatible authentication - cannot provide both 'shared_access_key' and 'sastoken'"
            )
        if not shared_access_key and not sastoken:
            raise ValueError(
                "Missing authentication - must provide one of 'shared_access_key' or 'sastoken'"
            )
        if shared_access_key and not shared_access_key_name:
            raise ValueError(
                "Missing authentication - 'shared_access_key' requires 'shared_access_key_name'"
            )

        if not ssl_context:
            ssl_context = _default_ssl_context()

        # Set up SAS auth for future use
        self._user_sastoken: Optional[st.SasToken] = None
        self._sastoken_provider: Optional[st.SasTokenProvider] = None
        if shared_access_key:
            # The provider cannot be started during this __init__ because generating the initial
            # token is a coroutine. It will be started upon context manager entry.
            signing_mechanism = sm.SymmetricKeySigningMechanism(shared_access_key)
            generator = st.SasTokenGenerator(
                signing_mechanism=signing_mechanism,
                uri=hostname,
                key_name=shared_access_key_name,
                ttl=sastoken_ttl,
            )
            self._sastoken_provider = st.SasTokenProvider(generator)
        else:
            new_sas = st.SasToken(sastoken)
            if new_sas.is_expired():
                raise ValueError("SAS Token has already expired")
            self._user_sastoken = new_sas

        self._client_config = config.IoTHubServiceClientConfig(
            hostname=hostname,
            ssl_context=ssl_context,
            sastoken=self._user_sastoken,
            sastoken_provider=self._sastoken_provider,
            **kwargs,
        )

        # Created upon context manager entry, and removed upon exit
        self._http_client: Optional[http.IoTHubHTTPClient] = None
        self._executor: Optional[QueryExecutor] = None

    async def __aenter__(self) -> "IoTHubQueryClient":
        """
        Open the client, making it ready to query the IoTHub

        :raises: SasTokenError if a SAS Token cannot be generated from the shared access key
        :raises: CredentialError if user-provided SAS Token has expired
        """
        if self._user_sastoken and self._user_sastoken.is_expired():
            raise exc.CredentialError("SAS Token has expired")

        if self._sastoken_provider:
            await self._sastoken_provider.start()

        try:
            self._http_client = http.IoTHubHTTPClient(self._client_config)
        except (Exception, asyncio.CancelledError):
            if self._sastoken_provider:
                await self._sastoken_provider.stop()
            raise
        self._executor = QueryExecutor(self._http_client.fetch_page)
        logger.debug("IoTHubQueryClient opened for {}".format(self.hostname))
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        traceback: TracebackType,
    ) -> None:
        """Close the client, releasing all network resources"""
        http_client = self._http_client
        self._http_client = None
        self._executor = None
        try:
            if http_client:
                await http_client.shutdown()
        finally:
            if self._sastoken_provider:
                await self._sastoken_provider.stop()
        logger.debug("IoTHubQueryClient closed for {}".format(self.hostname))

    @classmethod
    def from_connection_string(
        cls,
        connection_string: str,
        ssl_context: Optional[ssl.SSLContext] = None,
        sastoken_ttl: int = 3600,
        **kwargs,
    ) -> "IoTHubQueryClient":
        """Instantiate an IoTHubQueryClient using an IoT Hub service connection string

        :returns: A new instance of IoTHubQueryClient
        :rtype: IoTHubQueryClient

        :param str connection_string: The IoT Hub service connection string, e.g. the
            connection string of the 'registryRead' or 'iothubowner' shared access policy
        :param ssl_context: Custom SSL context to be used when making requests.
            If not provided, a default one will be used
        :type ssl_context: :class:`ssl.SSLContext`
        :param sastoken_ttl: Time-to-live (in seconds) for SAS tokens used for authentication.
            Default is 3600 seconds (1 hour).

        :keyword str product_info: Arbitrary product information which will be included in the
            User-Agent string
        :keyword proxy_options: Configuration structure for sending traffic through a proxy server
        :type: proxy_options: :class:`ProxyOptions`
        :keyword float timeout: Total time allowed for each HTTP request, in seconds.

        :raises: ValueError if the provided connection string is invalid
        :raises: TypeError if an unsupported keyword argument is provided
        """
        cs_obj = cs.ConnectionString(connection_string)
        return cls(
            hostname=cs_obj[cs.HOST_NAME],
            shared_access_key_name=cs_obj.get(cs.SHARED_ACCESS_KEY_NAME),
            shared_access_key=cs_obj.get(cs.SHARED_ACCESS_KEY),
            sastoken=cs_obj.get(cs.SHARED_ACCESS_SIGNATURE),
            ssl_context=ssl_context,
            sastoken_ttl=sastoken_ttl,
            **kwargs,
        )

    def update_sastoken(self, sastoken: str) -> None:
        """Update the current user-provided SAS token.

        The new SAS token will be used for all subsequent requests, including the remaining
        page fetches of queries already in progress.

        :raises: IoTHubClientError if not using user-provided SAS auth
        :raises: ValueError if the provided SAS token is expired
        :raises: ValueError if the provided SAS token is invalid
        """
        if not self._user_sastoken:
            raise exc.IoTHubClientError(
                "Cannot update SAS Token when not using user-provided SAS Token auth"
            )
        new_sas = st.SasToken(sastoken)
        if new_sas.is_expired():
            raise ValueError("SAS Token has already expired")
        self._user_sastoken = new_sas
        self._client_config.sastoken = new_sas
        if self._http_client:
            self._http_client.set_sastoken(new_sas)

    @_requires_open
    def query_twins(self, query: str, *, page_size: Optional[int] = None) -> QueryStream:
        """Query the IoTHub for device or module twins, using the IoT Hub query language.
        See https://docs.microsoft.com/azure/iot-hub/iot-hub-devguide-query-language

        No request is made until the returned stream is iterated. Pages of results are then
        requested one at a time, as iteration proceeds.

        :param str query: The query text, e.g. "SELECT * FROM devices WHERE tags.env = 'prod'"
            or "SELECT * FROM devices.modules WHERE tags.env = 'prod'"
        :param int page_size: Maximum number of twins IoTHub should return per page

        :returns: An async iterator of the matching twins
        :rtype: :class:`QueryStream`

        :raises: IoTHubClientError if the client is not open
        :raises: ValueError if the query is empty, or the page size is invalid

        Iterating the returned stream may raise:

        :raises: QuerySyntaxError if IoTHub rejects the query
        :raises: AuthorizationError if the credential lacks permission to query
        :raises: TransportError if a page cannot be fetched
        """
        return self._executor.execute(query, page_size=page_size)

    @_requires_open
    async def query_page(
        self,
        query: str,
        *,
        continuation_token: Optional[str] = None,
        page_size: Optional[int] = None,
    ) -> models.QueryPage:
        """Fetch a single page of twin query results

        :param str query: The query text
        :param str continuation_token: Continuation token from a previous page of the same query.
            If not provided, the first page is returned.
        :param int page_size: Maximum number of twins IoTHub should return in the page

        :returns: The page of results
        :rtype: :class:`QueryPage`

        :raises: IoTHubClientError if the client is not open
        :raises: QuerySyntaxError if IoTHub rejects the query
        :raises: AuthorizationError if the credential lacks permission to query
        :raises: TransportError if the page cannot be fetched
        """
        stream = self._executor.execute(query, page_size=page_size)
        pages = stream.by_page(continuation_token=continuation_token)
        try:
            return await pages.__anext__()
        finally:
            await pages.aclose()

    @property
    def hostname(self) -> str:
        return self._client_config.hostname

    @property
    def opened(self) -> bool:
        return self._http_client is not None


def _validate_kwargs(exclude=[], **kwargs) -> None:
    """Helper function to validate user provided kwargs.
    Raises TypeError if an invalid option has been provided"""
    valid_kwargs = [
        "product_info",
        "proxy_options",
        "timeout",
    ]

    for kwarg in kwargs:
        if (kwarg not in valid_kwargs) or (kwarg in exclude):
            # NOTE: TypeError is the conventional error that is returned when an invalid kwarg is
            # supplied. It feels like it should be a ValueError, but it's not.
            raise TypeError("Unsupported keyword argument: '{}'".format(kwarg))


def _default_ssl_context() -> ssl.SSLContext:
    """Return a default SSLContext"""
    ssl_context = ssl.SSLContext(protocol=ssl.PROTOCOL_TLS_CLIENT)
    ssl_context.minimum_version = ssl.TLSVersion.TLSv1_2
    ssl_context.verify_mode = ssl.CERT_REQUIRED
    ssl_context.check_hostname = True
    ssl_context.load_default_certs()
    return ssl_context
