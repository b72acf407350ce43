# --------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
import aiohttp
import asyncio
import logging
import urllib.parse
from typing import Dict, List, Optional, cast
from .custom_typing import QueryBody, TwinJSON
from .exceptions import AuthorizationError, QuerySyntaxError, TransportError
from .models import QueryPage, QueryRequest, TwinDocument
from .sastoken import SasToken
from . import config, constant, user_agent
from . import http_path_iothub as http_path

logger = logging.getLogger(__name__)

# Header Definitions
HEADER_AUTHORIZATION = "Authorization"
HEADER_USER_AGENT = "User-Agent"
HEADER_CONTENT_TYPE = "Content-Type"
HEADER_CONTINUATION = "x-ms-continuation"
HEADER_MAX_ITEM_COUNT = "x-ms-max-item-count"
HEADER_ITEM_TYPE = "x-ms-item-type"

# Query parameter definitions
PARAM_API_VERSION = "api-version"


# NOTE: aiohttp 3.x is bugged on Windows on Python 3.8.x - 3.10.6
# If running the application using asyncio.run(), there will be an issue with the Event Loop
# raising a spurious RuntimeError on application exit. Use loop.run_until_complete() instead of
# asyncio.run() on affected platforms.
# See: https://github.com/aio-libs/aiohttp/issues/4324


class IoTHubHTTPClient:
    def __init__(self, client_config: config.IoTHubServiceClientConfig) -> None:
        """Instantiate the client

        :param client_config: The config object for the client
        :type client_config: :class:`IoTHubServiceClientConfig`
        """
        self._hostname = client_config.hostname
        self._user_agent_string = (
            user_agent.get_iothub_service_user_agent() + client_config.product_info
        )
        self._ssl_context = client_config.ssl_context
        self._sastoken = client_config.sastoken
        self._sastoken_provider = client_config.sastoken_provider

        self._proxy: Optional[str] = None
        self._proxy_auth: Optional[aiohttp.BasicAuth] = None
        if client_config.proxy_options:
            self._proxy = client_config.proxy_options.url
            if client_config.proxy_options.proxy_username:
                self._proxy_auth = aiohttp.BasicAuth(
                    login=client_config.proxy_options.proxy_username,
                    password=client_config.proxy_options.proxy_password or "",
                )

        self._session = _create_client_session(client_config.hostname, client_config.timeout)

    async def shutdown(self) -> None:
        """Shut down the client

        Invoke only when complete finished with the client for graceful exit.
        """
        await self._session.close()
        # Wait 250ms for the underlying SSL connections to close
        # See: https://docs.aiohttp.org/en/stable/client_advanced.html#graceful-shutdown
        await asyncio.sleep(0.25)

    def set_sastoken(self, sastoken: SasToken) -> None:
        """Set a fixed SasToken to authenticate requests with

        :param sastoken: The token to use
        :type sastoken: :class:`SasToken`
        """
        self._sastoken = sastoken

    async def fetch_page(self, request: QueryRequest) -> QueryPage:
        """Fetch a single page of twin query results from IoT Hub

        :param request: The query, and the continuation token of the page to fetch
        :type request: :class:`QueryRequest`

        :returns: The page of results
        :rtype: :class:`QueryPage`

        :raises: :class:`QuerySyntaxError` if IoTHub rejects the query
        :raises: :class:`AuthorizationError` if the credential lacks permission to query
        :raises: :class:`TransportError` if the request fails, times out, IoTHub responds with
            any other failed status, or the response cannot be parsed
        """
        path = http_path.get_twin_query_path()
        query_params = {PARAM_API_VERSION: constant.IOTHUB_API_VERSION}
        data: QueryBody = {"query": request.query}
        # NOTE: Other headers are auto-generated by aiohttp
        headers = {
            HEADER_USER_AGENT: urllib.parse.quote_plus(self._user_agent_string),
            HEADER_CONTENT_TYPE: "application/json",
        }
        sastoken = self._get_current_sastoken()
        if sastoken:
            headers[HEADER_AUTHORIZATION] = str(sastoken)
        if request.continuation_token:
            headers[HEADER_CONTINUATION] = request.continuation_token
        if request.page_size:
            headers[HEADER_MAX_ITEM_COUNT] = str(request.page_size)

        logger.debug("Sending twin query request to IoTHub...")
        try:
            async with self._session.post(
                url=path,
                json=data,
                params=query_params,
                headers=headers,
                ssl=self._ssl_context,
                proxy=self._proxy,
                proxy_auth=self._proxy_auth,
            ) as response:

                if response.status >= 300:
                    logger.error("Received failure response from IoTHub for twin query")
                    raise _error_from_failed_response(response.status, response.reason)

                logger.debug("Successfully received response from IoTHub for twin query")
                try:
                    twins_json = cast(List[TwinJSON], await response.json())
                    items = [TwinDocument.from_json(twin_json) for twin_json in twins_json]
                except (ValueError, TypeError, aiohttp.ContentTypeError) as e:
                    raise TransportError(
                        "IoTHub responded to twin query with an unreadable body"
                    ) from e
                continuation_token = response.headers.get(HEADER_CONTINUATION) or None
                item_type = response.headers.get(HEADER_ITEM_TYPE)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Twin query request to IoTHub could not be completed")
            raise TransportError("Twin query request could not be completed") from e

        return QueryPage(items=items, continuation_token=continuation_token, item_type=item_type)

    def _get_current_sastoken(self) -> Optional[SasToken]:
        if self._sastoken_provider:
            return self._sastoken_provider.get_current_sastoken()
        else:
            return self._sastoken


_status_code_to_error: Dict[int, type] = {
    400: QuerySyntaxError,
    401: AuthorizationError,
    403: AuthorizationError,
}


def _error_from_failed_response(status: int, reason: Optional[str]) -> Exception:
    """Return the error corresponding to a failed response status"""
    message = "IoTHub responded to twin query with a failed status ({status}) - {reason}".format(
        status=status, reason=reason
    )
    error_cls = _status_code_to_error.get(status, TransportError)
    return error_cls(message, status_code=status)


def _create_client_session(hostname: str, timeout_secs: float) -> aiohttp.ClientSession:
    """Create and return a aiohttp ClientSession object"""
    base_url = "https://{hostname}".format(hostname=hostname)
    timeout = aiohttp.ClientTimeout(total=timeout_secs)
    session = aiohttp.ClientSession(base_url=base_url, timeout=timeout)
    logger.debug(
        "Creating HTTP Session for {url} with timeout of {timeout}".format(
            url=base_url, timeout=timeout.total
        )
    )
    return session
