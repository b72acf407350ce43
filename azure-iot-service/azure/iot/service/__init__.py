""" Azure IoT Hub Service Query Library

This library provides an asynchronous client and associated models for querying the device and
module twins of an Azure IoT Hub.
"""

from .iothub_query_client import IoTHubQueryClient  # noqa: F401
from .query import QueryExecutor, QueryStream  # noqa: F401
from .models import TwinDocument, QueryRequest, QueryPage  # noqa: F401
from .config import ProxyOptions  # noqa: F401
from .exceptions import (  # noqa: F401
    IoTHubClientError,
    CredentialError,
    IoTHubServiceError,
    QuerySyntaxError,
    AuthorizationError,
    TransportError,
)
