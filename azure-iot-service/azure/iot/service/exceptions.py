# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
"""Define Azure IoT Hub service exceptions to be shared across package"""
from typing import Optional


# Client Exceptions
class IoTHubClientError(Exception):
    """Represents a failure from the IoTHub Query Client"""

    pass


class CredentialError(Exception):
    """Represents a failure from an invalid auth credential"""

    pass


# Service Exceptions
class IoTHubServiceError(Exception):
    """Represents a failure reported by IoT Hub"""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class QuerySyntaxError(IoTHubServiceError):
    """IoT Hub rejected the query text (e.g. malformed, or unsupported collection or predicate)"""

    pass


class AuthorizationError(IoTHubServiceError):
    """The credential in use does not have permission to perform the operation"""

    pass


# Transport Exceptions
class TransportError(Exception):
    """A request could not be completed (network failure, timeout, or failed status)"""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
