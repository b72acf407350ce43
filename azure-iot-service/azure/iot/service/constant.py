# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
"""This module defines constants for use across the azure-iot-service package
"""

VERSION = "1.0.0b1"
IOTHUB_SERVICE_IDENTIFIER = "azure-iot-service-py"
IOTHUB_API_VERSION = "2021-04-12"

# Default total time allowed for a single HTTP request, in seconds
DEFAULT_HTTP_TIMEOUT = 10
