# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
"""This module is for creating agent strings for IoT Hub service requests"""

import platform
from .constant import VERSION, IOTHUB_SERVICE_IDENTIFIER

python_runtime = platform.python_version()
os_type = platform.system()
os_release = platform.version()
architecture = platform.machine()


def _get_common_user_agent() -> str:
    return "({python_runtime};{os_type} {os_release};{architecture})".format(
        python_runtime=python_runtime,
        os_type=os_type,
        os_release=os_release,
        architecture=architecture,
    )


def get_iothub_service_user_agent() -> str:
    """
    Create the user agent for IoT Hub service requests
    """
    return "{iden}/{version}{common}".format(
        iden=IOTHUB_SERVICE_IDENTIFIER, version=VERSION, common=_get_common_user_agent()
    )
