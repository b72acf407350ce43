# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------


def get_twin_query_path() -> str:
    """
    :return: The path for querying device and module twins. It is of the format
    /devices/query

    The collection (devices or devices.modules) is selected by the FROM clause of the query
    text, not by the path.
    """
    return "/devices/query"
