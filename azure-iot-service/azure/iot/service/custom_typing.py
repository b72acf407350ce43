# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
from typing import Union, Dict, List, Tuple, Callable, Awaitable, Any
from typing_extensions import TypedDict


# typing does not support recursion, so we must use forward references here (PEP484)
JSONSerializable = Union[
    Dict[str, "JSONSerializable"],
    List["JSONSerializable"],
    Tuple["JSONSerializable", ...],
    str,
    int,
    float,
    bool,
    None,
]

Tags = Dict[str, JSONSerializable]


class TwinProperties(TypedDict, total=False):
    desired: Dict[str, JSONSerializable]
    reported: Dict[str, JSONSerializable]


class TwinJSON(TypedDict, total=False):
    """A twin document as it appears on the wire"""

    deviceId: str
    moduleId: str
    etag: str
    version: int
    tags: Tags
    properties: TwinProperties


class QueryBody(TypedDict):
    query: str


# Any callable that turns a QueryRequest into a QueryPage. Typed loosely to avoid an import cycle
# with the models module.
FetchPage = Callable[[Any], Awaitable[Any]]
