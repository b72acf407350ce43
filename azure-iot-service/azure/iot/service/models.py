# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
from typing import Optional, Dict, List, NamedTuple
from .custom_typing import JSONSerializable, Tags, TwinJSON, TwinProperties


class TwinDocument:
    """Represents the twin of a device or module, as returned by an IoT Hub query

    Queries that select a projection (e.g. "SELECT tags.env FROM devices") return rows that are
    not complete twins. For such rows, any field not selected is None, and the row as returned
    is available in `.raw`.

    :ivar device_id: The device the twin belongs to. None if not selected by the query
    :ivar module_id: The module the twin belongs to, if it is a module twin
    :ivar tags: Dictionary of tags set on the twin by the service
    :ivar etag: Opaque concurrency token of the twin
    :ivar version: Version of the twin, if reported
    :ivar properties: Desired and reported properties of the twin, as returned by IoT Hub
    :ivar raw: The complete JSON document as returned by IoT Hub
    """

    def __init__(
        self,
        device_id: Optional[str],
        module_id: Optional[str] = None,
        tags: Optional[Tags] = None,
        etag: Optional[str] = None,
    ) -> None:
        """
        Initializer for TwinDocument

        :param str device_id: The device the twin belongs to, if known
        :param str module_id: The module the twin belongs to, if any
        :param dict tags: Tags set on the twin
        :param str etag: Opaque concurrency token of the twin
        """
        self.device_id = device_id
        self.module_id = module_id
        self.tags: Tags = dict(tags) if tags else {}
        self.etag = etag
        self.version: Optional[int] = None
        self.properties: TwinProperties = {}
        self.raw: Dict[str, JSONSerializable] = {}

    def __repr__(self) -> str:
        return "TwinDocument(device_id={!r}, module_id={!r}, etag={!r})".format(
            self.device_id, self.module_id, self.etag
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TwinDocument):
            return NotImplemented
        return (
            self.device_id == other.device_id
            and self.module_id == other.module_id
            and self.tags == other.tags
            and self.etag == other.etag
        )

    @property
    def is_module_twin(self) -> bool:
        return self.module_id is not None

    @classmethod
    def from_json(cls, twin_json: TwinJSON) -> "TwinDocument":
        """Create a TwinDocument from a JSON object returned by an IoT Hub query

        :param dict twin_json: The twin, or projection of a twin, as a JSON object

        :raises: ValueError if the JSON value is not an object
        """
        if not isinstance(twin_json, dict):
            raise ValueError("Invalid twin document - expected a JSON object")
        twin = cls(
            device_id=twin_json.get("deviceId"),
            module_id=twin_json.get("moduleId"),
            tags=twin_json.get("tags") or {},
            etag=twin_json.get("etag"),
        )
        twin.version = twin_json.get("version")
        twin.properties = twin_json.get("properties") or {}
        twin.raw = dict(twin_json)
        return twin


class QueryRequest(NamedTuple):
    """A single request for a page of query results

    :ivar query: The query text, e.g. "SELECT * FROM devices WHERE tags.env = 'prod'"
    :ivar continuation_token: Token from a prior page identifying the page to fetch. None for the
        first page
    :ivar page_size: Maximum number of items the service should return in the page
    """

    query: str
    continuation_token: Optional[str] = None
    page_size: Optional[int] = None


class QueryPage:
    """A page of query results

    :ivar items: The twins in the page, in the order the service returned them
    :ivar continuation_token: Token to fetch the next page with. None if this is the final page
    :ivar item_type: The type of items in the page, as reported by the service (e.g. 'twin')
    """

    def __init__(
        self,
        items: List[TwinDocument],
        continuation_token: Optional[str] = None,
        item_type: Optional[str] = None,
    ) -> None:
        self.items = items
        self.continuation_token = continuation_token
        self.item_type = item_type

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    @property
    def has_next(self) -> bool:
        """Indicates if there are further pages after this one"""
        return bool(self.continuation_token)
