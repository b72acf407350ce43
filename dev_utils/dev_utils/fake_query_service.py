# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
"""An in-memory stand-in for the IoT Hub query endpoint, serving pre-arranged pages"""
import asyncio
from azure.iot.service.models import QueryPage, TwinDocument


def make_twins(count, prefix="device", tags=None):
    return [
        TwinDocument(
            device_id="{}{}".format(prefix, i), tags=dict(tags or {}), etag="etag{}".format(i)
        )
        for i in range(count)
    ]


class FakeQueryService:
    """Serves a fixed list of pages. Page N is returned for the continuation token "tokenN".

    :param pages: List of lists of TwinDocuments, one list per page
    :param failures: Dictionary mapping page index to the exception raised when it is fetched
    """

    def __init__(self, pages, failures=None):
        self.pages = pages
        self.failures = failures or {}
        self.requests = []

    @property
    def fetch_count(self):
        return len(self.requests)

    async def fetch_page(self, request):
        self.requests.append(request)
        # Yield control, as a real network round-trip would
        await asyncio.sleep(0)

        if request.continuation_token is None:
            index = 0
        else:
            index = int(request.continuation_token[len("token") :])

        if index in self.failures:
            raise self.failures[index]

        if index + 1 < len(self.pages):
            continuation_token = "token{}".format(index + 1)
        else:
            continuation_token = None
        items = self.pages[index] if self.pages else []
        return QueryPage(items=list(items), continuation_token=continuation_token, item_type="twin")
