# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
import asyncio
import logging
import time
import uuid
import pytest
from dev_utils import test_env

pytestmark = pytest.mark.skipif(
    not test_env.IOTHUB_CONNECTION_STRING, reason="IOTHUB_CONNECTION_STRING is not set"
)

logger = logging.getLogger("e2e.{}".format(__name__))

# The query index is eventually consistent with twin updates
QUERY_INDEX_TIMEOUT = 60
QUERY_POLL_INTERVAL = 2

TAG_KEY = "Env"


async def query_until(query_client, query, expected_count):
    """Run the query until it returns the expected number of twins, or the timeout passes"""
    deadline = time.time() + QUERY_INDEX_TIMEOUT
    while True:
        twins = [twin async for twin in query_client.query_twins(query)]
        if len(twins) >= expected_count or time.time() > deadline:
            return twins
        logger.info("Found {} of {} twins. Retrying query".format(len(twins), expected_count))
        await asyncio.sleep(QUERY_POLL_INTERVAL)


@pytest.fixture
def tag_value():
    return "prod-{}".format(uuid.uuid4().hex)


@pytest.mark.describe("IoTHubQueryClient - Twin Queries")
class TestQueryTwins:
    @pytest.mark.it("Finds the device twin carrying a tag")
    async def test_device_twin_query(self, service_helper, query_client, tag_value):
        async with service_helper.temporary_device() as device_id:
            await service_helper.add_tag(TAG_KEY, tag_value, device_id)

            query = "SELECT * FROM devices WHERE tags.{} = '{}'".format(TAG_KEY, tag_value)
            twins = await query_until(query_client, query, 1)

        assert len(twins) == 1
        assert twins[0].device_id == device_id
        assert twins[0].module_id is None
        assert twins[0].tags[TAG_KEY] == tag_value

    @pytest.mark.it("Finds the module twin carrying a tag")
    async def test_module_twin_query(self, service_helper, query_client, tag_value):
        module_id = "QueryModule"
        async with service_helper.temporary_device() as device_id:
            await service_helper.create_module(device_id, module_id)
            await service_helper.add_tag(TAG_KEY, tag_value, device_id, module_id)

            query = "SELECT * FROM devices.modules WHERE tags.{} = '{}'".format(
                TAG_KEY, tag_value
            )
            twins = await query_until(query_client, query, 1)

        assert len(twins) == 1
        assert twins[0].device_id == device_id
        assert twins[0].module_id == module_id
        assert twins[0].is_module_twin

    @pytest.mark.it("Returns a single page with the matching twin and no continuation token")
    async def test_single_page(self, service_helper, query_client, tag_value):
        async with service_helper.temporary_device() as device_id:
            await service_helper.add_tag(TAG_KEY, tag_value, device_id)

            query = "SELECT * FROM devices WHERE tags.{} = '{}'".format(TAG_KEY, tag_value)
            await query_until(query_client, query, 1)
            page = await query_client.query_page(query)

        assert len(page) == 1
        assert not page.has_next

    @pytest.mark.it("Pages through the results when a page size is set")
    async def test_paged_query(self, service_helper, query_client, tag_value):
        async with service_helper.temporary_device() as device_id1:
            async with service_helper.temporary_device() as device_id2:
                await service_helper.add_tag(TAG_KEY, tag_value, device_id1)
                await service_helper.add_tag(TAG_KEY, tag_value, device_id2)

                query = "SELECT * FROM devices WHERE tags.{} = '{}'".format(TAG_KEY, tag_value)
                await query_until(query_client, query, 2)
                stream = query_client.query_twins(query, page_size=1)
                pages = [page async for page in stream.by_page()]

        twins = [twin for page in pages for twin in page]
        assert sorted(twin.device_id for twin in twins) == sorted([device_id1, device_id2])
        assert all(len(page) <= 1 for page in pages)

    @pytest.mark.it("Returns no twins for a query that matches nothing")
    async def test_no_match(self, query_client, tag_value):
        query = "SELECT * FROM devices WHERE tags.{} = '{}'".format(TAG_KEY, tag_value)
        twins = [twin async for twin in query_client.query_twins(query)]
        assert twins == []

    @pytest.mark.it("Returns the rows of an aggregate projection query")
    async def test_projection_query(self, service_helper, query_client, tag_value):
        async with service_helper.temporary_device() as device_id:
            await service_helper.add_tag(TAG_KEY, tag_value, device_id)

            condition = "tags.{} = '{}'".format(TAG_KEY, tag_value)
            await query_until(query_client, "SELECT * FROM devices WHERE " + condition, 1)
            query = "SELECT COUNT() AS numberOfDevices FROM devices WHERE " + condition
            rows = [row async for row in query_client.query_twins(query)]

        assert len(rows) == 1
        assert rows[0].device_id is None
        assert rows[0].raw["numberOfDevices"] == 1
