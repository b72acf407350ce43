# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------

import os
import asyncio
import logging
from azure.iot.service import IoTHubQueryClient, QuerySyntaxError, TransportError

logging.basicConfig(level=logging.WARNING)
logging.getLogger("azure.iot.service").setLevel(level=logging.DEBUG)

logger = logging.getLogger(__name__)
logger.setLevel(level=logging.INFO)


async def main():
    # Fetch the connection string of a shared access policy with registry read permission
    conn_str = os.getenv("IOTHUB_CONNECTION_STRING")

    async with IoTHubQueryClient.from_connection_string(conn_str) as client:
        # Iterate over every device twin with a tag, one twin at a time.
        # Pages are requested from IoT Hub only as iteration proceeds.
        logger.info("Querying device twins...")
        try:
            async for twin in client.query_twins("SELECT * FROM devices WHERE tags.env = 'prod'"):
                print("{} etag={} tags={}".format(twin.device_id, twin.etag, twin.tags))
        except QuerySyntaxError as e:
            logger.error("Query was rejected: {}".format(e))
        except TransportError as e:
            logger.error("Query could not be completed: {}".format(e))

        # Module twins are queried from the devices.modules collection.
        # Here, results are consumed a page at a time, 10 twins per page.
        logger.info("Querying module twins...")
        stream = client.query_twins("SELECT * FROM devices.modules", page_size=10)
        async for page in stream.by_page():
            print("Page of {} module twin(s)".format(len(page)))
            for twin in page:
                print("  {}/{}".format(twin.device_id, twin.module_id))

        # A single page can also be fetched directly, and the query resumed later from its
        # continuation token
        page = await client.query_page("SELECT * FROM devices", page_size=5)
        print("First page has {} twin(s)".format(len(page)))
        if page.has_next:
            next_page = await client.query_page(
                "SELECT * FROM devices", continuation_token=page.continuation_token, page_size=5
            )
            print("Second page has {} twin(s)".format(len(next_page)))


if __name__ == "__main__":
    asyncio.run(main())
