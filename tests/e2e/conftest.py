# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
import concurrent.futures
import logging
import pytest
from dev_utils import test_env
from dev_utils.service_helper import ServiceHelper
from azure.iot.service import IoTHubQueryClient

logging.basicConfig(
    format="%(asctime)s %(levelname)-8s %(module)s:%(funcName)s:%(message)s",
    level=logging.WARNING,
    datefmt="%Y-%m-%d %H:%M:%S",
)
logging.getLogger("e2e").setLevel(level=logging.DEBUG)
logging.getLogger("azure.iot.service").setLevel(level=logging.DEBUG)

logger = logging.getLogger(__name__)
logger.setLevel(level=logging.INFO)


@pytest.fixture(scope="session")
def executor():
    executor = concurrent.futures.ThreadPoolExecutor()
    yield executor
    executor.shutdown(wait=True)


@pytest.fixture
def service_helper(executor):
    return ServiceHelper(test_env.IOTHUB_CONNECTION_STRING, executor=executor)


@pytest.fixture
async def query_client():
    client = IoTHubQueryClient.from_connection_string(test_env.IOTHUB_CONNECTION_STRING)
    async with client:
        yield client
