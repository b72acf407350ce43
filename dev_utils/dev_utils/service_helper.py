# Copyright (c) Microsoft. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for
# full license information.
import asyncio
import contextlib
import logging
import uuid
from azure.iot.hub import IoTHubRegistryManager
from azure.iot.hub.models import Twin

logger = logging.getLogger("e2e.{}".format(__name__))


def get_random_id(prefix):
    return "{}{}".format(prefix, uuid.uuid4().hex)


class ServiceHelper:
    """Performs identity and twin operations for e2e tests using the azure-iot-hub SDK.

    The registry manager is synchronous, so all operations run in the provided executor, which
    is owned by the caller.
    """

    def __init__(self, iothub_connection_string, executor):
        self._executor = executor
        self._registry_manager = IoTHubRegistryManager.from_connection_string(
            iothub_connection_string
        )

    async def _run(self, fn, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, fn, *args)

    async def create_device(self, device_id):
        logger.info("Creating device {}".format(device_id))
        return await self._run(
            self._registry_manager.create_device_with_sas, device_id, None, None, "enabled"
        )

    async def create_module(self, device_id, module_id):
        logger.info("Creating module {}/{}".format(device_id, module_id))
        return await self._run(
            self._registry_manager.create_module_with_sas, device_id, module_id, None, None, None
        )

    async def delete_device(self, device_id):
        logger.info("Deleting device {}".format(device_id))
        await self._run(self._registry_manager.delete_device, device_id)

    async def add_tag(self, key, value, device_id, module_id=None):
        """Read-modify-write the twin tags, guarded by the twin's etag"""
        if module_id:
            twin = await self._run(self._registry_manager.get_module_twin, device_id, module_id)
            patch = Twin(tags={key: value})
            await self._run(
                self._registry_manager.update_module_twin, device_id, module_id, patch, twin.etag
            )
        else:
            twin = await self._run(self._registry_manager.get_twin, device_id)
            patch = Twin(tags={key: value})
            await self._run(self._registry_manager.update_twin, device_id, patch, twin.etag)

    @contextlib.asynccontextmanager
    async def temporary_device(self, prefix="QueryDevice"):
        """Create a device that is deleted on exit, whatever the outcome of the test"""
        device_id = get_random_id(prefix)
        created = False
        try:
            await self.create_device(device_id)
            created = True
            yield device_id
        finally:
            if created:
                await self.delete_device(device_id)
