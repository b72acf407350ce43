# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

from setuptools import setup

setup(
    name="dev_utils",
    description="Internal development utilities for Azure IoT Hub service queries. NOT FOR DISTRIBUTION.",
    version="0.0.0a1",  # Alpha Release
    license="MIT License",
    packages=["dev_utils"],
)
