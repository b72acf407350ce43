# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------

from setuptools import setup, find_namespace_packages
import re


with open("README.md", "r") as fh:
    _long_description = fh.read()


filename = "azure-iot-service/azure/iot/service/constant.py"
version = None

with open(filename, "r") as fh:
    if not re.search("\n+VERSION", fh.read()):
        raise ValueError("VERSION  is not defined in constants.")

with open(filename, "r") as fh:
    for line in fh:
        if re.search("^VERSION", line):
            constant, value = line.strip().split("=")
            if not value:
                raise ValueError("Value for VERSION not defined in constants.")
            else:
                # Strip whitespace and quotation marks
                version = str(value.strip(' "'))
            break

setup(
    name="azure-iot-service",
    version=version,
    description="Microsoft Azure IoT Hub Service Query Library",
    license="MIT License",
    license_files=("LICENSE",),
    url="https://github.com/Azure/azure-iot-sdk-python/",
    author="Microsoft Corporation",
    author_email="opensource@microsoft.com",
    long_description=_long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    install_requires=[
        "aiohttp>=3.8.0,<4.0.0",
        "typing_extensions",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "pytest-mock",
            "pytest-testdox",
            # Identity and twin setup for end-to-end tests
            "azure-iot-hub",
        ],
    },
    python_requires=">=3.8, <4",
    packages=find_namespace_packages(where="azure-iot-service", include=["azure.*"]),
    package_data={"azure.iot.service": ["py.typed"]},
    package_dir={"": "azure-iot-service"},
    zip_safe=False,
)
