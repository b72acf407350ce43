# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------

import pytest

"""
NOTE: Tests that need a non-specific, arbitrary exception should use the following fixture.
The exception is of a type not defined anywhere else, guaranteeing it will be unexpected and
unhandled except by broad all-encompassing handling.
"""


@pytest.fixture
def arbitrary_exception():
    class ArbitraryException(Exception):
        pass

    e = ArbitraryException("arbitrary description")
    return e
