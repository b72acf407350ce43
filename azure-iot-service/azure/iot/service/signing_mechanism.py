# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
import abc
import base64
import binascii
import hmac
import hashlib
from typing import AnyStr


class SigningMechanism(abc.ABC):
    @abc.abstractmethod
    async def sign(self, data_str: AnyStr) -> str:
        # NOTE: This is a coroutine so that implementations backed by an external signer
        # (e.g. an HSM or remote key vault) share the same interface.
        pass


class SymmetricKeySigningMechanism(SigningMechanism):
    def __init__(self, key: AnyStr) -> None:
        """
        A mechanism that signs data using a symmetric key, such as the key of an IoT Hub
        shared access policy

        :param key: Symmetric Key (base64 encoded)
        :type key: str or bytes

        :raises: ValueError if provided key is invalid
        """
        if isinstance(key, str):
            key_bytes = key.encode("utf-8")
        else:
            key_bytes = key

        try:
            self._signing_key = base64.b64decode(key_bytes, validate=True)
        except binascii.Error:
            raise ValueError("Invalid Symmetric Key")

    async def sign(self, data_str: AnyStr) -> str:
        """
        Sign a data string with symmetric key and the HMAC-SHA256 algorithm.

        :param data_str: Data string to be signed
        :type data_str: str or bytes

        :returns: The signed data, base64 encoded
        :rtype: str

        :raises: ValueError if an invalid data string is provided
        """
        if isinstance(data_str, str):
            data_bytes = data_str.encode("utf-8")
        else:
            data_bytes = data_str

        try:
            hmac_digest = hmac.HMAC(
                key=self._signing_key, msg=data_bytes, digestmod=hashlib.sha256
            ).digest()
        except TypeError:
            raise ValueError("Unable to sign string using the provided symmetric key")
        return base64.b64encode(hmac_digest).decode("utf-8")
