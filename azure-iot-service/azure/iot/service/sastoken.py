# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
"""This module contains tools for working with Shared Access Signature (SAS) Tokens"""

import asyncio
import logging
import time
import urllib.parse
from typing import Dict, List, Optional
from .signing_mechanism import SigningMechanism


logger = logging.getLogger(__name__)

DEFAULT_TOKEN_UPDATE_MARGIN: int = 120
REQUIRED_SASTOKEN_FIELDS: List[str] = ["sr", "sig", "se"]
OPTIONAL_SASTOKEN_FIELDS: List[str] = ["skn"]
TOKEN_FORMAT: str = "SharedAccessSignature sr={resource}&sig={signature}&se={expiry}"
SERVICE_TOKEN_FORMAT: str = TOKEN_FORMAT + "&skn={key_name}"


class SasTokenError(Exception):
    """Error in SasToken"""

    pass


class SasToken:
    def __init__(self, sastoken_str: str) -> None:
        """Create a SasToken object from a SAS Token string
        :param str sastoken_str: The SAS Token string

        :raises: ValueError if SAS Token string is invalid
        """
        self._token_str: str = sastoken_str
        self._token_info: Dict[str, str] = _get_sastoken_info_from_string(sastoken_str)

    def __str__(self) -> str:
        return self._token_str

    def is_expired(self) -> bool:
        return time.time() >= self.expiry_time

    @property
    def expiry_time(self) -> float:
        # NOTE: Time is typically expressed in float in Python, even though a
        # SAS Token expiry time should be a whole number.
        return float(self._token_info["se"])

    @property
    def resource_uri(self) -> str:
        uri = self._token_info["sr"]
        return urllib.parse.unquote(uri)

    @property
    def signature(self) -> str:
        signature = self._token_info["sig"]
        return urllib.parse.unquote(signature)

    @property
    def key_name(self) -> Optional[str]:
        """Name of the shared access policy the token was signed with, if any"""
        return self._token_info.get("skn")


class SasTokenGenerator:
    def __init__(
        self,
        signing_mechanism: SigningMechanism,
        uri: str,
        key_name: Optional[str] = None,
        ttl: int = 3600,
    ) -> None:
        """An object that can generate SasTokens for an IoT Hub by signing them with a key

        :param signing_mechanism: The signing mechanism that will be used to sign data
        :type signing mechanism: :class:`SigningMechanism`
        :param str uri: The URI of the resource you are generating a tokens to access.
            For IoT Hub service operations this is the hub hostname.
        :param str key_name: Name of the shared access policy. Required by IoT Hub for
            service tokens, which carry it as the `skn` field.
        :param int ttl: Time to live for generated tokens, in seconds (default 3600)
        """
        self.signing_mechanism = signing_mechanism
        self.uri = uri
        self.key_name = key_name
        self.ttl = ttl

    async def generate_sastoken(self) -> SasToken:
        """Generate a new SasToken

        :raises: SasTokenError if the token cannot be generated
        """
        expiry_time = int(time.time()) + self.ttl
        url_encoded_uri = urllib.parse.quote(self.uri, safe="")
        message = url_encoded_uri + "\n" + str(expiry_time)
        try:
            signature = await self.signing_mechanism.sign(message)
        except Exception as e:
            raise SasTokenError("Unable to generate SasToken") from e
        fields = {
            "resource": url_encoded_uri,
            "signature": urllib.parse.quote(signature, safe=""),
            "expiry": str(expiry_time),
        }
        if self.key_name:
            fields["key_name"] = urllib.parse.quote(self.key_name, safe="")
            return SasToken(SERVICE_TOKEN_FORMAT.format(**fields))
        return SasToken(TOKEN_FORMAT.format(**fields))


class SasTokenProvider:
    """Keeps a valid SasToken available, renewing it in the background before it expires"""

    def __init__(self, generator: SasTokenGenerator) -> None:
        """
        :param generator: A SasTokenGenerator to generate SasTokens with
        :type generator: SasTokenGenerator
        """
        self._generator = generator
        self._token_update_margin = DEFAULT_TOKEN_UPDATE_MARGIN

        # Will be set upon `.start()`
        self._current_token: Optional[SasToken] = None
        self._renewal_task: Optional[asyncio.Task[None]] = None

    async def _keep_token_fresh(self):
        generate_time = self._current_token.expiry_time - self._token_update_margin
        while True:
            await _wait_until(generate_time)
            try:
                logger.debug("Updating SAS Token...")
                self._current_token = await self._generator.generate_sastoken()
                logger.debug("SAS Token update succeeded")
                generate_time = self._current_token.expiry_time - self._token_update_margin
            except Exception:
                logger.error("SAS Token renewal failed. Trying again in 10 seconds")
                generate_time = time.time() + 10

    async def start(self) -> None:
        """Generate the initial SasToken and begin renewing it in the background

        :raises: SasTokenError if the initial SasToken cannot be generated, or is already expired
        """
        if self._renewal_task:
            logger.debug("SasTokenProvider already running, no need to start")
            return
        logger.debug("Starting SasTokenProvider")
        initial_token = await self._generator.generate_sastoken()
        if initial_token.is_expired():
            raise SasTokenError("Newly generated SAS Token has already expired")
        self._current_token = initial_token
        self._renewal_task = asyncio.create_task(self._keep_token_fresh())

    async def stop(self) -> None:
        """Stop renewing, and clear the current token. Does nothing if already stopped."""
        if not self._renewal_task:
            logger.debug("SasTokenProvider was not running, no need to stop")
            return
        logger.debug("Stopping SasTokenProvider")
        self._renewal_task.cancel()
        await asyncio.gather(self._renewal_task, return_exceptions=True)
        self._renewal_task = None
        self._current_token = None

    def get_current_sastoken(self) -> SasToken:
        """Return the current SasToken

        :raises: RuntimeError if the SasTokenProvider has not been started
        """
        if not self._current_token:
            raise RuntimeError("SasTokenProvider is not running")
        return self._current_token


def _get_sastoken_info_from_string(sastoken_string: str) -> Dict[str, str]:
    """Given a SAS Token string, return a dictionary of it's keys and values"""
    pieces = sastoken_string.split("SharedAccessSignature ")
    if len(pieces) != 2:
        raise ValueError("Invalid SAS Token string: Not a SAS Token ")

    try:
        sastoken_info = dict(map(str.strip, sub.split("=", 1)) for sub in pieces[1].split("&"))  # type: ignore
    except Exception as e:
        raise ValueError("Invalid SAS Token string: Incorrectly formatted") from e

    if not all(key in sastoken_info for key in REQUIRED_SASTOKEN_FIELDS):
        raise ValueError("Invalid SAS Token string: Not all required fields present")

    known_fields = REQUIRED_SASTOKEN_FIELDS + OPTIONAL_SASTOKEN_FIELDS
    if not all(key in known_fields for key in sastoken_info):
        logger.warning("Unexpected fields present in SAS Token")

    return sastoken_info


async def _wait_until(when: float) -> None:
    """Wait until a specific time has passed (accurate within 1 second).

    :param float when: The time to wait for, in seconds, since epoch
    """
    while time.time() < when:
        await asyncio.sleep(1)
