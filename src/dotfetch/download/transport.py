"""
HTTP Transport

A thin wrapper around a requests Session that applies the proxy policy, the
long download timeout and the fixed-delay retry to every GET.
"""

import os
import time
from typing import Dict, Optional
from urllib.parse import quote, urlsplit, urlunsplit

import requests

from dotfetch.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_DELAY,
)
from dotfetch.log_utils import logger
from dotfetch.utils import get_user_agent, retry_call


def _with_netrc_credentials(proxy_address: str) -> str:
    """
    Embed the user's netrc credentials for the proxy host into the proxy URL.

    The URL is returned unchanged when it already carries credentials or when
    netrc has no entry for the host.
    """
    parts = urlsplit(proxy_address)
    if parts.username or not parts.hostname:
        return proxy_address
    auth = requests.utils.get_netrc_auth(proxy_address)
    if not auth:
        logger.debug(f"No default credentials found for proxy {parts.hostname}")
        return proxy_address
    user, password = auth
    netloc = f"{quote(user, safe='')}:{quote(password, safe='')}@{parts.netloc}"
    return urlunsplit(
        (parts.scheme, netloc, parts.path, parts.query, parts.fragment)
    )


class Transport:
    """
    Performs single HTTP GETs for metadata and artifacts.

    An explicit proxy address always wins. Without one, the environment's
    proxy configuration is probed per URL (honouring no_proxy) and probing
    errors are ignored.
    """

    def __init__(
        self,
        proxy_address: Optional[str] = None,
        proxy_use_default_credentials: bool = False,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ):
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay

        self.proxy_address = proxy_address
        if proxy_address and proxy_use_default_credentials:
            self.proxy_address = _with_netrc_credentials(proxy_address)

        self.session = requests.Session()
        # Proxies are chosen by _proxies_for(), not by requests' env lookup
        self.session.trust_env = False
        self.session.headers.update({"User-Agent": get_user_agent()})

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "Transport":
        return self

    def __exit__(self, *_exc_info) -> None:
        self.close()

    def _proxies_for(self, url: str) -> Dict[str, str]:
        """
        Return the proxies mapping to use for `url`.
        """
        if self.proxy_address:
            return {"http": self.proxy_address, "https": self.proxy_address}

        try:
            proxies = requests.utils.get_environ_proxies(url)
        except Exception as e:  # noqa: BLE001
            logger.debug(f"Default proxy detection failed for {url}: {e}")
            return {}

        if proxies:
            logger.debug(f"Using system proxy configuration for {url}")
        return dict(proxies)

    def get(
        self, url: str, out_file: Optional[str] = None
    ) -> Optional[requests.Response]:
        """
        GET `url`, retrying failures with a fixed delay.

        Parameters:
            url (str): URL to fetch.
            out_file (Optional[str]): When given, the body is streamed to this path.

        Returns:
            Optional[requests.Response]: The response when `out_file` is omitted, otherwise None.

        Raises:
            requests.RequestException: Network or HTTP failure on the final attempt.
            OSError: Failure writing `out_file` on the final attempt.
        """
        return retry_call(
            lambda: self._get_once(url, out_file),
            max_attempts=self.max_attempts,
            delay=self.retry_delay,
        )

    def _get_once(
        self, url: str, out_file: Optional[str]
    ) -> Optional[requests.Response]:
        logger.debug(f"GET {url}")
        response = self.session.get(
            url,
            stream=out_file is not None,
            timeout=self.timeout,
            proxies=self._proxies_for(url),
        )
        logger.debug(f"Received HTTP {response.status_code} for {url}")
        try:
            response.raise_for_status()
            if out_file is None:
                return response
            self._stream_to_file(response, url, out_file)
            return None
        finally:
            if out_file is not None:
                response.close()

    def _stream_to_file(
        self, response: requests.Response, url: str, out_file: str
    ) -> None:
        temp_path = f"{out_file}.tmp.{os.getpid()}.{int(time.time() * 1000)}"
        start_time = time.time()
        downloaded_bytes = 0
        try:
            with open(temp_path, "wb") as file:
                for chunk in response.iter_content(chunk_size=DEFAULT_CHUNK_SIZE):
                    if chunk:
                        file.write(chunk)
                        downloaded_bytes += len(chunk)
            os.replace(temp_path, out_file)
        finally:
            if os.path.exists(temp_path):
                try:
                    os.remove(temp_path)
                except OSError as e_rm:
                    logger.debug(f"Error removing temp file {temp_path}: {e_rm}")

        logger.debug(
            "Downloaded %d bytes from %s in %.2fs",
            downloaded_bytes,
            url,
            time.time() - start_time,
        )
