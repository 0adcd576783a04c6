# SPDX-License-Identifier: BSD-3-Clause

"""Client for the web service of the Nu Html Checker (v.Nu).

`VNUClient` submits documents to the checker web service and returns
the checker's findings. By default the public instance run by the W3C
is used; you can also run your own instance, see
<https://validator.github.io/>.

`VNUClient.request` raises an exception when the service cannot be
used, while `VNUClient.validate` never does: it reports a failure to
reach the service as a single error message, so the caller always has
a result to present.
"""

from __future__ import annotations

import json
from gzip import GzipFile
from http.client import HTTPConnection, HTTPException, HTTPResponse, HTTPSConnection
from io import BytesIO
from logging import getLogger
from threading import RLock
from typing import Any, Dict, Mapping, Optional, Tuple, Union
from urllib.parse import urljoin, urlsplit

from htmlvalidator.message import contact_error_result, parse_messages
from htmlvalidator.version import USER_AGENT

_LOG = getLogger(__name__)

DEFAULT_VALIDATOR_URL = "https://validator.w3.org/nu/"
"""The public checker instance."""

DEFAULT_TIMEOUT = 30.0
"""Number of seconds to wait for the checker before giving up."""

_LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


class RedirectError(HTTPException):
    """Raised when a redirect status from the service cannot be handled."""

    msg = property(lambda self: self.args[0], doc="""Error message.""")

    url = property(
        lambda self: self.args[1], doc="""URL that we were redirected from."""
    )

    def __init__(self, msg: str, url: str):
        super().__init__(msg, url)

    def __str__(self) -> str:
        return "%s at %s" % self.args


class RequestFailed(HTTPException):
    """Raised when a response has a non-successful status code."""

    msg = property(lambda self: self.args[0], doc="""Error message.""")

    status = property(lambda self: self.args[1], doc="""HTTP status code.""")

    def __init__(self, response: HTTPResponse):
        super().__init__(response.reason, response.status)

    def __str__(self) -> str:
        return "%s (%d)" % self.args


class VNUClient:
    """Manages a connection to the checker web service.

    A connection will be opened on demand but has to be closed explicitly,
    either by calling the `VNUClient.close` method or by using the client
    object as the context manager in a `with` statement.
    A client with a closed connection can be used again: the connection
    will be re-opened.
    A client can be shared between threads: requests that use the
    connection are made one at a time.
    """

    def __init__(
        self,
        url: str = DEFAULT_VALIDATOR_URL,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        user_agent: str = USER_AGENT,
    ):
        """Initializes a client that connects to the v.Nu checker at `url`."""
        self.service_url = url
        self.timeout = timeout
        self.user_agent = user_agent
        self._connection: Optional[HTTPConnection] = None
        self._remote: Optional[Tuple[str, str]] = None
        self._lock = RLock()

    def __enter__(self) -> "VNUClient":
        return self

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        self.close()

    def __connect(self, url: str) -> HTTPConnection:
        """Returns an HTTPConnection instance for the given URL string.
        Raises InvalidURL if the URL string cannot be parsed.
        Raises OSError if the URL uses an unsupported scheme.
        """
        url_parts = urlsplit(url)
        scheme = url_parts.scheme
        netloc = url_parts.netloc

        if self._connection:
            if self._remote == (scheme, netloc):
                # Re-use existing connection.
                return self._connection
            else:
                self.close()

        connection_factory: Any
        if scheme == "http":
            connection_factory = HTTPConnection
        elif scheme == "https":
            connection_factory = HTTPSConnection
        elif scheme:
            raise OSError(f"Unsupported URL scheme: {scheme}")
        else:
            raise OSError(f'URL "{url}" lacks a scheme (such as "http:")')

        self._connection = connection = connection_factory(
            netloc, timeout=self.timeout
        )
        self._remote = (scheme, netloc)

        return connection

    def close(self) -> None:
        """Closes the current connection.

        Does nothing if there is no open connection.
        """
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None
                self._remote = None

    def __post(
        self, url: str, data: bytes, content_type: str
    ) -> Tuple[HTTPResponse, Optional[bytes]]:
        """Makes a single POST request.
        Returns a pair consisting of the closed response object (containing
        status and headers) and the response body (or None if unsuccessful).
        """
        url_parts = urlsplit(url)
        request = url_parts.path or "/"
        if url_parts.query:
            request += "?" + url_parts.query

        headers = {
            "Content-Type": content_type,
            "User-Agent": self.user_agent,
        }

        # Compression is worthwhile when using an actual network.
        if url_parts.hostname not in _LOCAL_HOSTS:
            headers["Accept-Encoding"] = "gzip"
            headers["Content-Encoding"] = "gzip"
            with BytesIO() as buf:
                with GzipFile(None, "wb", 6, buf) as zfile:
                    zfile.write(data)
                body = buf.getvalue()
        else:
            headers["Accept-Encoding"] = "identity, gzip;q=0.5"
            body = data

        try:
            connection = self.__connect(url)
            connection.request("POST", request, body, headers)
            response = connection.getresponse()

            if 200 <= response.status < 300:
                encoding = response.getheader("Content-Encoding", "identity")
                if encoding.lower() in ("gzip", "x-gzip"):
                    with GzipFile(fileobj=response) as zfile:
                        response_body: Optional[bytes] = zfile.read()
                else:
                    response_body = response.read()
            else:
                # Drain the body to keep the connection usable.
                response.read()
                response_body = None

            response.close()
            return response, response_body
        except (HTTPException, OSError):
            # Do not re-use a connection in an unknown state.
            self.close()
            raise

    def __request_with_redirects(
        self, url: str, data: bytes, content_type: str
    ) -> str:
        """Makes an HTTP request to the checker service.
        Returns the reply body as a string.
        """
        redirect_count = 0
        while True:
            response, body = self.__post(url, data, content_type)

            status = response.status
            if 200 <= status < 300 and body is not None:
                charset = response.msg.get_content_charset("utf-8")
                return body.decode(charset)
            elif status in (301, 302, 307, 308):
                # Note: RFC 7231 states that we MAY handle redirects
                #       automatically, unlike the obsolete RFC 2616.

                # Find new URL.
                new_url = response.getheader("Location")
                if new_url is None:
                    raise RedirectError(f"Redirect ({status:d}) without Location", url)
                new_url = urljoin(url, new_url)
                if new_url == url:
                    raise RedirectError("Redirect loop", url)
                url = new_url

                # Guard against infinite or excessive redirect chains.
                redirect_count += 1
                if redirect_count > 12:
                    raise RedirectError("Maximum redirect count exceeded", url)
            else:
                raise RequestFailed(response)

    def request_url(self) -> str:
        """Returns the URL to post documents to, asking for JSON output."""
        url = self.service_url
        query = urlsplit(url).query
        if "out=json" in query.split("&"):
            return url
        return url + ("&" if query else "?") + "out=json"

    def request(self, data: bytes, content_type: str) -> Dict[str, Any]:
        """Feeds the given document to the checker.

        Parameters:

        data
            Document to check, as `bytes`.
        content_type
            Media type for the document.
            This string is sent as the value for the HTTP "Content-Type"
            header, so it can also include encoding information,
            for example "text/html; charset=utf-8".

        Returns:

        dict
            The reply object, containing a "messages" array as described in
            [the checker's JSON output format](
            https://github.com/validator/validator/wiki/Output-»-JSON).

        Raises:

        OSError
            When a low-level I/O error occurs.
        HTTPException
            When an HTTP error occurs.
        ValueError
            When the response body could not be decoded or parsed.
        """
        with self._lock:
            reply_str = self.__request_with_redirects(
                self.request_url(), data, content_type
            )
        reply = json.loads(reply_str)
        # Reject replies that do not have the structure we rely on.
        parse_messages(reply)
        return reply

    def validate(
        self, content_type: str, content: Union[str, bytes]
    ) -> Mapping[str, Any]:
        """Checks a document, reporting failure to reach the checker
        as a result instead of an exception.

        Text content is sent encoded as UTF-8.

        Returns:

        dict
            The reply object from the checker or, if the checker could not
            be used, a reply object containing a single error message
            saying so.
        """
        data = content.encode("utf-8") if isinstance(content, str) else content
        try:
            return self.request(data, content_type)
        except (HTTPException, OSError, EOFError) as ex:
            _LOG.warning("Request to HTML checker failed: %s", ex)
        except ValueError as ex:
            _LOG.warning("Parsing reply from HTML checker failed: %s", ex)
        return contact_error_result()
