"""The REST API connection."""

from __future__ import annotations

import logging
from typing import Literal

import requests
from requests.exceptions import HTTPError

from vergekit import config
from vergekit.errors import ApiError, VergeError

logger = logging.getLogger(__package__)

TOKEN_HEADER = "x-yottabyte-token"


def get_base_url(server: str) -> str:
    """Get the v4 API base URL for a server name or URL."""
    server = server.rstrip("/")
    if not server.startswith(("http://", "https://")):
        server = "https://" + server
    return server + "/api/v4"


def _error_detail(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason or ""
    if isinstance(body, dict):
        for key in ("err", "error", "message", "detail"):
            if body.get(key):
                return str(body[key])
    return str(body)


class Connection:
    """An authenticated session with one VergeOS system.

    A connection is passed explicitly to every operation; there is no global
    default connection.
    """

    def __init__(
        self,
        server: str,
        token: str | None = None,
        verify_ssl: bool = True,
        timeout: float = 30,
        session: requests.Session | None = None,
    ):
        self.server = server
        self.base_url = get_base_url(server)
        self.token = token
        # Only tokens obtained by logging in are deleted on close
        self.owns_token = False
        self.verify_ssl = verify_ssl
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        self.session.verify = verify_ssl
        if token is not None:
            self.session.headers[TOKEN_HEADER] = token

    @classmethod
    def from_settings(cls, settings: config.Settings | None = None):
        """Create a connection from the config, logging in if there is no
        saved token.
        """
        if settings is None:
            settings = config.read()
        if settings.server is None:
            raise VergeError("Config is missing server")
        if settings.token is not None:
            return cls(
                settings.server,
                token=settings.token,
                verify_ssl=settings.verify_ssl,
                timeout=settings.timeout,
            )
        if settings.username is None or settings.password is None:
            raise VergeError("Config is missing username or password")
        return connect(
            settings.server,
            settings.username,
            settings.password,
            verify_ssl=settings.verify_ssl,
            timeout=settings.timeout,
        )

    def _request(
        self,
        kind: Literal["get", "post", "put", "patch", "delete"],
        path: str,
        params: dict | None = None,
        json: dict | list | None = None,
        data: dict | bytes | None = None,
        headers: dict | None = None,
        as_json: bool = True,
        **kwargs,
    ):
        kwargs.setdefault("timeout", self.timeout)
        url = path if path.startswith("http") else self.base_url + path
        resp = self.session.request(
            kind.upper(),
            url,
            params=params,
            json=json,
            data=data,
            headers=headers,
            **kwargs,
        )
        try:
            resp.raise_for_status()
        except HTTPError:
            detail = _error_detail(resp)
            resp.close()
            logger.debug(f"{kind.upper()} {path} failed: {detail}")
            raise ApiError(resp.status_code, detail)
        if not as_json:
            return resp
        if not resp.content:
            return None
        return resp.json()

    def get(self, path: str, **kwargs):
        return self._request("get", path, **kwargs)

    def post(self, path: str, **kwargs):
        return self._request("post", path, **kwargs)

    def put(self, path: str, **kwargs):
        return self._request("put", path, **kwargs)

    def patch(self, path: str, **kwargs):
        return self._request("patch", path, **kwargs)

    def delete(self, path: str, **kwargs):
        return self._request("delete", path, **kwargs)

    def close(self) -> None:
        """Log out, deleting the token on the server, and close the session."""
        if self.token is not None and self.owns_token:
            try:
                self.delete(
                    self.server_url("/api/sys/tokens/" + self.token),
                    as_json=False,
                )
            except (ApiError, requests.RequestException) as e:
                logger.warning(f"Failed to delete API token: {e}")
            self.token = None
            self.session.headers.pop(TOKEN_HEADER, None)
        self.session.close()

    def server_url(self, path: str) -> str:
        return self.base_url[: -len("/api/v4")] + path

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def __repr__(self) -> str:
        return f"Connection(server={self.server!r})"


def connect(
    server: str,
    username: str,
    password: str,
    verify_ssl: bool = True,
    timeout: float = 30,
    session: requests.Session | None = None,
) -> Connection:
    """Authenticate with a server and return a connection holding the token."""
    conn = Connection(
        server, verify_ssl=verify_ssl, timeout=timeout, session=session
    )
    resp = conn.post(
        conn.server_url("/api/sys/tokens"),
        json={"login": username, "password": password},
        auth=(username, password),
    )
    token = resp.get("$key") if isinstance(resp, dict) else None
    if not token:
        raise VergeError(f"Login to {server} returned no token")
    conn.token = str(token)
    conn.owns_token = True
    conn.session.headers[TOKEN_HEADER] = conn.token
    logger.info(f"Connected to {server} as {username}")
    return conn
