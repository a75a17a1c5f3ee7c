import threading
from typing import Any

import requests

from billing.config import Settings, get_settings
from billing.core.exceptions import BillingError, ExternalCollaboratorError, NotFoundError, SessionExpiredError
from billing.core.logging import get_logger
from billing.models.domain import parse_model
from billing.models.responses import MessageResponse, TokenResponse

logger = get_logger(__name__)

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "X-Requested-With": "XMLHttpRequest",
}


class SessionStore:
    """key-value session storage for auth state"""

    TOKEN_KEY = "token"
    USER_KEY = "user"

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    @property
    def token(self) -> str | None:
        return self._data.get(self.TOKEN_KEY)


class ApiClient:
    """http client for the billing rest api"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
        store: SessionStore | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout or settings.api_timeout
        self.session = session or requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)
        self.store = store or SessionStore()

        self.csrf_cookie_name = settings.csrf_cookie_name
        self.csrf_header_name = settings.csrf_header_name
        self.refresh_path = settings.refresh_path
        self.auth_paths = settings.auth_paths_list

        # one refresh at a time, later callers reuse the new token
        self._refresh_lock = threading.Lock()

    def get(self, path: str, params: dict | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None, headers: dict | None = None) -> Any:
        return self.request("POST", path, json=json, headers=headers)

    def put(self, path: str, json: Any = None, headers: dict | None = None) -> Any:
        return self.request("PUT", path, json=json, headers=headers)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    def request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        json: Any = None,
        headers: dict | None = None,
    ) -> Any:
        """
        send a request and return the decoded json body

        a 401 on a regular endpoint triggers one token refresh and one replay

        args:
            method: http method
            path: path relative to the base url
            params: query parameters
            json: json body
            headers: extra headers

        returns:
            decoded json or none for empty bodies

        raises:
            SessionExpiredError: token missing, rejected and not refreshable
            NotFoundError: 404
            ExternalCollaboratorError: connection failure or other non-2xx
        """
        method = method.upper()
        token_used = self.store.token
        response = self._send(method, path, params, json, headers)

        if response.status_code == 401:
            if self._is_auth_path(path):
                self._drop_session()
                raise SessionExpiredError(
                    "Authentication failed",
                    details={"path": path, "status_code": 401},
                )

            self._refresh_token(token_used)
            response = self._send(method, path, params, json, headers)
            if response.status_code == 401:
                self._drop_session()
                raise SessionExpiredError(
                    "Session expired, please log in again",
                    details={"path": path, "status_code": 401},
                )

        return self._handle(response, method, path)

    def _send(
        self,
        method: str,
        path: str,
        params: dict | None,
        json: Any,
        headers: dict | None,
    ) -> requests.Response:
        request_headers = dict(headers or {})

        token = self.store.token
        if token:
            request_headers["Authorization"] = f"Bearer {token}"

        if method != "GET" and not self._is_auth_path(path):
            csrf_token = self.session.cookies.get(self.csrf_cookie_name)
            if csrf_token:
                request_headers[self.csrf_header_name] = csrf_token

        try:
            return self.session.request(
                method,
                self._url(path),
                params=params,
                json=json,
                headers=request_headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("billing api unreachable", method=method, path=path, error=str(e))
            raise ExternalCollaboratorError(
                "Unable to connect to the billing api",
                details={"method": method, "path": path, "error": str(e)},
            ) from e

    def _refresh_token(self, stale_token: str | None) -> None:
        """refresh the bearer token unless another caller already did"""
        with self._refresh_lock:
            current = self.store.token
            if current and current != stale_token:
                logger.debug("token already refreshed")
                return

            logger.info("refreshing auth token")
            try:
                response = self.session.request(
                    "POST",
                    self._url(self.refresh_path),
                    json={},
                    headers={},
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                self._drop_session()
                raise SessionExpiredError(
                    "Token refresh failed",
                    details={"error": str(e)},
                ) from e

            if response.status_code != 200:
                self._drop_session()
                logger.warning("token refresh rejected", status_code=response.status_code)
                raise SessionExpiredError(
                    "Session expired, please log in again",
                    details={"status_code": response.status_code},
                )

            try:
                token = TokenResponse.model_validate(response.json()).token
            except ValueError as e:
                self._drop_session()
                raise SessionExpiredError(
                    "Token refresh returned no token",
                    details={"error": str(e)},
                ) from e

            self.store.set(SessionStore.TOKEN_KEY, token)
            logger.info("auth token refreshed")

    def _handle(self, response: requests.Response, method: str, path: str) -> Any:
        status = response.status_code

        if 200 <= status < 300:
            if status == 204 or not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                raise ExternalCollaboratorError(
                    "Billing api returned invalid json",
                    details={"method": method, "path": path, "status_code": status},
                ) from e

        message = self._error_message(response)
        details = {"method": method, "path": path, "status_code": status, "message": message}

        if status == 404:
            logger.warning("resource not found", **details)
            raise NotFoundError(message or "The requested resource was not found", details=details)

        if status == 403:
            logger.warning("permission denied", **details)
        elif status == 429:
            logger.warning("rate limited", **details)
        elif status >= 500:
            logger.error("billing api server error", **details)
        else:
            logger.warning("billing api request failed", **details)

        raise ExternalCollaboratorError(message or f"Billing api error {status}", details=details)

    @staticmethod
    def _error_message(response: requests.Response) -> str | None:
        try:
            body = response.json()
        except ValueError:
            return None
        if not isinstance(body, dict):
            return None
        try:
            return parse_model(MessageResponse, body).text
        except BillingError:
            return None

    def _drop_session(self) -> None:
        self.store.clear()

    def _is_auth_path(self, path: str) -> bool:
        return any(auth_path in path for auth_path in self.auth_paths)

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"
