"""
Marco HTTP Request Dispatcher

Executes one authenticated JSON request against the bridge and turns the
outcome into a Result. Nothing is raised across this boundary and nothing
is retried; the polling cadence of the caller is the retry mechanism.
The whole exchange is bounded by BridgeConfig.deadline, not just each read.
"""

import json
import logging
import queue
import threading
from enum import Enum
from typing import Any, Optional, Tuple, Union

import requests

from .config import BridgeConfig, StatusPolicy
from .result import Failure, FailureKind, Result
from .version import __version__

logger = logging.getLogger(__name__)

BODY_CHUNK_SIZE = 256


class RequestDeadlineExceeded(requests.exceptions.Timeout):
    """The bridge did not deliver a complete response within the deadline."""


class HttpMethod(Enum):
    """HTTP verbs understood by the dispatcher."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @classmethod
    def coerce(cls, method: Union['HttpMethod', str]) -> 'HttpMethod':
        if isinstance(method, cls):
            return method
        return cls(str(method).upper())


class RequestDispatcher:
    """
    Stateless HTTP+JSON executor for the Marco bridge.

    Each call opens its own connection; the only state held is the
    immutable BridgeConfig.

    Usage:
        dispatcher = RequestDispatcher(BridgeConfig(host="marco", token="abc"))
        result = dispatcher.execute("GET", "/vibeCheck", response_type=HealthStatus)
        if result.ok:
            print(result.value.ok)
    """

    USER_AGENT = f"Polo Bridge Client/{__version__}"

    def __init__(self, config: BridgeConfig):
        self._config = config

    @property
    def config(self) -> BridgeConfig:
        return self._config

    def build_url(self, path: str) -> str:
        if not path.startswith('/'):
            path = '/' + path
        return self._config.base_url + path

    def build_headers(self) -> dict:
        # An empty token is still sent; the bridge answers with its own error
        return {
            'Authorization': f"Bearer {self._config.token}",
            'Content-Type': 'application/json',
            'User-Agent': self.USER_AGENT,
        }

    def execute(
        self,
        method: Union[HttpMethod, str],
        path: str,
        body: Any = None,
        response_type: Optional[type] = None
    ) -> Result:
        """
        Perform one request.

        Args:
            method: HTTP verb
            path: Bridge-relative route, e.g. "/chat"
            body: JSON-serializable value, or an object with to_api();
                ignored for GET
            response_type: Class with a from_api() classmethod, or None when
                no response body is expected

        Returns:
            Result holding the parsed response (or None), or a Failure
        """
        try:
            verb = HttpMethod.coerce(method)
        except ValueError:
            failure = Failure(FailureKind.UNEXPECTED, f"Unsupported HTTP method: {method}")
            logger.error(f"Refusing request to {path}: {failure.message}")
            return Result.fail(failure)

        url = self.build_url(path)

        try:
            kwargs = {
                'headers': self.build_headers(),
                'timeout': self._config.timeout,
            }
            if body is not None and verb is not HttpMethod.GET:
                kwargs['data'] = self._encode_body(body)

            status, content = self._exchange(verb, url, kwargs)

        except requests.exceptions.Timeout as e:
            logger.warning(f"Bridge request timed out ({verb.value} {url}): {e}")
            return Result.fail(Failure(FailureKind.TIMEOUT, str(e)))

        except requests.exceptions.ConnectionError as e:
            logger.warning(f"Cannot reach bridge at {self._config.base_url}: {e}")
            return Result.fail(Failure(FailureKind.UNREACHABLE, str(e)))

        except (requests.exceptions.RequestException, TypeError, ValueError) as e:
            logger.exception(f"Unexpected error during {verb.value} {url}")
            return Result.fail(Failure(FailureKind.UNEXPECTED, f"{type(e).__name__}: {e}"))

        return self._handle_response(verb, path, status, content, response_type)

    def _encode_body(self, body: Any) -> str:
        if hasattr(body, 'to_api'):
            body = body.to_api()
        return json.dumps(body)

    def _exchange(self, verb: HttpMethod, url: str, kwargs: dict) -> Tuple[int, bytes]:
        """
        Run the request on a worker thread and wait at most config.deadline.

        requests' read timeout bounds each socket read, not the whole response.
        """
        outcome: queue.Queue = queue.Queue(maxsize=1)
        cancelled = threading.Event()

        def transfer():
            try:
                outcome.put((_transfer(verb, url, kwargs, cancelled), None))
            except Exception as e:
                outcome.put((None, e))

        worker = threading.Thread(target=transfer, daemon=True, name="PoloRequest")
        worker.start()

        try:
            value, error = outcome.get(timeout=self._config.deadline)
        except queue.Empty:
            cancelled.set()
            raise RequestDeadlineExceeded(
                f"no complete response within {self._config.deadline}s"
            ) from None

        if error is not None:
            raise error
        return value

    def _handle_response(
        self,
        verb: HttpMethod,
        path: str,
        status: int,
        content: bytes,
        response_type: Optional[type]
    ) -> Result:

        if status == 404:
            logger.error(f"An invalid endpoint was called for: {verb.value} {path}")
            return Result.fail(Failure(
                FailureKind.INVALID_ENDPOINT,
                f"{verb.value} {path} not found",
                status_code=status,
            ))

        if not 200 <= status < 300:
            if self._config.status_policy is StatusPolicy.STRICT:
                logger.error(f"Bridge rejected {verb.value} {path} with HTTP {status}")
                return Result.fail(Failure(
                    FailureKind.REJECTED,
                    _snippet(content),
                    status_code=status,
                ))
            logger.warning(
                f"Bridge answered {verb.value} {path} with HTTP {status}; "
                f"parsing body as a success (lenient status policy)"
            )

        if response_type is None:
            return Result.success(None)

        try:
            data = json.loads(content)
            if data is None:
                raise ValueError("response body is null")
            value = response_type.from_api(data)

        except (ValueError, TypeError, KeyError) as e:
            logger.error(
                f"Malformed response to {verb.value} {path} "
                f"(expected {response_type.__name__}): {e}"
            )
            return Result.fail(Failure(
                FailureKind.MALFORMED_RESPONSE,
                str(e) or "empty response body",
                status_code=status,
            ))

        except Exception as e:
            logger.exception(f"Unexpected error reading response to {verb.value} {path}")
            return Result.fail(Failure(
                FailureKind.UNEXPECTED,
                f"{type(e).__name__}: {e}",
                status_code=status,
            ))

        return Result.success(value)


def _transfer(
    verb: HttpMethod,
    url: str,
    kwargs: dict,
    cancelled: threading.Event
) -> Tuple[int, bytes]:
    """Send one request and read the whole body, stopping early if cancelled."""
    response = requests.request(verb.value, url, stream=True, **kwargs)
    try:
        chunks = []
        for chunk in response.iter_content(chunk_size=BODY_CHUNK_SIZE):
            if cancelled.is_set():
                break
            chunks.append(chunk)
        return response.status_code, b"".join(chunks)
    finally:
        response.close()


def _snippet(content: bytes, limit: int = 200) -> str:
    """First part of a response body for log and failure messages."""
    return content[:limit].decode("utf-8", errors="replace")
