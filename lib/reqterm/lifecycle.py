"""
Reqterm - Request Lifecycle

Assembles a request from pane text, runs it on a worker thread with
requests, and hands the outcome back to the event loop through a
single-consumer update queue. Workers never touch panes.

Copyright (c) 2025 Artel Team
Licensed under Artel Team Non-Commercial License
"""

import gzip
import http
import logging
import os
import queue
import re
import ssl
import time
import zlib
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import Callable
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests
from requests.adapters import HTTPAdapter
from requests.structures import CaseInsensitiveDict
from rich.text import Text

from . import __version__
from .config import GeneralOptions
from .constants import (
    CONTENT_TYPES,
    DEFAULT_METHOD,
    HTTP_METHODS_WITH_BODY,
    REQUEST_DATA_VIEW,
    REQUEST_HEADERS_VIEW,
    REQUEST_METHOD_VIEW,
    URL_PARAMS_VIEW,
    URL_VIEW,
)
from .errors import DecodeError, InputError, NetworkError, ReqtermError
from .formatters import FormatterRegistry, media_type
from .history import Request
from .trace import ClientTrace


# ============================================================================
# REQUEST ASSEMBLY
# ============================================================================

@dataclass(frozen=True)
class RequestDraft:
    """Raw text of the five request panes, captured on the event loop."""

    url: str = ""
    method: str = ""
    params: str = ""
    data: str = ""
    headers: str = ""

    @classmethod
    def from_texts(cls, texts: dict[str, str]) -> "RequestDraft":
        return cls(
            url=texts.get(URL_VIEW, ""),
            method=texts.get(REQUEST_METHOD_VIEW, ""),
            params=texts.get(URL_PARAMS_VIEW, ""),
            data=texts.get(REQUEST_DATA_VIEW, ""),
            headers=texts.get(REQUEST_HEADERS_VIEW, ""),
        )


_BAD_ESCAPE = re.compile(r"%(?![0-9a-fA-F]{2})")


def parse_pairs(text: str) -> list[tuple[str, str]]:
    """Newline or &-separated key=value pairs, percent-decoded.

    Semicolons and malformed percent escapes are rejected.
    """
    pairs: list[tuple[str, str]] = []
    for segment in text.strip().replace("\n", "&").split("&"):
        segment = segment.strip("\r")
        if not segment:
            continue
        if ";" in segment:
            raise ValueError(f"invalid semicolon separator in query: {segment!r}")
        match = _BAD_ESCAPE.search(segment)
        if match:
            raise ValueError(f"invalid URL escape {segment[match.start():match.start() + 3]!r}")
        pairs.extend(parse_qsl(segment, keep_blank_values=True))
    return pairs


def build_url(url_text: str, params_text: str, default_scheme: str = "https") -> str:
    """Validate the URL and merge the params pane into its query by addition."""
    url_text = url_text.strip()
    if url_text and "://" not in url_text:
        url_text = f"{default_scheme}://{url_text}"
    try:
        parts = urlsplit(url_text)
        hostname = parts.hostname
    except ValueError as exc:
        raise InputError(f"URL parse error: {exc}") from exc
    if parts.scheme not in ("http", "https"):
        raise InputError(f"URL parse error: unsupported protocol scheme {parts.scheme!r}")
    if not hostname:
        raise InputError(f"URL parse error: no host in request URL {url_text!r}")

    try:
        query = parse_pairs(parts.query) + parse_pairs(params_text)
    except ValueError as exc:
        raise InputError(f"Invalid GET parameters: {exc}") from exc
    query.sort(key=lambda pair: pair[0])
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", urlencode(query), parts.fragment))


def parse_headers(headers_text: str) -> CaseInsensitiveDict:
    headers = CaseInsensitiveDict()
    for line in headers_text.strip().split("\n"):
        line = line.rstrip("\r")
        if not line:
            continue
        name, separator, value = line.partition(": ")
        if not separator or not name:
            raise InputError(f"Invalid header: {line}")
        headers[name] = value
    return headers


def build_body(method: str, data_text: str, headers: CaseInsensitiveDict, stack: ExitStack) -> dict:
    """Keyword arguments for requests carrying the body, if the method takes one.

    Files named by @path multipart values are opened on stack and streamed.
    """
    if method.upper() not in HTTP_METHODS_WITH_BODY:
        return {}

    data_text = data_text.strip()
    content_type = media_type(headers.get("Content-Type", ""))

    if content_type == CONTENT_TYPES["multipart"]:
        try:
            pairs = parse_pairs(data_text)
        except ValueError as exc:
            raise InputError(f"Invalid form data: {exc}") from exc
        files = []
        for key, value in pairs:
            # A literal value starting with @ cannot be expressed; it is always a path
            if value.startswith("@"):
                path = value[1:]
                try:
                    handle = stack.enter_context(open(path, "rb"))
                except OSError as exc:
                    raise InputError(f"Error: {exc}") from exc
                files.append((key, (os.path.basename(path), handle)))
            else:
                files.append((key, (None, value)))
        # requests writes its own Content-Type carrying the boundary
        del headers["Content-Type"]
        return {"files": files} if files else {"data": b""}

    if content_type == CONTENT_TYPES["form"]:
        data_text = data_text.replace("\n", "&")
    return {"data": data_text.encode("utf-8")}


# ============================================================================
# HTTP EXECUTION
# ============================================================================

TLS_VERSION_MAP = {
    "SSL3.0": ssl.TLSVersion.SSLv3,
    "TLS1.0": ssl.TLSVersion.TLSv1,
    "TLS1.1": ssl.TLSVersion.TLSv1_1,
    "TLS1.2": ssl.TLSVersion.TLSv1_2,
    "TLS1.3": ssl.TLSVersion.TLSv1_3,
}


class TLSAdapter(HTTPAdapter):
    """HTTPAdapter pinned to a TLS version window."""

    def __init__(self, ssl_context: ssl.SSLContext, **kwargs) -> None:
        self.ssl_context = ssl_context
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs):
        kwargs["ssl_context"] = self.ssl_context
        return super().init_poolmanager(*args, **kwargs)

    def proxy_manager_for(self, proxy, **proxy_kwargs):
        proxy_kwargs["ssl_context"] = self.ssl_context
        return super().proxy_manager_for(proxy, **proxy_kwargs)


@dataclass
class Outcome:
    """A finished exchange, not yet appended to History."""

    request: Request
    reason: str = ""
    header_items: list[tuple[str, str]] = field(default_factory=list)


def proxy_url(proxy: str) -> str:
    """Normalize a proxy URL for requests; socks:// means socks5."""
    if not proxy:
        return ""
    if "://" not in proxy:
        proxy = f"http://{proxy}"
    scheme, rest = proxy.split("://", 1)
    scheme = scheme.lower()
    if scheme == "socks":
        scheme = "socks5"
    if scheme not in ("http", "https", "socks5", "socks5h", "socks4"):
        raise ValueError(f"Unknown proxy protocol: {scheme}")
    return f"{scheme}://{rest}"


class HttpExecutor:
    """Builds a configured requests session and runs one exchange on it."""

    def __init__(self, options: GeneralOptions, trace: ClientTrace, registry: FormatterRegistry) -> None:
        self.logger = logging.getLogger('HttpExecutor')
        self.options = options
        self.trace = trace
        self.registry = registry

    def ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        try:
            context.minimum_version = TLS_VERSION_MAP[self.options.tls_version_min]
            context.maximum_version = TLS_VERSION_MAP[self.options.tls_version_max]
        except ValueError as exc:
            self.logger.warning(f"TLS version window not supported by this OpenSSL: {exc}")
        if self.options.insecure:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def build_session(self) -> requests.Session:
        session = requests.Session()
        # No implicit compression; the headers pane decides
        session.headers.pop("Accept-Encoding", None)
        session.headers["User-Agent"] = f"reqterm/{__version__}"
        session.verify = not self.options.insecure
        adapter = TLSAdapter(self.ssl_context())
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        proxy = proxy_url(self.options.proxy)
        if proxy:
            session.proxies = {"http": proxy, "https": proxy}
        session.hooks["response"].append(self.trace.response_hook)
        return session

    def execute(self, draft: RequestDraft) -> Outcome:
        method = draft.method.strip() or DEFAULT_METHOD
        url = build_url(draft.url, draft.params, self.options.default_url_scheme)
        headers = parse_headers(draft.headers)

        with ExitStack() as stack:
            body = build_body(method, draft.data, headers, stack)
            session = stack.enter_context(self.build_session())
            self.trace.write("Request(%s %s)", method, url)
            start = time.perf_counter()
            try:
                response = session.request(
                    method,
                    url,
                    headers=headers,
                    timeout=self.options.timeout,
                    allow_redirects=self.options.follow_redirects,
                    stream=True,
                    **body,
                )
                stack.callback(response.close)
                raw_body = response.raw.read(decode_content=False)
            except requests.exceptions.InvalidHeader as exc:
                raise InputError(f"Invalid header: {exc}") from exc
            except (requests.exceptions.InvalidURL, requests.exceptions.MissingSchema) as exc:
                raise InputError(f"URL parse error: {exc}") from exc
            except requests.exceptions.RequestException as exc:
                self.trace.write("Error(%s)", exc)
                raise NetworkError(f"Response error: {exc}") from exc
            duration = time.perf_counter() - start

        self.trace.write("Done(%s bytes in %.3fs)", len(raw_body), duration)

        if response.headers.get("Content-Encoding", "").lower() == "gzip":
            try:
                raw_body = gzip.decompress(raw_body)
            except (OSError, EOFError, zlib.error) as exc:
                self.trace.write("DecompressError(%s)", exc)
                raise DecodeError(f"Cannot uncompress response: {exc}") from exc

        content_type = response.headers.get("Content-Type", "")
        request = Request(
            url=draft.url,
            method=draft.method,
            params=draft.params,
            data=draft.data,
            headers=draft.headers,
            raw_body=raw_body,
            content_type=content_type,
            duration=duration,
            status_code=response.status_code,
            formatter=self.registry.for_content_type(content_type),
        )
        return Outcome(request, status_reason(response.status_code, response.reason), header_items(response))


def status_reason(code: int, fallback: str = "") -> str:
    try:
        return http.HTTPStatus(code).phrase
    except ValueError:
        return fallback or ""


def header_items(response) -> list[tuple[str, str]]:
    """Header name -> comma-joined values, one entry per name."""
    raw_headers = getattr(response.raw, "headers", None)
    items: dict[str, tuple[str, list[str]]] = {}
    source = raw_headers.items() if raw_headers is not None else response.headers.items()
    for name, value in source:
        key = name.lower()
        if key not in items:
            items[key] = (name, [])
        items[key][1].append(value)
    return [(name, ",".join(values)) for name, values in items.values()]


def render_response_headers(code: int, reason: str, items: list[tuple[str, str]]) -> str:
    lines = [f"HTTP/1.1 {code} {reason}".rstrip()]
    for name, value in sorted(items, key=lambda item: item[0].lower()):
        lines.append(f"{name}: {value}")
    return "\n".join(lines) + "\n"


def highlight_response_headers(text: str, status_code: int) -> Text:
    """Status line green for 200, red otherwise; header names in yellow."""
    styled = Text()
    lines = text.rstrip("\n").split("\n")
    styled.append(lines[0], style="green" if status_code == 200 else "red")
    for line in lines[1:]:
        styled.append("\n")
        name, separator, value = line.partition(":")
        if separator:
            styled.append(name + separator, style="yellow")
            styled.append(value)
        else:
            styled.append(line)
    styled.append("\n")
    return styled


# ============================================================================
# UPDATE QUEUE AND LIFECYCLE
# ============================================================================

class UpdateQueue:
    """Thread-safe FIFO of closures; only the event loop drains it."""

    def __init__(self, waker: Callable[[], None] | None = None) -> None:
        self.logger = logging.getLogger('UpdateQueue')
        self._queue: queue.SimpleQueue = queue.SimpleQueue()
        self.waker = waker

    def post(self, fn: Callable, *args) -> None:
        self._queue.put((fn, args))
        if self.waker is not None:
            self.waker()

    def drain(self) -> int:
        count = 0
        while True:
            try:
                fn, args = self._queue.get_nowait()
            except queue.Empty:
                return count
            count += 1
            try:
                fn(*args)
            except Exception:
                self.logger.exception(f"Posted update {getattr(fn, '__name__', fn)!r} failed")

    def empty(self) -> bool:
        return self._queue.empty()


Completion = Callable[[Outcome | None, ReqtermError | None], None]


class RequestLifecycle:
    """Runs submissions on a bounded worker pool, one completion per submission."""

    def __init__(
        self,
        options: GeneralOptions,
        updates: UpdateQueue,
        trace: ClientTrace,
        registry: FormatterRegistry,
        max_workers: int = 4,
    ) -> None:
        self.logger = logging.getLogger('RequestLifecycle')
        self.updates = updates
        self.executor = HttpExecutor(options, trace, registry)
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="reqterm-http")

    def submit(self, draft: RequestDraft, callback: Completion) -> Future:
        def work() -> None:
            outcome = None
            error = None
            try:
                outcome = self.executor.execute(draft)
            except ReqtermError as exc:
                self.logger.debug(f"Request failed: {exc}")
                error = exc
            except Exception as exc:
                self.logger.exception("Unexpected request failure")
                error = NetworkError(f"Request error: {exc}")
            # Exactly one completion per submission, success or failure
            self.updates.post(callback, outcome, error)

        self.logger.trace("RequestLifecycle:submit %s %s", draft.method, draft.url)
        return self._pool.submit(work)

    def shutdown(self) -> None:
        self._pool.shutdown(wait=False, cancel_futures=True)


__all__ = [
    'RequestDraft',
    'Outcome',
    'parse_pairs',
    'build_url',
    'parse_headers',
    'build_body',
    'proxy_url',
    'TLSAdapter',
    'HttpExecutor',
    'status_reason',
    'header_items',
    'render_response_headers',
    'highlight_response_headers',
    'UpdateQueue',
    'RequestLifecycle',
]
