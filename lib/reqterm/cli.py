"""
Reqterm - Command Line

curl-like startup arguments: they seed the request panes and override
general options loaded from the config file.

Copyright (c) 2025 Artel Team
Licensed under Artel Team Non-Commercial License
"""

import argparse
import logging
import os
import sys
from urllib.parse import parse_qsl, quote, urlsplit, urlunsplit

from . import __version__
from .config import Config, check_tls_version, load_config
from .constants import (
    CONTENT_TYPES,
    HTTP_METHODS_WITH_BODY,
    REQUEST_DATA_VIEW,
    REQUEST_HEADERS_VIEW,
    REQUEST_METHOD_VIEW,
    RESPONSE_BODY_VIEW,
    URL_PARAMS_VIEW,
    URL_VIEW,
)
from .errors import ConfigError, ReqtermError
from .lifecycle import proxy_url
from .persistence import load_request
from .utils import LOG_LEVELS, setup_logging

logger = logging.getLogger('CLI')

LEVEL_ALIASES = {
    "WARN": "WARNING",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reqterm",
        description="Interactive cli tool for HTTP inspection.",
    )
    parser.add_argument("url", nargs="?", help="Request URL; its query string seeds the URL params pane")
    parser.add_argument("-H", "--header", action="append", default=[], metavar="HEADER",
                        help="Add a request header ('Name: value')")
    parser.add_argument("-d", "--data", action="append", default=[], metavar="DATA",
                        help="Form encoded request body; repeated values are joined with &")
    parser.add_argument("--data-urlencode", action="append", default=[], metavar="DATA",
                        help="Like --data, but percent-encoded first")
    parser.add_argument("--data-binary", action="append", default=[], metavar="DATA",
                        help="Request body sent verbatim, without a Content-Type")
    parser.add_argument("-j", "--json", metavar="JSON", help="JSON request body")
    parser.add_argument("-F", "--form", metavar="DATA", help="Multipart form body (key=value, key=@path)")
    parser.add_argument("-X", "--request", metavar="METHOD", help="HTTP method")
    parser.add_argument("-t", "--timeout", metavar="MSECS", help="Request timeout in milliseconds")
    parser.add_argument("--compressed", action="store_true", help="Ask for a gzip/deflate encoded response")
    parser.add_argument("-k", "--insecure", action="store_true", help="Skip TLS certificate verification")
    parser.add_argument("-R", "--disable-redirects", action="store_true", help="Do not follow redirects")
    parser.add_argument("-T", "--tls", metavar="MIN,MAX", help="Allowed TLS version range, e.g. TLS1.2,TLS1.3")
    parser.add_argument("--tlsv1.0", dest="tls_pin", action="store_const", const="TLS1.0",
                        help="Use TLS 1.0 only")
    parser.add_argument("--tlsv1.1", dest="tls_pin", action="store_const", const="TLS1.1",
                        help="Use TLS 1.1 only")
    parser.add_argument("--tlsv1.2", dest="tls_pin", action="store_const", const="TLS1.2",
                        help="Use TLS 1.2 only")
    parser.add_argument("-1", "--tlsv1", action="store_true", help="Use TLS 1.0 to 1.2")
    parser.add_argument("-x", "--proxy", metavar="URL", help="HTTP(S) or SOCKS5 proxy URL")
    parser.add_argument("-e", "--editor", metavar="EDITOR", help="External editor command")
    parser.add_argument("-f", "--file", metavar="REQUEST", help="Load a previously saved request")
    parser.add_argument("-c", "--config", metavar="PATH", help="Custom configuration file")
    parser.add_argument("--log-level", metavar="LEVEL", help="TRACE | DEBUG | INFO | WARNING | ERROR")
    parser.add_argument("-v", "--version", action="store_true", help="Show version and exit")
    return parser


def normalize_level(value: str) -> str:
    """Normalize arbitrary user input into a supported logging level."""
    upper = value.strip().replace("-", "").replace("_", "").upper()
    upper = LEVEL_ALIASES.get(upper, upper)
    if upper not in LOG_LEVELS:
        raise ConfigError(f"Unsupported log level '{value}'")
    return upper


# ============================================================================
# SEEDING
# ============================================================================

def split_url(url: str, default_scheme: str) -> tuple[str, list[str]]:
    """Return the URL without its query, plus the query as key=value lines."""
    if not url.startswith(("http://", "https://")):
        url = f"{default_scheme}://{url}"
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError as exc:
        raise ConfigError(f"Invalid url: {exc}") from exc
    if not hostname:
        raise ConfigError("Invalid url")
    params = [f"{key}={value}" for key, value in parse_qsl(parts.query, keep_blank_values=True)]
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", "", parts.fragment)), params


def has_header(lines: list[str], name: str) -> bool:
    for line in lines:
        header_name, separator, _ = line.partition(": ")
        if separator and header_name == name:
            return True
    return False


def apply_args(args: argparse.Namespace, config: Config) -> dict[str, str]:
    """Override config options from args and return the initial pane texts."""
    general = config.general
    seed: dict[str, str] = {}

    if args.file:
        try:
            seed.update(load_request(args.file))
        except ReqtermError as exc:
            seed[RESPONSE_BODY_VIEW] = str(exc)

    if args.url:
        url, params = split_url(args.url, general.default_url_scheme)
        seed[URL_VIEW] = url
        if params:
            seed[URL_PARAMS_VIEW] = "\n".join(params)

    headers = [line for line in seed.get(REQUEST_HEADERS_VIEW, "").split("\n") if line.strip()]
    headers.extend(args.header)

    content_type = ""
    accept_types: list[str] = []
    body = None

    form_parts = list(args.data) + [quote(value, safe="/$&+,:;=@") for value in args.data_urlencode]
    if form_parts:
        content_type = "form"
        body = "&".join(form_parts)
    elif args.data_binary:
        body = "&".join(args.data_binary)
    if args.form is not None:
        content_type = "multipart"
        body = args.form
    if args.json is not None:
        content_type = "json"
        accept_types.append(CONTENT_TYPES["json"])
        body = args.json

    if args.request:
        seed[REQUEST_METHOD_VIEW] = args.request
        if not content_type and args.request.upper() in HTTP_METHODS_WITH_BODY and not args.data_binary:
            content_type = "form"
    elif body is not None:
        seed[REQUEST_METHOD_VIEW] = "POST"

    if body is not None:
        seed[REQUEST_DATA_VIEW] = body

    if content_type and not has_header(headers, "Content-Type"):
        headers.append(f"Content-Type: {CONTENT_TYPES[content_type]}")
    if accept_types and not has_header(headers, "Accept"):
        headers.append(f"Accept: {','.join(accept_types)}")
    if args.compressed and not any("Accept-Encoding" in line for line in headers):
        headers.append("Accept-Encoding: gzip, deflate")
    if headers:
        seed[REQUEST_HEADERS_VIEW] = "\n".join(headers)

    if args.timeout is not None:
        try:
            milliseconds = int(args.timeout)
        except ValueError:
            milliseconds = 0
        if milliseconds <= 0:
            raise ConfigError("Invalid timeout value")
        general.timeout = milliseconds / 1000

    if args.editor:
        general.editor = args.editor
    if args.insecure:
        general.insecure = True
    if args.disable_redirects:
        general.follow_redirects = False

    if args.tlsv1:
        general.tls_version_min, general.tls_version_max = "TLS1.0", "TLS1.2"
    if args.tls_pin:
        general.tls_version_min = general.tls_version_max = args.tls_pin
    if args.tls:
        low, _, high = args.tls.partition(",")
        high = high or low
        try:
            general.tls_version_min = check_tls_version(low)
        except ConfigError as exc:
            raise ConfigError(f"Minimum TLS version not found: {low}") from exc
        try:
            general.tls_version_max = check_tls_version(high)
        except ConfigError as exc:
            raise ConfigError(f"Maximum TLS version not found: {high}") from exc

    if args.proxy:
        try:
            proxy_url(args.proxy)
        except ValueError as exc:
            raise ConfigError(f"Invalid proxy URL: {exc}") from exc
        general.proxy = args.proxy

    logger.debug(f"Seeded panes: {sorted(seed)}")
    return seed


# ============================================================================
# ENTRY POINT
# ============================================================================

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.version:
        print(f"reqterm {__version__}")
        return 0

    try:
        if args.log_level:
            os.environ["LOGLEVEL"] = normalize_level(args.log_level)
    except ConfigError as exc:
        print(f"Error! {exc}", file=sys.stderr)
        return 1

    root_logger, log_file = setup_logging()
    root_logger.info(f"reqterm {__version__} starting, log file {log_file}")

    # Imported late so Textual is only loaded for interactive runs
    from .app import ReqtermApp

    try:
        config = load_config(args.config, required=args.config is not None)
        seed = apply_args(args, config)
        app = ReqtermApp(config, seed)
    except ConfigError as exc:
        logger.error(f"Startup failed: {exc}")
        print(f"Error! {exc}", file=sys.stderr)
        return 1

    app.run()
    root_logger.info("reqterm exited")
    return 0


__all__ = ['build_parser', 'normalize_level', 'split_url', 'has_header', 'apply_args', 'main']
