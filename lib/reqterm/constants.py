"""
Reqterm - Constants and Text Strings

Pane names, layout specs, HTTP methods, and all user-visible strings.
Extracted for easy maintenance and localization.

Copyright (c) 2025 Artel Team
Licensed under Artel Team Non-Commercial License
"""

# ============================================================================
# PANE NAMES
# ============================================================================

ALL_VIEWS = "global"

URL_VIEW = "url"
URL_PARAMS_VIEW = "get"
REQUEST_METHOD_VIEW = "method"
REQUEST_DATA_VIEW = "data"
REQUEST_HEADERS_VIEW = "headers"
STATUSLINE_VIEW = "status-line"
SEARCH_VIEW = "search"
RESPONSE_HEADERS_VIEW = "response-headers"
RESPONSE_BODY_VIEW = "response-body"

SEARCH_PROMPT_VIEW = "prompt"
POPUP_VIEW = "popup_view"
AUTOCOMPLETE_VIEW = "autocomplete_view"
ERROR_VIEW = "error_view"
HISTORY_VIEW = "history"
SAVE_DIALOG_VIEW = "save-dialog"
SAVE_RESULT_VIEW = "save-result"
METHOD_LIST_VIEW = "method-list"
HELP_VIEW = "help"
TRACE_VIEW = "trace"

# Focus order for nextView / prevView
VIEWS = [
    URL_VIEW,
    URL_PARAMS_VIEW,
    REQUEST_METHOD_VIEW,
    REQUEST_DATA_VIEW,
    REQUEST_HEADERS_VIEW,
    SEARCH_VIEW,
    RESPONSE_HEADERS_VIEW,
    RESPONSE_BODY_VIEW,
]

# Panes whose text makes up a request (and a saved request file)
REQUEST_VIEWS = (
    URL_VIEW,
    REQUEST_METHOD_VIEW,
    URL_PARAMS_VIEW,
    REQUEST_DATA_VIEW,
    REQUEST_HEADERS_VIEW,
)

# List popups hide the terminal cursor, text-entry popups show it
LIST_POPUPS = frozenset({HISTORY_VIEW, METHOD_LIST_VIEW, HELP_VIEW, TRACE_VIEW, SAVE_RESULT_VIEW})

# ============================================================================
# LAYOUT
# ============================================================================

MIN_WIDTH = 60
MIN_HEIGHT = 20

# Each coordinate is (fraction, absolute): value = round(fraction * dimension) + absolute.
# Rectangles are (x0, y0, x1, y1) with x1/y1 exclusive; frames are drawn inside.
VIEW_POSITIONS = {
    URL_VIEW: ((0.0, 0), (0.0, 0), (1.0, 0), (0.0, 3)),
    URL_PARAMS_VIEW: ((0.0, 0), (0.0, 3), (0.3, 0), (0.25, 0)),
    REQUEST_METHOD_VIEW: ((0.0, 0), (0.25, 0), (0.3, 0), (0.25, 3)),
    REQUEST_DATA_VIEW: ((0.0, 0), (0.25, 3), (0.3, 0), (0.5, 1)),
    REQUEST_HEADERS_VIEW: ((0.0, 0), (0.5, 1), (0.3, 0), (1.0, -2)),
    RESPONSE_HEADERS_VIEW: ((0.3, 0), (0.0, 3), (1.0, 0), (0.25, 3)),
    RESPONSE_BODY_VIEW: ((0.3, 0), (0.25, 3), (1.0, 0), (1.0, -2)),
    STATUSLINE_VIEW: ((0.0, 0), (1.0, -2), (1.0, 0), (1.0, -1)),
    SEARCH_PROMPT_VIEW: ((0.0, 0), (1.0, -1), (0.0, 8), (1.0, 0)),
    SEARCH_VIEW: ((0.0, 8), (1.0, -1), (1.0, 0), (1.0, 0)),
}

ERROR_POSITION = ((0.0, 0), (0.0, 0), (1.0, 0), (1.0, 0))

SEARCH_PROMPT = "search> "
HTTP_METHODS_WITH_BODY = ("POST", "PUT", "PATCH")

# Static pane properties; editors are assigned by the session at startup
VIEW_PROPERTIES = {
    URL_VIEW: {"title": "URL - press F1 for help", "editable": True},
    URL_PARAMS_VIEW: {"title": "URL params", "editable": True},
    REQUEST_METHOD_VIEW: {"title": "Method", "editable": True, "text": "GET"},
    REQUEST_DATA_VIEW: {"title": "Request data (POST/PUT/PATCH)", "editable": True},
    REQUEST_HEADERS_VIEW: {"title": "Request headers", "editable": True},
    RESPONSE_HEADERS_VIEW: {"title": "Response headers", "wrap": True},
    RESPONSE_BODY_VIEW: {"title": "Response body", "wrap": True},
    SEARCH_VIEW: {"frame": False, "editable": True},
    STATUSLINE_VIEW: {"frame": False},
    SEARCH_PROMPT_VIEW: {"frame": False, "text": SEARCH_PROMPT},
}

VIEW_TITLES = {
    POPUP_VIEW: "Info",
    ERROR_VIEW: "Error",
    HISTORY_VIEW: "History",
    SAVE_RESULT_VIEW: "Save Result (press enter to close)",
    METHOD_LIST_VIEW: "Methods",
    HELP_VIEW: "Help",
    TRACE_VIEW: "Trace",
}

SAVE_RESPONSE_TITLE = "Save Response (enter to submit, ctrl+q to cancel)"
LOAD_REQUEST_TITLE = "Load Request (enter to submit, ctrl+q to cancel)"
SAVE_REQUEST_TITLE = "Save Request (enter to submit, ctrl+q to cancel)"

HISTORY_POPUP_WIDTH = 100
METHOD_POPUP_WIDTH = 50
DIALOG_POPUP_WIDTH = 60
HELP_POPUP_SIZE = (60, 40)
TRACE_POPUP_SIZE = (80, 25)
AUTOCOMPLETE_MAX_HEIGHT = 10

# ============================================================================
# HTTP
# ============================================================================

METHODS = [
    "GET",
    "POST",
    "PUT",
    "DELETE",
    "PATCH",
    "OPTIONS",
    "TRACE",
    "CONNECT",
    "HEAD",
]

DEFAULT_METHOD = "GET"
DEFAULT_TIMEOUT = 60.0  # seconds

CONTENT_TYPES = {
    "json": "application/json",
    "form": "application/x-www-form-urlencoded",
    "multipart": "multipart/form-data",
}

TLS_VERSIONS = ("SSL3.0", "TLS1.0", "TLS1.1", "TLS1.2", "TLS1.3")

REQUEST_HEADERS = [
    "Accept",
    "Accept-Charset",
    "Accept-Encoding",
    "Accept-Language",
    "Accept-Datetime",
    "Authorization",
    "Cache-Control",
    "Connection",
    "Cookie",
    "Content-Length",
    "Content-MD5",
    "Content-Type",
    "Date",
    "Expect",
    "Forwarded",
    "From",
    "Host",
    "If-Match",
    "If-Modified-Since",
    "If-None-Match",
    "If-Range",
    "If-Unmodified-Since",
    "Max-Forwards",
    "Origin",
    "Pragma",
    "Proxy-Authorization",
    "Range",
    "Referer",
    "TE",
    "User-Agent",
    "Upgrade",
    "Via",
    "Warning",
    "X-Requested-With",
    "DNT",
    "X-Forwarded-For",
    "X-Forwarded-Host",
    "X-Forwarded-Proto",
    "Front-End-Https",
    "X-Http-Method-Override",
    "X-ATT-DeviceId",
    "X-Wap-Profile",
    "Proxy-Connection",
    "X-UIDH",
    "X-Csrf-Token",
    "X-Request-ID",
    "X-Correlation-ID",
]

# ============================================================================
# TRACE
# ============================================================================

TRACE_BUFFER_LENGTH = 20
TRACE_LINE_WIDTH = 80
TRACE_TIMESTAMP_FORMAT = "%H:%M:%S.%f"

# ============================================================================
# STATUS LINE
# ============================================================================

DEFAULT_STATUS_LINE = (
    "[reqterm {version}]{response_time} "
    "[Request no.: {request_number}/{history_size}] "
    "[Search type: {search_type}]"
)

# ============================================================================
# HARDCODED TEXT CONSTANTS
# ============================================================================

MSG_SENDING = "Sending request.."
MSG_TERMINAL_TOO_SMALL = "Terminal is too small"
MSG_NO_HISTORY = "[!] No items in history"
MSG_NO_RESULTS = "Error: no results"
MSG_NO_RESPONSE = "No response to save."
MSG_RESPONSE_SAVED = "Response saved successfully."
MSG_REQUEST_SAVED = "Request saved successfully."
MSG_HELP_HEADER = "Keybindings:"
MSG_TRACE_EMPTY = "[!] No trace events recorded"

TITLE_NO_RESULTS = "No results"
TITLE_RESULTS = "{count} results"
TITLE_PREVIOUS_RESULT = "Showing previous result"

ERROR_SAVE_RESPONSE = "Error saving response: {error}"
ERROR_SAVE_REQUEST = "Error saving request: {error}"
ERROR_DECODE_BODY = "Error: cannot decode response body: {error}"
ERROR_SEARCH = "Search error: {error}"
ERROR_EDITOR_OPEN = "Editor open error: {error}"
ERROR_STATUS_LINE = "StatusLine update error: {error}"
