"""k1s0 abt library."""

from .cache import AssignmentCache, CacheSweeper, InMemoryAssignmentCache
from .config import AbtConfig
from .cookie import CookieWriter, build_set_cookie
from .exceptions import AbtError, AbtErrorCodes, AttemptsExhaustedError
from .fetcher import AbtFetcher, HttpAbtFetcher, build_params
from .identifier import get_cookie, normalize_identifier, parse_cookie_header, resolve_identifier
from .legacy import get_abt, options_from_args
from .loader import load_config
from .logger import new_logger
from .models import (
    Assignment,
    CacheKey,
    FetchRequest,
    FlagType,
    HttpRequest,
    HttpResponse,
    RawAnswer,
    RawFlag,
    RequestLike,
    ResolveOptions,
    ResponseLike,
)
from .resolver import AssignmentResolver, page_url_of
from .transformer import SERVER_FLAG_TYPES, transform

__all__ = [
    "AbtConfig",
    "AbtError",
    "AbtErrorCodes",
    "AbtFetcher",
    "Assignment",
    "AssignmentCache",
    "AssignmentResolver",
    "AttemptsExhaustedError",
    "CacheKey",
    "CacheSweeper",
    "CookieWriter",
    "FetchRequest",
    "FlagType",
    "HttpAbtFetcher",
    "HttpRequest",
    "HttpResponse",
    "InMemoryAssignmentCache",
    "RawAnswer",
    "RawFlag",
    "RequestLike",
    "ResolveOptions",
    "ResponseLike",
    "SERVER_FLAG_TYPES",
    "build_params",
    "build_set_cookie",
    "get_abt",
    "get_cookie",
    "load_config",
    "new_logger",
    "normalize_identifier",
    "options_from_args",
    "page_url_of",
    "parse_cookie_header",
    "resolve_identifier",
    "transform",
]
