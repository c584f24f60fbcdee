"""Client-side state layer and admin console for a nonprofit CRM."""

from .api import ApiClient
from .cache import TTLCache
from .collection import KeyedCollection, by_sort_order_then_name
from .config import Settings, get_settings
from .display import (
    account_display_name,
    contact_display_name,
    format_currency,
    format_date,
    yes_no,
)
from .envelope import ListPage, Pagination, unwrap, unwrap_list, unwrap_page, unwrap_record
from .errors import CRMError, NetworkError, NotFoundError, UnknownError, ValidationError
from .sequencing import RequestSequencer
from .slice import ThunkResult
from .store import CRMStore

__all__ = [
    "ApiClient",
    "CRMError",
    "CRMStore",
    "KeyedCollection",
    "ListPage",
    "NetworkError",
    "NotFoundError",
    "Pagination",
    "RequestSequencer",
    "Settings",
    "TTLCache",
    "ThunkResult",
    "UnknownError",
    "ValidationError",
    "account_display_name",
    "by_sort_order_then_name",
    "contact_display_name",
    "format_currency",
    "format_date",
    "get_settings",
    "unwrap",
    "unwrap_list",
    "unwrap_page",
    "unwrap_record",
    "yes_no",
]
