"""Query API: probe the store, run one query, flatten and render the records."""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..config.loader import DEFAULT_FIELDS
from ..database.store import RecordStore, StoreUnavailableError
from ..output.formatters import render
from ..records.flatten import ARRAY_FIRST, flatten_records
from ..utils.logging import get_logger

logger = get_logger(__name__)

DISCONNECTED_MESSAGE = "SITE IS DISCONNECTED"

# Documented query arguments; anything else is still forwarded untouched
KNOWN_FILTERS = (
    "author",
    "author__in",
    "author__not_in",
    "author_role",
    "author_role__in",
    "author_role__not_in",
    "date",
    "date_from",
    "date_to",
    "date_after",
    "date_before",
    "ip",
    "ip__in",
    "ip__not_in",
    "connector",
    "connector__in",
    "connector__not_in",
    "context",
    "context__in",
    "context__not_in",
    "action",
    "action__in",
    "action__not_in",
    "search",
    "search_field",
    "record",
    "record__in",
    "record__not_in",
    "records_per_page",
    "paged",
    "order",
    "orderby",
)

RESERVED_ARGS = ("format",)


class StoreDisconnectedError(RuntimeError):
    """The connection probe came back empty."""


@dataclass
class QueryResult:
    fields: List[str]
    records: List[Dict[str, Any]]
    flat_records: List[Dict[str, Any]]
    output: Optional[str]


def parse_fields(value: Optional[str], default_fields: Sequence[str] = DEFAULT_FIELDS) -> List[str]:
    if not value:
        return list(default_fields)
    fields = [field.strip() for field in value.split(",") if field.strip()]
    return fields or list(default_fields)


def build_query_args(assoc_args: Mapping[str, Any], fields: Sequence[str]) -> Dict[str, Any]:
    """Forward every option except the reserved ones, then pin ``fields``."""
    query_args: Dict[str, Any] = {}
    for key, value in assoc_args.items():
        if key in RESERVED_ARGS:
            continue
        if key not in KNOWN_FILTERS and key != "fields":
            logger.debug("Forwarding undocumented query argument %r", key)
        query_args[key] = value
    query_args["fields"] = ",".join(fields)
    return query_args


def check_connection(store: RecordStore) -> None:
    """Probe the store with a one-record query before doing real work."""
    try:
        probe = store.query({"records_per_page": 1, "fields": "created"})
    except StoreUnavailableError as e:
        logger.warning("Connection probe failed: %s", e)
        raise StoreDisconnectedError(DISCONNECTED_MESSAGE) from e
    if not probe:
        raise StoreDisconnectedError(DISCONNECTED_MESSAGE)


def run_query(
    store: RecordStore,
    assoc_args: Mapping[str, Any],
    *,
    default_fields: Sequence[str] = DEFAULT_FIELDS,
    array_policy: str = ARRAY_FIRST,
    unknown_format: str = "ignore",
) -> QueryResult:
    """
    Query Stream records and render them.

    Args:
        store: Record store to query
        assoc_args: Options and filters; ``fields`` and ``format`` are
            interpreted here, everything else goes to the store verbatim
        default_fields: Fields used when ``fields`` is empty
        array_policy: How sequences are flattened ("first" or "index")
        unknown_format: "ignore" or "error" for unrecognised formats

    Returns:
        QueryResult with the raw records, flattened records and rendered output
        (output is None when an unknown format is ignored)

    Raises:
        StoreDisconnectedError: If the probe query returns nothing
    """
    check_connection(store)

    fields = parse_fields(assoc_args.get("fields"), default_fields)
    query_args = build_query_args(assoc_args, fields)

    records = store.query(query_args) or []
    logger.info("Store returned %d records", len(records))

    flat_records = flatten_records(records, fields, array_policy)
    output = render(
        flat_records,
        fields,
        assoc_args.get("format"),
        record_count=len(records),
        unknown_format=unknown_format,
    )
    return QueryResult(fields=fields, records=list(records), flat_records=flat_records, output=output)
