"""Repository functions for querying Stream records."""

import json
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..utils.logging import get_logger
from ..utils.time import day_bounds, format_stream_datetime, parse_date_literal
from .schema import StreamMeta, StreamRecord

logger = get_logger(__name__)

DEFAULT_RECORDS_PER_PAGE = 20

# Query argument base name -> column, each also accepts __in and __not_in
FILTER_COLUMNS = {
    "author": StreamRecord.user_id,
    "author_role": StreamRecord.user_role,
    "ip": StreamRecord.ip,
    "connector": StreamRecord.connector,
    "context": StreamRecord.context,
    "action": StreamRecord.action,
    "record": StreamRecord.ID,
    "site_id": StreamRecord.site_id,
    "blog_id": StreamRecord.blog_id,
    "object_id": StreamRecord.object_id,
}
INTEGER_FILTERS = {"author", "record", "site_id", "blog_id", "object_id"}

SEARCH_FIELDS = {
    "summary": StreamRecord.summary,
    "connector": StreamRecord.connector,
    "context": StreamRecord.context,
    "action": StreamRecord.action,
    "ip": StreamRecord.ip,
    "author_role": StreamRecord.user_role,
}

ORDERBY_COLUMNS = {
    "date": StreamRecord.created,
    "created": StreamRecord.created,
    "ID": StreamRecord.ID,
    "record": StreamRecord.ID,
    "author": StreamRecord.user_id,
    "author_role": StreamRecord.user_role,
    "ip": StreamRecord.ip,
    "connector": StreamRecord.connector,
    "context": StreamRecord.context,
    "action": StreamRecord.action,
    "summary": StreamRecord.summary,
}

DATE_ARGS = ("date", "date_from", "date_to", "date_after", "date_before")
PAGING_ARGS = ("records_per_page", "paged", "order", "orderby", "fields", "search", "search_field")


def _as_list(value: Any) -> List[str]:
    """Accept a list or a comma separated string for __in/__not_in filters."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [part.strip() for part in str(value).split(",") if part.strip()]


def _coerce(base: str, value: Any) -> Any:
    if base not in INTEGER_FILTERS:
        return str(value)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Query argument '{base}' expects an integer, got {value!r}") from e


def _known_arg(key: str) -> bool:
    if key in DATE_ARGS or key in PAGING_ARGS:
        return True
    for suffix in ("__not_in", "__in"):
        if key.endswith(suffix):
            key = key[: -len(suffix)]
            break
    return key in FILTER_COLUMNS


def _apply_filters(query, args: Dict[str, Any]):
    for base, column in FILTER_COLUMNS.items():
        if args.get(base) not in (None, ""):
            query = query.filter(column == _coerce(base, args[base]))
        included = _as_list(args.get(f"{base}__in"))
        if included:
            query = query.filter(column.in_([_coerce(base, v) for v in included]))
        excluded = _as_list(args.get(f"{base}__not_in"))
        if excluded:
            query = query.filter(column.notin_([_coerce(base, v) for v in excluded]))

    created = StreamRecord.created
    if args.get("date"):
        start, end = day_bounds(args["date"])
        query = query.filter(created >= start, created < end)
    if args.get("date_from"):
        query = query.filter(created >= day_bounds(args["date_from"])[0])
    if args.get("date_to"):
        query = query.filter(created < day_bounds(args["date_to"])[1])
    if args.get("date_after"):
        query = query.filter(created > parse_date_literal(args["date_after"]))
    if args.get("date_before"):
        query = query.filter(created < parse_date_literal(args["date_before"]))

    search = args.get("search")
    if search:
        search_field = args.get("search_field") or "summary"
        column = SEARCH_FIELDS.get(search_field)
        if column is None:
            raise ValueError(
                f"Unsupported search_field '{search_field}'. Use one of: {', '.join(SEARCH_FIELDS)}"
            )
        query = query.filter(column.contains(str(search), autoescape=True))

    return query


def _apply_order_and_paging(query, args: Dict[str, Any]):
    orderby = args.get("orderby") or "date"
    column = ORDERBY_COLUMNS.get(orderby)
    if column is None:
        logger.debug("Unknown orderby %r, falling back to date", orderby)
        column = StreamRecord.created
    order = str(args.get("order") or "desc").lower()
    query = query.order_by(column.asc() if order == "asc" else column.desc(), StreamRecord.ID.desc())

    per_page = int(args.get("records_per_page") or DEFAULT_RECORDS_PER_PAGE)
    if per_page < 0:
        return query
    paged = max(int(args.get("paged") or 1), 1)
    return query.limit(per_page).offset((paged - 1) * per_page)


def load_meta(session: Session, record_ids: List[int]) -> Dict[int, Dict[str, List[str]]]:
    """Group meta rows by record, keeping every value of repeated keys."""
    grouped: Dict[int, Dict[str, List[str]]] = {}
    if not record_ids:
        return grouped
    rows = (
        session.query(StreamMeta)
        .filter(StreamMeta.record_id.in_(record_ids))
        .order_by(StreamMeta.meta_id.asc())
        .all()
    )
    for row in rows:
        grouped.setdefault(row.record_id, {}).setdefault(row.meta_key, []).append(row.meta_value)
    return grouped


def _decode_author_meta(values: Optional[List[str]]) -> Dict[str, Any]:
    if not values:
        return {}
    try:
        decoded = json.loads(values[0])
    except (json.JSONDecodeError, TypeError):
        return {}
    return decoded if isinstance(decoded, dict) else {}


def record_to_dict(row: StreamRecord, meta: Dict[str, List[str]]) -> Dict[str, Any]:
    """Shape one row the way Stream hands records to its consumers."""
    stream_meta = {key: values for key, values in meta.items() if key != "author_meta"}
    return {
        "ID": row.ID,
        "site_id": row.site_id,
        "blog_id": row.blog_id,
        "object_id": row.object_id,
        "author": row.user_id,
        "author_role": row.user_role,
        "summary": row.summary,
        "created": format_stream_datetime(row.created),
        "connector": row.connector,
        "context": row.context,
        "action": row.action,
        "ip": row.ip,
        "author_meta": _decode_author_meta(meta.get("author_meta")),
        "stream_meta": stream_meta,
    }


def _restrict_fields(record: Dict[str, Any], fields: Any) -> Dict[str, Any]:
    roots = {field.split(".", 1)[0] for field in _as_list(fields)}
    if not roots:
        return record
    return {key: value for key, value in record.items() if key in roots}


def query_records(session: Session, args: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Query Stream records using the documented query arguments.

    Args:
        session: SQLAlchemy session
        args: Query arguments (author, connector__in, date_after, records_per_page, ...).
            ``__in``/``__not_in`` values may be lists or comma separated strings.
            ``fields`` limits returned top-level keys to the requested roots.

    Returns:
        List of record dicts, newest first unless ``order=asc``

    Raises:
        ValueError: If a filter value cannot be interpreted
    """
    for key in args:
        if not _known_arg(key):
            logger.debug("Ignoring unsupported query argument %r", key)

    query = _apply_filters(session.query(StreamRecord), args)
    rows = _apply_order_and_paging(query, args).all()

    meta = load_meta(session, [row.ID for row in rows])
    return [_restrict_fields(record_to_dict(row, meta.get(row.ID, {})), args.get("fields")) for row in rows]
