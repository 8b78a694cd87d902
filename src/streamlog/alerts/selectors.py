"""Helpers behind the searchable connector/context and action dropdowns.

Trigger contexts travel as a single ``connector-context`` value (for example
``posts-page``); a bare connector means "any context of that connector".
"""

from copy import deepcopy
from typing import Any, Dict, Optional, Tuple


def split_connector_context(value: Optional[str]) -> Tuple[str, str]:
    if not value:
        return "", ""
    connector, _, context = value.partition("-")
    return connector, context


def join_connector_context(connector: str, context: str) -> str:
    if not context:
        return connector
    return f"{connector}-{context}"


def connector_from_value(value: Optional[str]) -> str:
    """Connector part of a dropdown value, used to ask for its actions."""
    if value and value.find("-") > 0:
        return value.split("-")[0]
    return value or ""


def match_option(term: Optional[str], option: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Filter one dropdown option (and its children) against a search term.

    Args:
        term: What the user typed; blank matches everything
        option: ``{"id": ..., "text": ..., "children": [...]}``

    Returns:
        A copy of the option, children pruned to the matching ones, or None
    """
    match = deepcopy(option)
    if term is None or not term.strip():
        return match

    term = term.lower()
    # Multisite connectors are searched as "sites"
    match["id"] = str(match.get("id", "")).replace("blogs", "sites", 1)
    if term in match["id"].lower():
        return match

    children = match.get("children")
    if children:
        match["children"] = [child for child in children if term in str(child.get("id", "")).lower()]
        if match["children"]:
            return match

    return None


def placeholder_for(element_id: str, any_label: str = "Any") -> str:
    """``wp_stream_trigger_author`` -> ``Any Author``."""
    name = element_id.split("_")[-1]
    return f"{any_label} {name[:1].upper()}{name[1:]}"
