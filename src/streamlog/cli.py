"""CLI entrypoint for streamlog."""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from streamlog.alerts.ajax import AjaxDispatcher, AjaxError
from streamlog.alerts.console_view import ConsoleAlertView
from streamlog.alerts.controller import AlertEditorController
from streamlog.alerts.models import AlertDraft
from streamlog.alerts.selectors import join_connector_context, placeholder_for, split_connector_context
from streamlog.api.query_api import KNOWN_FILTERS, StoreDisconnectedError, run_query
from streamlog.config.loader import get_default_fields, get_store_url, load_config
from streamlog.database.store import SqlRecordStore
from streamlog.output.formatters import FORMATS, UnknownFormatError
from streamlog.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

# Failures reported as a single "Error: ..." line with exit code 1
USER_ERRORS = (StoreDisconnectedError, UnknownFormatError, AjaxError, FileNotFoundError, ValueError)

ACTION_FIELD = "wp_stream_trigger_action"

QUERY_EPILOG = """\
available query filters:
  {filters}

default fields:
  created, ip, author, author_meta.user_login, author_role, summary

optional fields:
  ID, site_id, blog_id, object_id, connector, context, action,
  author_meta, stream_meta

examples:
  streamlog query --author_role__not_in=administrator --date_after=2015-01-01T12:00:00
  streamlog query --author=1 --action=login --records_per_page=50 --fields=created
""".format(filters="\n  ".join(", ".join(KNOWN_FILTERS[i:i + 6]) for i in range(0, len(KNOWN_FILTERS), 6)))


def _parse_filter_args(tokens: List[str]) -> Dict[str, str]:
    """
    Turn leftover ``--key=value`` / ``--key value`` / ``--flag`` tokens into filters.

    Raises:
        ValueError: If a token is not an option
    """
    filters: Dict[str, str] = {}
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if not token.startswith("--") or len(token) == 2:
            raise ValueError(f"Unexpected argument: {token}")
        key = token[2:]
        if "=" in key:
            key, value = key.split("=", 1)
        elif i + 1 < len(tokens) and not tokens[i + 1].startswith("--"):
            value = tokens[i + 1]
            i += 1
        else:
            value = "true"
        filters[key] = value
        i += 1
    return filters


def _parse_pairs(values: Optional[List[str]], option: str) -> Dict[str, str]:
    pairs: Dict[str, str] = {}
    for item in values or []:
        if "=" not in item:
            raise ValueError(f"{option} expects name=value, got {item!r}")
        name, value = item.split("=", 1)
        pairs[name] = value
    return pairs


def _load_config(args: argparse.Namespace) -> Dict[str, Any]:
    config_path = getattr(args, "config", None)
    config = load_config(Path(config_path) if config_path else None)
    if getattr(args, "db", None):
        config["store"]["url"] = args.db
    configure_logging("DEBUG" if getattr(args, "verbose", False) else config["logging"].get("level"))
    return config


def cmd_query(args: argparse.Namespace) -> None:
    """Query a set of Stream records and print them."""
    config = _load_config(args)
    store = SqlRecordStore(get_store_url(config))

    assoc_args: Dict[str, Any] = {}
    if args.fields:
        assoc_args["fields"] = args.fields
    if args.format is not None:
        assoc_args["format"] = args.format
    assoc_args.update(getattr(args, "filters", {}) or {})

    query_config = config["query"]
    result = run_query(
        store,
        assoc_args,
        default_fields=get_default_fields(config),
        array_policy=args.array_policy or query_config["array_policy"],
        unknown_format="error" if args.strict_format else query_config["unknown_format"],
    )
    if result.output:
        print(result.output)


def _alerts_controller(args: argparse.Namespace) -> tuple[AjaxDispatcher, AlertEditorController, ConsoleAlertView]:
    config = _load_config(args)
    alerts_config = config["alerts"]
    dispatcher = AjaxDispatcher(
        getattr(args, "ajax_url", None) or alerts_config.get("ajax_url"),
        timeout_seconds=alerts_config.get("timeout_seconds") or 20,
        cookies=alerts_config.get("cookies") or {},
    )
    view = ConsoleAlertView(search=getattr(args, "search", None))
    return dispatcher, AlertEditorController(dispatcher, view), view


def cmd_alerts_new_form(args: argparse.Namespace) -> None:
    """Print the trigger + notification form used to add an alert."""
    dispatcher, controller, _view = _alerts_controller(args)
    with dispatcher:
        response = controller.open_new_alert().result()
    if response.success is not True:
        raise AjaxError("admin-ajax refused to build the new alert form")


def cmd_alerts_settings(args: argparse.Namespace) -> None:
    """Print the settings fragment for one notification type."""
    dispatcher, controller, _view = _alerts_controller(args)
    forward = _parse_pairs(args.forward, "--forward")
    with dispatcher:
        controller.change_alert_type(args.type, forward).result()


def cmd_alerts_actions(args: argparse.Namespace) -> None:
    """Print the actions available for a connector."""
    dispatcher, controller, view = _alerts_controller(args)
    with dispatcher:
        controller.change_trigger_context(args.context).result()
    if not view.action_options:
        print(f"No actions available; the alert will match {placeholder_for(ACTION_FIELD)}.")


def cmd_alerts_save(args: argparse.Namespace) -> None:
    """Create an alert from trigger and notification values."""
    dispatcher, controller, _view = _alerts_controller(args)
    draft = AlertDraft(
        trigger_author=args.author or "",
        # "posts-" and "posts" both mean any context of the connector
        trigger_context=join_connector_context(*split_connector_context(args.context)),
        trigger_action=args.action or "",
        alert_type=args.type,
        type_fields=_parse_pairs(args.setting, "--setting"),
    )
    with dispatcher:
        response = controller.save_new_alert(draft).result()
    if response.success is not True:
        raise AjaxError("Alert was not saved")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="streamlog",
        description="Query Stream activity records and manage Stream alerts",
    )
    parser.add_argument("--config", type=str, help="Path to streamlog.config.yaml")
    parser.add_argument("--db", type=str, help="Record store URL or SQLite path (overrides store.url)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # query command
    query_parser = subparsers.add_parser(
        "query",
        help="Query a set of Stream records",
        description="Query a set of Stream records. Any --<filter>=<value> is passed to the store.",
        epilog=QUERY_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    query_parser.add_argument(
        "--fields",
        type=str,
        help="Comma separated fields to display (default: created,ip,author,author_meta.user_login,author_role,summary)",
    )
    query_parser.add_argument(
        "--format",
        type=str,
        help=f"Output format: {', '.join(FORMATS)} (default: table)",
    )
    query_parser.add_argument(
        "--array-policy",
        choices=["first", "index"],
        default=None,
        help="Flatten list fields to their first element (default) or to indexed paths",
    )
    query_parser.add_argument(
        "--strict-format",
        action="store_true",
        help="Fail on an unknown --format instead of printing nothing",
    )
    query_parser.set_defaults(func=cmd_query)

    # alerts commands
    alerts_parser = subparsers.add_parser("alerts", help="Alert rule editor commands")
    alerts_parser.add_argument("--ajax-url", type=str, help="admin-ajax.php URL (overrides alerts.ajax_url)")
    alerts_subparsers = alerts_parser.add_subparsers(dest="alerts_command", help="Alerts subcommand")

    new_form_parser = alerts_subparsers.add_parser("new-form", help="Fetch the add-alert form")
    new_form_parser.set_defaults(func=cmd_alerts_new_form)

    settings_parser = alerts_subparsers.add_parser("settings", help="Fetch the settings form of a notification type")
    settings_parser.add_argument("--type", required=True, help="Notification type (email, highlight, iftt, ...)")
    settings_parser.add_argument(
        "--forward",
        action="append",
        metavar="NAME=VALUE",
        help="Trigger field forwarded with the request (repeatable)",
    )
    settings_parser.set_defaults(func=cmd_alerts_settings)

    actions_parser = alerts_subparsers.add_parser("actions", help="List actions for a connector")
    actions_parser.add_argument("--context", required=True, help="Connector or connector-context value")
    actions_parser.add_argument("--search", type=str, help="Only list actions whose id contains this text")
    actions_parser.set_defaults(func=cmd_alerts_actions)

    save_parser = alerts_subparsers.add_parser("save", help="Save a new alert")
    save_parser.add_argument("--author", type=str, help="Trigger author")
    save_parser.add_argument("--context", type=str, help="Trigger connector-context")
    save_parser.add_argument("--action", type=str, help="Trigger action")
    save_parser.add_argument("--type", required=True, help="Notification type")
    save_parser.add_argument(
        "--setting",
        action="append",
        metavar="ID=VALUE",
        help="Notification setting keyed by field id (repeatable)",
    )
    save_parser.set_defaults(func=cmd_alerts_save)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entrypoint."""
    parser = build_parser()
    args, extras = parser.parse_known_args(argv)

    if not args.command or not hasattr(args, "func"):
        parser.print_help()
        return

    if args.command == "query":
        try:
            args.filters = _parse_filter_args(extras)
        except ValueError as e:
            parser.error(str(e))
    elif extras:
        parser.error(f"unrecognized arguments: {' '.join(extras)}")

    try:
        args.func(args)
    except USER_ERRORS as e:
        logger.debug("Command '%s' failed: %s", args.command, e, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Error running command '{args.command}': {e}", exc_info=True)
        raise


if __name__ == "__main__":
    main()
