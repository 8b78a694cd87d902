"""Alert editor controller: user actions in, admin-ajax requests out, view updates back."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from ..utils.logging import get_logger
from .ajax import AjaxDispatcher, RequestHandle
from .models import (
    TYPE_EMAIL,
    TYPE_HIGHLIGHT,
    TYPE_IFTTT,
    AjaxResponse,
    AlertDraft,
    AlertRow,
    EditForm,
)
from .selectors import connector_from_value

logger = get_logger(__name__)

ACTION_NEW_ALERT_FORM = "get_new_alert_triggers_notifications"
ACTION_LOAD_SETTINGS = "load_alerts_settings"
ACTION_GET_ACTIONS = "get_actions"
ACTION_SAVE_ALERT = "save_new_alert"


class AlertEditorView(ABC):
    """What the controller needs from whatever displays the alert list."""

    @abstractmethod
    def show_new_alert_row(self, html: str) -> None: ...

    @abstractmethod
    def remove_new_alert_row(self) -> None: ...

    @abstractmethod
    def render_alert_type_form(self, html: str) -> None: ...

    @abstractmethod
    def set_alert_type_form_visible(self, visible: bool) -> None: ...

    @abstractmethod
    def set_action_options(self, options: Dict[str, str]) -> None: ...

    @abstractmethod
    def set_actions_enabled(self, enabled: bool) -> None: ...

    @abstractmethod
    def set_spinner_visible(self, visible: bool) -> None: ...

    @abstractmethod
    def apply_edit_form(self, form: EditForm) -> None: ...

    @abstractmethod
    def reload(self) -> None: ...


def populate_edit_form(row: AlertRow, form: EditForm) -> EditForm:
    """
    Copy an alert's stored values into its inline edit form.

    Type-specific settings are copied only for the row's alert type and only
    when the row actually carries them.
    """
    populated = form.model_copy(deep=True)
    inputs = populated.inputs
    selected = populated.selected

    inputs["wp_stream_trigger_connector"] = row.trigger_connector
    inputs["wp_stream_trigger_context"] = row.trigger_context
    selected["wp_stream_trigger_connector_or_context"] = f"{row.trigger_connector}-{row.trigger_context}"
    inputs["wp_stream_trigger_action"] = row.trigger_action
    selected["wp_stream_trigger_action"] = row.trigger_action
    selected["wp_stream_alert_type"] = row.alert_type

    if row.alert_type == TYPE_EMAIL:
        if row.email_recipient is not None:
            inputs["wp_stream_email_recipient"] = row.email_recipient
        if row.email_subject is not None:
            inputs["wp_stream_email_subject"] = row.email_subject
    elif row.alert_type == TYPE_HIGHLIGHT:
        if row.highlight_color is not None:
            selected["wp_stream_highlight_color"] = row.highlight_color
    elif row.alert_type == TYPE_IFTTT:
        if row.iftt_event_name is not None:
            inputs["wp_stream_iftt_event_name"] = row.iftt_event_name
        if row.iftt_maker_key is not None:
            inputs["wp_stream_iftt_maker_key"] = row.iftt_maker_key

    return populated


class AlertEditorController:
    """Binds alert editor actions to admin-ajax requests and view updates."""

    def __init__(self, dispatcher: AjaxDispatcher, view: AlertEditorView):
        self.dispatcher = dispatcher
        self.view = view

    def open_new_alert(self) -> RequestHandle:
        self.view.remove_new_alert_row()

        def on_response(response: AjaxResponse) -> None:
            if response.success is True:
                self.view.show_new_alert_row(response.html)

        return self.dispatcher.submit(ACTION_NEW_ALERT_FORM, {}, on_response, channel="new_alert")

    def change_alert_type(
        self,
        alert_type: str,
        forward_fields: Optional[Dict[str, Any]] = None,
        after: Optional[Callable[[AjaxResponse], None]] = None,
    ) -> RequestHandle:
        """Swap in the settings fragment for a notification type."""
        data: Dict[str, Any] = {"alert_type": alert_type}
        data.update(forward_fields or {})

        def on_response(response: AjaxResponse) -> None:
            self.view.render_alert_type_form(response.html)
            if after is not None:
                after(response)

        return self.dispatcher.submit(ACTION_LOAD_SETTINGS, data, on_response, channel="alert_type")

    def change_trigger_context(self, value: Optional[str]) -> RequestHandle:
        """Reload the action list for the connector behind a dropdown value."""
        connector = connector_from_value(value)
        self.view.set_action_options({})
        self.view.set_actions_enabled(False)

        def on_response(response: AjaxResponse) -> None:
            self.view.set_action_options(response.options)
            self.view.set_actions_enabled(True)

        return self.dispatcher.submit(ACTION_GET_ACTIONS, {"connector": connector}, on_response, channel="actions")

    def save_new_alert(self, draft: AlertDraft) -> RequestHandle:
        self.view.set_spinner_visible(True)

        def on_response(response: AjaxResponse) -> None:
            if response.success is True:
                self.view.set_spinner_visible(False)
                self.view.reload()
            else:
                logger.info("save_new_alert was rejected: %s", response.data)

        return self.dispatcher.submit(ACTION_SAVE_ALERT, draft.to_payload(), on_response, channel="save")

    def edit_alert(self, row: AlertRow, form: EditForm) -> Optional[RequestHandle]:
        """
        Prepare an inline edit row for an existing alert.

        The settings fragment for the alert's type is reloaded first and the
        stored values are applied once it has arrived.
        """
        if row.post_id <= 0:
            return None

        populated = populate_edit_form(row, form)
        self.change_trigger_context(populated.selected["wp_stream_trigger_connector_or_context"])
        self.view.set_alert_type_form_visible(False)

        def after_settings(_response: AjaxResponse) -> None:
            self.view.apply_edit_form(populated)
            self.view.set_alert_type_form_visible(True)

        return self.change_alert_type(row.alert_type, after=after_settings)

    def with_inline_edit(self, base_edit: Callable[[int], Any]) -> Callable[[AlertRow, EditForm], Optional[RequestHandle]]:
        """Wrap the host's inline edit handler; the host handler always runs first."""

        def edit(row: AlertRow, form: EditForm) -> Optional[RequestHandle]:
            base_edit(row.post_id)
            return self.edit_alert(row, form)

        return edit
