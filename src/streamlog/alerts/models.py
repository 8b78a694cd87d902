"""Pydantic models for the alert editor's admin-ajax traffic."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

TYPE_EMAIL = "email"
TYPE_HIGHLIGHT = "highlight"
TYPE_IFTTT = "iftt"


class AjaxResponse(BaseModel):
    """Envelope produced by wp_send_json_success / wp_send_json_error."""

    success: bool = False
    data: Any = None

    @property
    def html(self) -> str:
        if isinstance(self.data, dict):
            return self.data.get("html") or ""
        return ""

    @property
    def options(self) -> Dict[str, str]:
        """get_actions answers with action-id -> label."""
        if isinstance(self.data, dict):
            return {str(key): str(value) for key, value in self.data.items()}
        return {}


class AlertRow(BaseModel):
    """Hidden values carried by one alert in the list table."""

    post_id: int
    trigger_connector: str = ""
    trigger_context: str = ""
    trigger_action: str = ""
    alert_type: str = ""
    email_recipient: Optional[str] = None
    email_subject: Optional[str] = None
    highlight_color: Optional[str] = None
    iftt_event_name: Optional[str] = None
    iftt_maker_key: Optional[str] = None

    @classmethod
    def from_hidden_inputs(cls, post_id: int, inputs: Dict[str, str]) -> "AlertRow":
        """Build a row from ``wp_stream_*`` hidden input names."""
        prefix = "wp_stream_"
        values = {
            name[len(prefix):]: value
            for name, value in inputs.items()
            if name.startswith(prefix)
        }
        return cls(
            post_id=post_id,
            trigger_connector=values.get("trigger_connector", ""),
            trigger_context=values.get("trigger_context", ""),
            trigger_action=values.get("trigger_action", ""),
            alert_type=values.get("alert_type", ""),
            email_recipient=values.get("email_recipient"),
            email_subject=values.get("email_subject"),
            highlight_color=values.get("highlight_color"),
            iftt_event_name=values.get("iftt_event_name"),
            iftt_maker_key=values.get("iftt_maker_key"),
        )


class EditForm(BaseModel):
    """State of an inline edit row: input values and selected options by field name."""

    post_id: int
    inputs: Dict[str, str] = Field(default_factory=dict)
    selected: Dict[str, str] = Field(default_factory=dict)


class AlertDraft(BaseModel):
    """Values of the "add new alert" row at save time."""

    trigger_author: str = ""
    trigger_context: str = ""
    trigger_action: str = ""
    alert_type: str = ""
    type_fields: Dict[str, Optional[str]] = Field(default_factory=dict)  # element id -> value

    def to_payload(self) -> Dict[str, str]:
        payload = {
            "wp_stream_trigger_author": self.trigger_author,
            "wp_stream_trigger_context": self.trigger_context,
            "wp_stream_trigger_action": self.trigger_action,
            "wp_stream_alert_type": self.alert_type,
        }
        for element_id, value in self.type_fields.items():
            # Empty type fields are left out
            if value:
                payload[element_id] = value
        return payload
