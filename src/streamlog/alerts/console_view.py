"""Terminal rendition of the alert editor view used by ``streamlog alerts``."""

import json
import sys
from typing import Dict, Optional, TextIO

from ..utils.logging import get_logger
from .controller import AlertEditorView
from .models import EditForm
from .selectors import match_option

logger = get_logger(__name__)


class ConsoleAlertView(AlertEditorView):
    """Prints fragments and option lists instead of patching a page."""

    def __init__(self, stream: Optional[TextIO] = None, search: Optional[str] = None):
        self.stream = stream or sys.stdout
        self.search = search
        self.action_options: Dict[str, str] = {}
        self.reloaded = False
        self.actions_enabled = True

    def _write(self, text: str) -> None:
        print(text, file=self.stream)

    def show_new_alert_row(self, html: str) -> None:
        self._write(html)

    def remove_new_alert_row(self) -> None:
        logger.debug("remove_new_alert_row")

    def render_alert_type_form(self, html: str) -> None:
        self._write(html)

    def set_alert_type_form_visible(self, visible: bool) -> None:
        logger.debug("alert type form visible=%s", visible)

    def set_action_options(self, options: Dict[str, str]) -> None:
        self.action_options = {
            action: label
            for action, label in options.items()
            if match_option(self.search, {"id": action, "text": label}) is not None
        }
        # The request starts by clearing the list; only print real answers
        if self.action_options:
            self._write(json.dumps(self.action_options, indent=2))

    def set_actions_enabled(self, enabled: bool) -> None:
        self.actions_enabled = enabled

    def set_spinner_visible(self, visible: bool) -> None:
        logger.debug("spinner visible=%s", visible)

    def apply_edit_form(self, form: EditForm) -> None:
        self._write(form.model_dump_json(indent=2))

    def reload(self) -> None:
        self.reloaded = True
        self._write("Alert saved.")
