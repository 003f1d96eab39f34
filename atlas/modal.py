"""
Dialog lifecycle shared by every create/edit/delete flow.

At most one dialog is open per page. While open, the controller owns three
listeners on the page (close control, backdrop click, Escape) and keeps
keyboard focus cycling inside the dialog's controls. close() releases all
of it and is safe to call any number of times.
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from .forms import ValidationError
from .page import Dialog, Page

logger = logging.getLogger(__name__)

# Control ids dispatched as click targets
CLOSE_CONTROL = "modal-close"
BACKDROP = "modal-backdrop"
SUBMIT = "modal-submit"
CONFIRM = "modal-confirm"
CANCEL = "modal-cancel"

FormRenderer = Callable[[Dict[str, Any], Dict[str, str]], str]


class ModalController:
    """Opens, closes and routes input for the page's single dialog."""

    def __init__(self, page: Page):
        self.page = page
        self.dialog: Optional[Dialog] = None
        self._handlers: List[Tuple[str, Callable]] = []
        self._restore_focus: Optional[str] = None
        # form state
        self._render_form: Optional[FormRenderer] = None
        self._validate: Optional[Callable[[Dict[str, Any]], Any]] = None
        self._on_commit: Optional[Callable[[Any], Any]] = None
        self._initial: Dict[str, Any] = {}
        # confirm state
        self._on_confirm: Optional[Callable[[], Any]] = None

    @property
    def is_open(self) -> bool:
        return self.dialog is not None

    def open(self, title: str, content: str, focusables: Optional[List[str]] = None,
             kind: str = "dialog") -> Optional[Dialog]:
        """Mount a dialog, replacing any open one. Returns None if the page has no modal root."""
        self.close()
        controls = [CLOSE_CONTROL] + [c for c in (focusables or []) if c != CLOSE_CONTROL]
        dialog = Dialog(title=title, content=content, focusables=controls, kind=kind)
        if not self.page.mount(dialog):
            return None
        self.dialog = dialog
        self._restore_focus = self.page.focus
        # first control after the header close button, when there is one
        self.page.focus = controls[1] if len(controls) > 1 else controls[0]
        self._listen("keydown", self._on_keydown)
        self._listen("click", self._on_click)
        logger.debug("Opened dialog %r", title)
        return dialog

    def close(self) -> bool:
        """Unmount the dialog and release its listeners. No-op when closed."""
        if self.dialog is None:
            return False
        for event_type, handler in self._handlers:
            self.page.remove_listener(event_type, handler)
        self._handlers = []
        if self.page.dialog is self.dialog:
            self.page.unmount()
        self.page.focus = self._restore_focus
        self.dialog = None
        self._restore_focus = None
        self._render_form = self._validate = self._on_commit = None
        self._initial = {}
        self._on_confirm = None
        return True

    def focus(self, control: str) -> bool:
        """Move focus; controls outside the open dialog are refused."""
        if self.dialog is not None and control not in self.dialog.focusables:
            return False
        self.page.focus = control
        return True

    # -------------------- forms --------------------

    def open_form(self, title: str, render_form: FormRenderer,
                  validate: Callable[[Dict[str, Any]], Any],
                  on_commit: Callable[[Any], Any],
                  values: Optional[Dict[str, Any]] = None,
                  fields: Tuple[str, ...] = ()) -> Optional[Dialog]:
        """Open a form dialog. Submission is validated before `on_commit` runs."""
        values = dict(values or {})
        focusables = list(fields) + [CANCEL, SUBMIT]
        dialog = self.open(title, render_form(values, {}), focusables, kind="form")
        if dialog is not None:
            self._render_form = render_form
            self._validate = validate
            self._on_commit = on_commit
            self._initial = values
        return dialog

    def submit(self, values: Dict[str, Any]) -> bool:
        """Validate and commit the open form. Errors are rendered inline and keep it open.

        Fields left out of `values` keep the value the form was opened with.
        """
        if self.dialog is None or self.dialog.kind != "form":
            return False
        values = {**self._initial, **values}
        try:
            cleaned = self._validate(values)
        except ValidationError as e:
            self.dialog.errors = e.errors
            self.dialog.content = self._render_form(values, e.errors)
            first = next(iter(e.errors))
            if first in self.dialog.focusables:
                self.page.focus = first
            logger.debug("Form %r rejected: %s", self.dialog.title, e)
            return False
        on_commit = self._on_commit
        self.close()
        on_commit(cleaned)
        return True

    # -------------------- confirmation --------------------

    def confirm(self, title: str, content: str, on_confirm: Callable[[], Any]) -> Optional[Dialog]:
        """Ask before a destructive action. Only confirm_action() runs it."""
        dialog = self.open(title, content, [CANCEL, CONFIRM], kind="confirm")
        if dialog is not None:
            self._on_confirm = on_confirm
        return dialog

    def confirm_action(self) -> bool:
        if self.dialog is None or self.dialog.kind != "confirm":
            return False
        on_confirm = self._on_confirm
        self.close()
        on_confirm()
        return True

    # -------------------- listeners --------------------

    def _listen(self, event_type: str, handler: Callable) -> None:
        self.page.add_listener(event_type, handler)
        self._handlers.append((event_type, handler))

    def _on_keydown(self, key: str, shift: bool = False, **_) -> None:
        if key == "Escape":
            self.close()
        elif key == "Tab":
            self._cycle_focus(-1 if shift else 1)

    def _on_click(self, target: str, **_) -> None:
        if target in (CLOSE_CONTROL, BACKDROP, CANCEL):
            self.close()
        elif target == CONFIRM:
            self.confirm_action()

    def _cycle_focus(self, step: int) -> None:
        controls = self.dialog.focusables
        try:
            index = controls.index(self.page.focus)
        except ValueError:
            self.page.focus = controls[0]
            return
        self.page.focus = controls[(index + step) % len(controls)]
