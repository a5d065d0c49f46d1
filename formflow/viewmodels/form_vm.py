from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..domain.results import ActionResult, SubmissionRequest
from .forms import FormDefinition


class FormVM:
    """Keeps one form's render state: values, submit control and errors. No I/O here.

    Error surfacing contract:
        - ``banner_message``: aggregate message shown at the top of the form.
        - ``displayed_field_errors()``: messages for keys naming declared fields.
        - ``inline_message``: the aggregate message reflected next to the
          fields whenever no field-level message can be shown. A raised
          handler failure therefore appears both in the banner and inline.

    ``field_errors`` keeps every key the handler returned; unknown keys are
    retained but not displayed.
    """

    def __init__(
        self,
        form: FormDefinition,
        *,
        submit_label: str = "Save",
        pending_label: str = "Submitting...",
        on_change: Optional[Callable[["FormVM"], None]] = None,
    ) -> None:
        self.form = form
        self.idle_label = submit_label
        self.pending_label = pending_label
        self.on_change = on_change

        self.values: Dict[str, Any] = {f.name: "" for f in form.fields}
        self.submit_label: str = submit_label
        self.submit_enabled: bool = True
        self.inputs_enabled: bool = True
        self.banner_message: Optional[str] = None
        self.inline_message: Optional[str] = None
        self.field_errors: Dict[str, str] = {}
        self.last_result: Optional[ActionResult] = None

    # ------------------------------------------------------------------
    # Field values
    # ------------------------------------------------------------------
    def set_value(self, name: str, value: Any) -> None:
        if not self.form.has_field(name):
            raise KeyError(f"Form '{self.form.name}' has no field '{name}'.")
        self.values[name] = value
        self._changed()

    def update(self, values: Mapping[str, Any]) -> None:
        for name, value in values.items():
            self.set_value(name, value)

    def snapshot(self) -> SubmissionRequest:
        """Current values plus hidden fields as an immutable request."""
        data: Dict[str, Any] = dict(self.values)
        for name, value in self.form.hidden:
            data.setdefault(name, value)
        return SubmissionRequest.of(data)

    # ------------------------------------------------------------------
    # Phase rendering
    # ------------------------------------------------------------------
    def show_pending(self) -> None:
        self.submit_label = self.pending_label
        self.submit_enabled = False
        self.inputs_enabled = False
        self._changed()

    def show_idle(self) -> None:
        self.submit_label = self.idle_label
        self.submit_enabled = True
        self.inputs_enabled = True
        self._changed()

    def show_result(self, result: ActionResult) -> None:
        self.last_result = result
        if not result.is_error:
            self.clear_errors()
            return
        message = getattr(result, "message", "") or None
        errors = getattr(result, "field_errors", None) or {}
        self.field_errors = {str(k): str(v) for k, v in errors.items()}
        self.banner_message = message
        self.inline_message = None if self.displayed_field_errors() else message
        self._changed()

    def clear_errors(self) -> None:
        self.banner_message = None
        self.inline_message = None
        self.field_errors = {}
        self._changed()

    # ------------------------------------------------------------------
    # Read helpers for views
    # ------------------------------------------------------------------
    def displayed_field_errors(self) -> List[Tuple[str, str]]:
        """Field messages for declared fields, in declaration order."""
        return [
            (name, self.field_errors[name])
            for name in self.form.field_names()
            if self.field_errors.get(name)
        ]

    def error_for(self, name: str) -> Optional[str]:
        if not self.form.has_field(name):
            return None
        return self.field_errors.get(name) or None

    def visible_texts(self) -> List[str]:
        """Every error string a view renders, banner first."""
        texts: List[str] = []
        if self.banner_message:
            texts.append(self.banner_message)
        texts.extend(message for _, message in self.displayed_field_errors())
        if self.inline_message:
            texts.append(self.inline_message)
        return texts

    @property
    def has_errors(self) -> bool:
        return bool(self.banner_message or self.field_errors)

    def _changed(self) -> None:
        if self.on_change:
            self.on_change(self)


__all__ = ["FormVM"]
