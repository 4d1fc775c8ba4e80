"""
npc_engine/wizard.py -- Step-gated creation/edit wizard.

Four steps::

    1 VARIANT_SELECT    choose the NPC variant (new NPCs only)
    2 BASIC_INFO        name, sprite, position, direction
    3 VARIANT_CONFIG    the variant's configuration checklist
    4 PREVIEW_VALIDATE  full validation and save

Going back is always allowed.  Going forward runs the check of every step
being left or skipped; if one fails, the wizard stays where it is and the
notifier receives a warning.  Nothing here raises for user mistakes.

One session is active at a time.  ``save()`` is a coroutine; when it
completes the session is reset only if the save succeeded and the session
is still the one that started the save.

Usage::

    wizard = WizardController(collection)
    wizard.start_new()
    wizard.select_variant("merchant")
    wizard.edit(EditCommand("shopId", "viridian_mart"))
    wizard.go_to_step(WizardStep.PREVIEW_VALIDATE)
    outcome = await wizard.save()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Callable, Optional

from npc_engine.field_resolver import get_path
from npc_engine.form_builder import EditCommand, EditOutcome, FormBuilder
from npc_engine.notifications import LoggingNotifier, NotificationLevel, Notifier
from npc_engine.registry import EntityVariant
from npc_engine.utils import clone, is_populated
from npc_engine.validator import ValidationResult

if TYPE_CHECKING:
    from npc_engine.collection import CollectionManager

logger = logging.getLogger(__name__)

BASIC_INFO_FIELDS = ("name", "sprite")


class WizardStep(IntEnum):
    VARIANT_SELECT = 1
    BASIC_INFO = 2
    VARIANT_CONFIG = 3
    PREVIEW_VALIDATE = 4


@dataclass
class WizardSession:
    """The draft being edited and where the wizard is."""
    draft: dict[str, Any]
    step: WizardStep = WizardStep.VARIANT_SELECT
    is_editing_existing: bool = False
    scope_id: Optional[str] = None


@dataclass
class StepCheck:
    ok: bool
    missing: list[str] = field(default_factory=list)
    message: str = ""


@dataclass
class SaveOutcome:
    ok: bool
    message: str = ""
    result: Optional[ValidationResult] = None


StepListener = Callable[[WizardStep], None]


class WizardController:
    """Drives one :class:`WizardSession` through the four steps.

    Parameters
    ----------
    collection : CollectionManager
        Receives finished drafts and hands them to persistence.
    form : FormBuilder, optional
        Form logic used for edits (default: one built on the collection's
        registry).
    notifier : Notifier, optional
        Receives user-facing messages (default: the collection's notifier).
    """

    def __init__(self, collection: "CollectionManager",
                 form: Optional[FormBuilder] = None,
                 notifier: Optional[Notifier] = None):
        self.collection = collection
        self.factory = collection.factory
        self.form = form or FormBuilder(self.factory.registry)
        self.validator = self.form.validator
        self.registry = self.form.registry
        self.notifier = notifier or collection.notifier or LoggingNotifier()
        self._session: Optional[WizardSession] = None
        self._step_listeners: list[StepListener] = []

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    @property
    def session(self) -> Optional[WizardSession]:
        return self._session

    @property
    def step(self) -> Optional[WizardStep]:
        return self._session.step if self._session else None

    @property
    def draft(self) -> Optional[dict[str, Any]]:
        return self._session.draft if self._session else None

    def start_new(self) -> WizardSession:
        """Begin a new NPC at variant selection, discarding any current session."""
        return self.open(WizardSession(draft=self.factory.create_blank(),
                                       scope_id=self.collection.scope_id))

    def open(self, session: WizardSession) -> WizardSession:
        """Make *session* the active one (e.g. from ``collection.edit_existing``)."""
        self._session = session
        logger.debug("Wizard opened at step %d (editing=%s)",
                     session.step, session.is_editing_existing)
        self._fire_step(session.step)
        return session

    def cancel(self) -> None:
        """Discard the active session from any step."""
        if self._session is not None:
            logger.debug("Wizard cancelled at step %d", self._session.step)
        self._session = None

    def on_step_changed(self, listener: StepListener) -> Callable[[], None]:
        self._step_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._step_listeners:
                self._step_listeners.remove(listener)

        return unsubscribe

    def _fire_step(self, step: WizardStep) -> None:
        for listener in list(self._step_listeners):
            try:
                listener(step)
            except Exception:
                logger.exception("Step listener failed")

    def _require_session(self) -> WizardSession:
        if self._session is None:
            raise RuntimeError("No active wizard session")
        return self._session

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def select_variant(self, variant: Any) -> bool:
        """Choose the variant at step 1, apply its template and move to step 2."""
        session = self._session or self.start_new()
        if session.is_editing_existing:
            self.notifier.notify("The type of an existing NPC cannot be changed",
                                 NotificationLevel.WARNING)
            return False
        if session.step != WizardStep.VARIANT_SELECT:
            return False
        parsed = EntityVariant.parse(variant)
        if parsed is None:
            self.notifier.notify(f"Unknown NPC type: {variant!r}", NotificationLevel.ERROR)
            return False
        self.factory.apply_template(session.draft, parsed)
        session.step = WizardStep.BASIC_INFO
        self._fire_step(session.step)
        return True

    def go_to_step(self, step: Any) -> bool:
        """Move to *step*.  Forward moves require every intermediate step to pass."""
        session = self._require_session()
        try:
            target = WizardStep(step)
        except ValueError:
            logger.warning("Ignoring move to invalid wizard step %r", step)
            return False

        if target <= session.step:
            if target != session.step:
                session.step = target
                self._fire_step(target)
            return True

        for current in range(session.step, target):
            check = self.validate_step(current)
            if not check.ok:
                self.notifier.notify(check.message, NotificationLevel.WARNING)
                return False

        session.step = target
        self._fire_step(target)
        return True

    def next_step(self) -> bool:
        session = self._require_session()
        if session.step == WizardStep.PREVIEW_VALIDATE:
            return False
        return self.go_to_step(session.step + 1)

    def previous_step(self) -> bool:
        session = self._require_session()
        if session.step == WizardStep.VARIANT_SELECT:
            return False
        return self.go_to_step(session.step - 1)

    # ------------------------------------------------------------------
    # Step checks
    # ------------------------------------------------------------------

    def validate_current_step(self) -> StepCheck:
        return self.validate_step(self._require_session().step)

    def validate_step(self, step: Any) -> StepCheck:
        draft = self._require_session().draft
        step = WizardStep(step)

        if step == WizardStep.VARIANT_SELECT:
            missing = [] if self.registry.is_known(draft.get("type")) else ["type"]
        elif step == WizardStep.BASIC_INFO:
            missing = [name for name in BASIC_INFO_FIELDS if not is_populated(draft.get(name))]
        elif step == WizardStep.VARIANT_CONFIG:
            desc = self.registry.describe(draft.get("type"))
            if desc is None:
                missing = ["type"]
            else:
                missing = [path for path in desc.config_required
                           if not is_populated(get_path(draft, path))]
        else:
            result = self.validator.validate(draft)
            if not result.valid:
                return StepCheck(False, sorted(result.error_fields),
                                 "Please fix the validation errors before saving")
            return StepCheck(True)

        if missing:
            return StepCheck(False, missing,
                             "Please complete the required fields: " + ", ".join(missing))
        return StepCheck(True)

    # ------------------------------------------------------------------
    # Editing and saving
    # ------------------------------------------------------------------

    def edit(self, command: EditCommand) -> EditOutcome:
        """Apply one field edit to the draft (validated after the change)."""
        return self.form.apply(self._require_session().draft, command)

    async def save(self) -> SaveOutcome:
        session = self._session
        if session is None:
            return SaveOutcome(False, "No active wizard session")
        if session.step != WizardStep.PREVIEW_VALIDATE:
            message = "Review and validate the NPC before saving"
            self.notifier.notify(message, NotificationLevel.WARNING)
            return SaveOutcome(False, message)

        result = self.validator.validate(session.draft)
        if not result.valid:
            message = f"Cannot save: {len(result.errors)} validation error(s)"
            self.notifier.notify(message, NotificationLevel.ERROR)
            return SaveOutcome(False, message, result)

        saved = await self.collection.save(clone(session.draft), scope_id=session.scope_id)
        if not saved:
            return SaveOutcome(False, "Save failed; the draft was kept", result)

        if self._session is session:
            self._session = None
        else:
            logger.info("Wizard session changed during save; not resetting")
        return SaveOutcome(True, "Saved", result)
