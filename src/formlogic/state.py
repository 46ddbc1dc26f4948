"""
Reactive state container for one questionnaire session.

The QuestionnaireManager exclusively owns the response. Every mutation
recomputes the derived state in a fixed pipeline:

    data context -> calculated values -> visible items -> validation

and publishes a new immutable QuestionnaireState. Subscribers receive
each snapshot synchronously; readers of `state` never see a partially
updated snapshot.
"""

import copy
import logging
import threading
import uuid
from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

from formlogic.config import VALIDATION_SCOPE_CHANGED, Settings
from formlogic.engine import QuestionnaireEvaluator
from formlogic.i18n import TranslationManager
from formlogic.model import (
    Answer,
    Item,
    Questionnaire,
    QuestionnaireResponse,
    ResponseItem,
    ValidationError,
)

logger = logging.getLogger(__name__)

StateListener = Callable[["QuestionnaireState"], None]


@dataclass(frozen=True)
class QuestionnaireState:
    """
    One consistent snapshot of a session.

    visible_items, validation_errors and calculated_values always
    correspond to `response`. Safe to retain: the manager never mutates
    it, and no later snapshot shares its response items.
    """

    questionnaire: Questionnaire
    response: QuestionnaireResponse
    visible_items: List[Item] = field(default_factory=list)
    validation_errors: List[ValidationError] = field(default_factory=list)
    calculated_values: Dict[str, Any] = field(default_factory=dict)
    is_valid: bool = False

    def errors_for(self, link_id: str) -> List[ValidationError]:
        return [e for e in self.validation_errors if e.link_id == link_id]


def _answers_for(value: Any) -> List[Answer]:
    # JSON null clears the answer
    if value is None:
        return []
    return [Answer(copy.deepcopy(value))]


def _update_items(
    items: List[ResponseItem], link_id: str, value: Any
) -> Tuple[List[ResponseItem], bool]:
    updated: List[ResponseItem] = []
    found = False
    for item in items:
        if not found and item.link_id == link_id:
            # An answer write always collapses nested structure
            updated.append(replace(item, answers=_answers_for(value), items=[]))
            found = True
        elif not found and item.items:
            nested, found = _update_items(item.items, link_id, value)
            updated.append(replace(item, items=nested) if found else item)
        else:
            updated.append(item)
    return updated, found


def _initial_response_items(items: List[Item]) -> List[ResponseItem]:
    return [
        ResponseItem(
            link_id=item.link_id,
            items=_initial_response_items(item.items) if item.items and not item.repeats else [],
        )
        for item in items
    ]


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class QuestionnaireManager:
    """
    Orchestrates a questionnaire session.

    Mutations (update_answer, set_response) are serialized by a lock so
    each published snapshot reflects exactly one response revision.
    Reading `state` takes no lock.

    Listeners are called in revision order. A listener may itself call
    update_answer: the new snapshot is queued and delivered to every
    listener once the current one has been delivered, so the last
    snapshot each listener sees is always `state`.

    Properties:
        questionnaire: The shared, read-only definition
        evaluator: Engines bound to the questionnaire
        translation_manager: Optional, for resolving item texts and
                             validation messages
    """

    def __init__(
        self,
        questionnaire: Questionnaire,
        evaluator: Optional[QuestionnaireEvaluator] = None,
        translation_manager: Optional[TranslationManager] = None,
        settings: Optional[Settings] = None,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
        clock: Callable[[], str] = _utc_now,
    ):
        self.questionnaire = questionnaire
        self.evaluator = evaluator or QuestionnaireEvaluator(questionnaire)
        self.translation_manager = translation_manager
        self._settings = settings or Settings()
        self._lock = threading.RLock()
        self._listeners: List[StateListener] = []
        self._pending: Deque[QuestionnaireState] = deque()
        self._delivering = False

        response = QuestionnaireResponse(
            id=id_factory(),
            questionnaire_id=questionnaire.id,
            authored=clock(),
            subject=None,
            items=_initial_response_items(questionnaire.items),
        )
        self._state = self._compute(response)

    @property
    def state(self) -> QuestionnaireState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a listener for state snapshots.

        The listener is called with the current snapshot immediately,
        then with every new one.

        Returns:
            A function that removes the listener
        """
        with self._lock:
            self._listeners.append(listener)
            listener(self._state)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def update_answer(self, link_id: str, value: Any) -> QuestionnaireState:
        """
        Set the answer for `link_id`; None clears it.

        The response item is searched for anywhere in the non-repeating
        tree and created at the top level when absent. Its nested
        response items are cleared: a repeating group's answer IS the
        full array of instances.

        Returns:
            The published snapshot
        """
        with self._lock:
            current = self._state.response
            items, found = _update_items(copy.deepcopy(current.items), link_id, value)
            if not found:
                items = items + [ResponseItem(link_id=link_id, answers=_answers_for(value))]
            logger.debug("Answer update for %s (%s)", link_id, "cleared" if value is None else "set")

            narrowed = None
            if self._settings.validation_scope == VALIDATION_SCOPE_CHANGED:
                narrowed = [item for item in self.questionnaire.items if item.link_id == link_id]

            return self._publish(self._compute(replace(current, items=items), narrowed))

    def get_response(self) -> QuestionnaireResponse:
        """A copy of the current response; changing it does not affect the session."""
        return copy.deepcopy(self._state.response)

    def set_response(self, response: QuestionnaireResponse) -> QuestionnaireState:
        """Replace the response wholesale and fully recompute.

        The manager keeps its own copy of `response`.
        """
        with self._lock:
            if response.questionnaire_id != self.questionnaire.id:
                logger.warning(
                    "Response %s belongs to questionnaire %s, not %s",
                    response.id,
                    response.questionnaire_id,
                    self.questionnaire.id,
                )
            return self._publish(self._compute(copy.deepcopy(response)))

    def validate(self) -> List[ValidationError]:
        """Full-tree validation of the current response."""
        return self.evaluator.validate_response(self._state.response)

    def is_valid(self) -> bool:
        return not self.validate()

    def extract_data(self) -> Optional[Any]:
        """Project the current response through the extraction template, if any."""
        return self.evaluator.extract_data(self._state.response)

    def translate(self, key: str, values: Optional[Dict[str, Any]] = None) -> str:
        """Resolve a text or message key; without translations the key is returned as is."""
        if self.translation_manager is None:
            return key
        if values:
            return self.translation_manager.resolve_and_interpolate(key, values)
        return self.translation_manager.resolve(key)

    def _compute(self, response: QuestionnaireResponse, items: Optional[List[Item]] = None) -> QuestionnaireState:
        calculated_values = self.evaluator.calculate_values(response)
        visible_items = self.evaluator.get_visible_items(response)
        validation_errors = self.evaluator.validate_response(response, items)

        return QuestionnaireState(
            questionnaire=self.questionnaire,
            response=response,
            visible_items=visible_items,
            validation_errors=validation_errors,
            calculated_values=calculated_values,
            is_valid=not validation_errors,
        )

    def _publish(self, state: QuestionnaireState) -> QuestionnaireState:
        self._state = state
        self._pending.append(state)
        if self._delivering:
            # Called from a listener; the outer loop delivers it next
            return state

        self._delivering = True
        try:
            while self._pending:
                snapshot = self._pending.popleft()
                for listener in list(self._listeners):
                    listener(snapshot)
        finally:
            self._delivering = False
            self._pending.clear()
        return state
