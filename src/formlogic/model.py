"""
Core Questionnaire Model Objects

Defines the data structures the engine reads and produces:
    - Questionnaire definition (Questionnaire, Item, rules)
    - Response (QuestionnaireResponse, ResponseItem, Answer)
    - Validation results (ValidationError)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about widgets or screens
        - Are immutable (frozen); updates build new values
        - Are fully serializable (see serialization.py)
        - Represent structure, not behavior
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from .expressions import Expression


class ItemType(Enum):
    """
    The closed set of item kinds.

    Only GROUP items carry child items.
    """

    STRING = "STRING"
    TEXT = "TEXT"
    BOOLEAN = "BOOLEAN"
    DECIMAL = "DECIMAL"
    INTEGER = "INTEGER"
    DATE = "DATE"
    TIME = "TIME"
    DATETIME = "DATETIME"
    CHOICE = "CHOICE"
    OPEN_CHOICE = "OPEN_CHOICE"
    DISPLAY = "DISPLAY"
    GROUP = "GROUP"
    QUANTITY = "QUANTITY"

    @classmethod
    def from_string(cls, value: str) -> "ItemType":
        """
        Case-insensitive lookup by name.

        Raises:
            ValueError: If no item type has that name
        """
        for item_type in cls:
            if item_type.name.lower() == str(value).lower():
                return item_type
        raise ValueError(f"Unknown item type: {value}")


@dataclass(frozen=True)
class AnswerOption:
    """A selectable code/display pair for CHOICE items."""

    code: str
    display: str


@dataclass(frozen=True)
class ValidationRule:
    """
    A rule an answered item must satisfy.

    Properties:
        message: Error text reported when the rule fails
                 (may be a translation key)
        expression: Rule expression; a truthy result means valid
    """

    message: str
    expression: Expression


@dataclass(frozen=True)
class CalculatedValue:
    """
    A named value derived from the answers.

    Calculated values are evaluated in declaration order. Each result
    is bound into the data context under `name`, so later entries may
    reference earlier ones.
    """

    name: str
    expression: Expression


@dataclass(frozen=True)
class Item:
    """
    One node in the question tree.

    Properties:
        link_id:
            Unique identifier. Joins the item to its ResponseItem and
            is the variable name its answer is bound to in rules.

        type:
            ItemType

        text:
            Label shown to the respondent

        required:
            A visible required item with no answer is a validation error

        repeats:
            Marks a GROUP as a repeating instance set. The whole set is
            stored as ONE answer: a JSON array with one object per
            instance, keyed by child linkId.

        visible_if:
            Visibility expression. None means always visible.

        answer_options:
            Choices for CHOICE / OPEN_CHOICE items

        validations:
            Rules checked while the item is visible

        items:
            Child items (GROUP only)
    """

    link_id: str
    type: ItemType
    text: str
    required: bool = False
    repeats: bool = False
    visible_if: Optional[Expression] = None
    answer_options: List[AnswerOption] = field(default_factory=list)
    validations: List[ValidationRule] = field(default_factory=list)
    items: List["Item"] = field(default_factory=list)


@dataclass(frozen=True)
class Translations:
    """
    Where translated strings come from.

    Properties:
        default_locale: Locale used when a key is missing elsewhere
        sources: locale -> URL or file path of a flat key/value map
    """

    default_locale: str
    sources: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Questionnaire:
    """
    Root container of a form definition.

    Loaded once and shared read-only for the whole session.

    INVARIANTS:
        - link_id values are unique across the whole item tree
          (enforced when loading through serialization.py)
        - calculated_values order is significant
    """

    id: str
    title: str
    items: List[Item] = field(default_factory=list)
    version: Optional[str] = None
    description: Optional[str] = None
    translations: Optional[Translations] = None
    calculated_values: List[CalculatedValue] = field(default_factory=list)
    extraction_template: Any = None

    def iter_items(self) -> Iterator[Item]:
        """Depth-first walk over every item, groups before their children."""
        stack = list(reversed(self.items))
        while stack:
            item = stack.pop()
            yield item
            stack.extend(reversed(item.items))

    def get_item(self, link_id: str) -> Optional[Item]:
        """
        Retrieve an item anywhere in the tree by linkId.

        Returns:
            First matching Item or None if not found
        """
        for item in self.iter_items():
            if item.link_id == link_id:
                return item
        return None


@dataclass(frozen=True)
class Subject:
    """Who or what the response is about."""

    id: str
    type: str


@dataclass(frozen=True)
class Answer:
    """Wraps one JSON value."""

    value: Any


@dataclass(frozen=True)
class ResponseItem:
    """
    Answer holder for one Item.

    Several answers model a multi-valued question. Nested items mirror
    non-repeating GROUP structure only.
    """

    link_id: str
    answers: List[Answer] = field(default_factory=list)
    items: List["ResponseItem"] = field(default_factory=list)


@dataclass(frozen=True)
class QuestionnaireResponse:
    """
    The respondent's answers to one questionnaire.

    Owned by the QuestionnaireManager for the session; callers receive
    snapshots and request changes through update_answer().
    """

    id: str
    questionnaire_id: str
    authored: str
    subject: Optional[Subject] = None
    items: List[ResponseItem] = field(default_factory=list)

    def find_item(self, link_id: str) -> Optional[ResponseItem]:
        """First ResponseItem with this linkId, searching nested items depth-first."""
        stack = list(reversed(self.items))
        while stack:
            item = stack.pop()
            if item.link_id == link_id:
                return item
            stack.extend(reversed(item.items))
        return None


@dataclass(frozen=True)
class ValidationError:
    """
    One failed check.

    Properties:
        link_id: The failing item
        path: linkIds from the root to the failing item; inside a
              repeating group the instance index is included
        message: Rule message, or "<item text>.required"
        item_text: Item label for display
    """

    link_id: str
    path: List[str]
    message: str
    item_text: Optional[str] = None
