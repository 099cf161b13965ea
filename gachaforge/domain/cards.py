"""Card, template and pack definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Sequence, Union

from .economy import CurrencyType
from .exceptions import AttributeSchemaError
from .probability import validate_pack


class Rarity(str, Enum):
    N = "N"
    R = "R"
    SR = "SR"
    SSR = "SSR"
    UR = "UR"
    LR = "LR"

    @property
    def rank(self) -> int:
        return _RARITY_ORDER.index(self)

    @classmethod
    def ordered(cls) -> tuple["Rarity", ...]:
        return _RARITY_ORDER


_RARITY_ORDER = (Rarity.N, Rarity.R, Rarity.SR, Rarity.SSR, Rarity.UR, Rarity.LR)


class GameplayType(str, Enum):
    DEFAULT = "DEFAULT"
    BATTLE = "BATTLE"
    COLLECTION = "COLLECTION"
    STRATEGY = "STRATEGY"
    ADVENTURE = "ADVENTURE"
    PUZZLE = "PUZZLE"


AttributeValue = Union[bool, int, float, str]


class AttributeKind(str, Enum):
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"

    def accepts(self, value: object) -> bool:
        if self is AttributeKind.BOOLEAN:
            return isinstance(value, bool)
        if self is AttributeKind.NUMBER:
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        return isinstance(value, str)


@dataclass(frozen=True, slots=True)
class AttributeSpec:
    kind: AttributeKind
    required: bool = False
    minimum: float | None = None
    maximum: float | None = None
    title: str = ""

    def out_of_range(self, value: AttributeValue) -> bool:
        if self.kind is not AttributeKind.NUMBER:
            return False
        if self.minimum is not None and value < self.minimum:
            return True
        return self.maximum is not None and value > self.maximum


@dataclass(frozen=True, slots=True)
class CardTemplate:
    """Attribute schema shared by a family of cards."""

    template_id: str
    name: str
    description: str = ""
    schema: Mapping[str, AttributeSpec] = field(default_factory=dict)
    gameplay_type: GameplayType = GameplayType.DEFAULT

    def validate_attributes(self, card_id: str, attributes: Mapping[str, AttributeValue]) -> None:
        for name, spec in self.schema.items():
            if name not in attributes:
                if spec.required:
                    raise AttributeSchemaError(
                        f"Card {card_id} is missing required attribute '{name}'",
                        {"card_id": card_id, "template_id": self.template_id, "attribute": name},
                    )
                continue
            if not spec.kind.accepts(attributes[name]):
                raise AttributeSchemaError(
                    f"Card {card_id} attribute '{name}' must be a {spec.kind.value}",
                    {
                        "card_id": card_id,
                        "template_id": self.template_id,
                        "attribute": name,
                        "value": attributes[name],
                    },
                )
            if spec.out_of_range(attributes[name]):
                raise AttributeSchemaError(
                    f"Card {card_id} attribute '{name}' is outside "
                    f"[{spec.minimum}, {spec.maximum}]",
                    {
                        "card_id": card_id,
                        "template_id": self.template_id,
                        "attribute": name,
                        "value": attributes[name],
                    },
                )
        unknown = sorted(set(attributes) - set(self.schema))
        if unknown:
            raise AttributeSchemaError(
                f"Card {card_id} has attributes not declared by template "
                f"{self.template_id}: {', '.join(unknown)}",
                {"card_id": card_id, "template_id": self.template_id, "attributes": unknown},
            )


@dataclass(frozen=True, slots=True)
class CardDefinition:
    """Definition of a collectible card.

    History records keep a copy of the definition as it was when drawn, so
    instances are never mutated in place.
    """

    card_id: str
    name: str
    rarity: Rarity = Rarity.N
    description: str = ""
    image_url: str | None = None
    template_id: str | None = None
    gameplay_type: GameplayType = GameplayType.DEFAULT
    attributes: Mapping[str, AttributeValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name, value in self.attributes.items():
            if not isinstance(value, (bool, int, float, str)):
                raise AttributeSchemaError(
                    f"Card {self.card_id} attribute '{name}' must be a scalar, "
                    f"got {type(value).__name__}",
                    {"card_id": self.card_id, "attribute": name},
                )


@dataclass(frozen=True, slots=True)
class PitySystem:
    max_pity: int
    soft_pity_start: int
    guaranteed_cards: tuple[str, ...] = ()
    guaranteed_card_weights: tuple[float, ...] | None = None
    reset_on_trigger: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "guaranteed_cards", tuple(self.guaranteed_cards))
        if self.guaranteed_card_weights is not None:
            object.__setattr__(
                self, "guaranteed_card_weights", tuple(self.guaranteed_card_weights)
            )


@dataclass(frozen=True, slots=True)
class PackDefinition:
    """Purchasable pack with its draw table.

    The draw table is validated on construction; an invalid pack never exists.
    """

    pack_id: str
    name: str
    cost: int
    currency: CurrencyType
    available_cards: tuple[str, ...]
    card_probabilities: Mapping[str, float]
    pity_system: PitySystem | None = None
    description: str = ""
    cover_image_url: str | None = None
    is_active: bool = True
    gameplay_type: GameplayType = GameplayType.DEFAULT

    def __post_init__(self) -> None:
        object.__setattr__(self, "available_cards", tuple(self.available_cards))
        object.__setattr__(self, "card_probabilities", dict(self.card_probabilities))
        if self.cost < 0:
            raise ValueError(f"Pack {self.pack_id} cost cannot be negative")
        validate_pack(self)

    def draw_table(self) -> list[tuple[str, float]]:
        """Available (card id, probability) entries, most likely first."""
        entries = [(card_id, self.card_probabilities[card_id]) for card_id in self.available_cards]
        return sorted(entries, key=lambda entry: entry[1], reverse=True)


def probabilities_from_rarity_weights(
    cards: Iterable[CardDefinition], rarity_weights: Mapping[Rarity, float]
) -> dict[str, float]:
    """Split each rarity's weight evenly among the given cards of that rarity."""
    groups: dict[Rarity, list[str]] = {}
    for card in cards:
        groups.setdefault(card.rarity, []).append(card.card_id)

    probabilities: dict[str, float] = {}
    for rarity, weight in rarity_weights.items():
        members = groups.get(Rarity(rarity), [])
        for card_id in members:
            probabilities[card_id] = weight / len(members)
    return probabilities


def cards_by_id(cards: Sequence[CardDefinition]) -> dict[str, CardDefinition]:
    return {card.card_id: card for card in cards}
