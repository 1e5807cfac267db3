"""
Renderable view model (``recruitment_kernel.domain.views``).

Transport-neutral description of a message: text content, embeds, and rows
of affordances (buttons, select menus).  Transport bindings translate these
into their widget types.  Forms describe a dialog the transport should open.

All types are frozen so two projections of the same state compare equal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ButtonStyle(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    SUCCESS = "success"
    DANGER = "danger"


class FieldStyle(str, Enum):
    SHORT = "short"
    PARAGRAPH = "paragraph"


@dataclass(frozen=True)
class EmbedField:
    name: str
    value: str
    inline: bool = False


@dataclass(frozen=True)
class Embed:
    title: str
    color: int
    fields: tuple[EmbedField, ...] = ()
    description: str | None = None
    footer: str | None = None
    image_url: str | None = None
    timestamp: datetime | None = None

    def field(self, name: str) -> EmbedField | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None


@dataclass(frozen=True)
class Button:
    label: str
    action_key: str
    style: ButtonStyle = ButtonStyle.SECONDARY
    disabled: bool = False


@dataclass(frozen=True)
class SelectOption:
    label: str
    value: str
    default: bool = False


@dataclass(frozen=True)
class SelectMenu:
    action_key: str
    placeholder: str
    options: tuple[SelectOption, ...]
    min_values: int = 0
    max_values: int = 1


@dataclass(frozen=True)
class AffordanceRow:
    items: tuple[Button | SelectMenu, ...]


@dataclass(frozen=True)
class RenderedView:
    content: str | None = None
    embeds: tuple[Embed, ...] = ()
    rows: tuple[AffordanceRow, ...] = ()

    def buttons(self) -> list[Button]:
        return [i for row in self.rows for i in row.items if isinstance(i, Button)]


@dataclass(frozen=True)
class FormField:
    key: str
    label: str
    style: FieldStyle = FieldStyle.SHORT
    required: bool = True
    value: str | None = None
    placeholder: str | None = None


@dataclass(frozen=True)
class FormSpec:
    """A dialog the transport opens; submitting it produces ``action_key``."""

    action_key: str
    title: str
    fields: tuple[FormField, ...] = field(default_factory=tuple)
