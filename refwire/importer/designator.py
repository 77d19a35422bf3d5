"""Capability interface that drives field configuration."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Protocol

from refwire.importer.designation import Pick, Role, pick_field
from refwire.importer.schema import Field


class Action(str, Enum):
    SET_ID = "set-id"
    SET_NAME = "set-name"
    CHANGE_TYPE = "change-type"
    TOGGLE_INCLUDE = "toggle-include"
    PROCEED = "proceed"
    CANCEL = "cancel"


ID_FIELD_PROMPT = "Select the field to use as the unique ID"
NAME_FIELD_PROMPT = "Select the field to use as the display Name"


class Designator(Protocol):
    """Whoever decides which fields are the ID and Name, and what is kept."""

    def choose_action(self, fields: tuple[Field, ...], can_proceed: bool) -> Action: ...

    def choose_field(self, message: str, choices: list[str]) -> str: ...


class FlagDesignator:
    """Non-interactive designator backed by CLI flags and catalog hints.

    Sets the ID field, then the Name field, then proceeds. Each role resolves
    from its explicit flag first and falls back to the hint.
    """

    def __init__(
        self,
        *,
        id_field: str | None = None,
        name_field: str | None = None,
        id_hint: str | None = None,
        name_hint: str | None = None,
        notify: Callable[[str], None] | None = None,
    ) -> None:
        self.id_field = id_field
        self.name_field = name_field
        self.id_hint = id_hint
        self.name_hint = name_hint
        self.notify = notify
        self.picks: list[Pick] = []
        self._role: Role | None = None

    def choose_action(self, fields: tuple[Field, ...], can_proceed: bool) -> Action:
        resolved = {pick.role for pick in self.picks}
        if Role.ID not in resolved:
            self._role = Role.ID
            return Action.SET_ID
        if Role.NAME not in resolved:
            self._role = Role.NAME
            return Action.SET_NAME
        if can_proceed:
            return Action.PROCEED
        return Action.CANCEL

    def choose_field(self, message: str, choices: list[str]) -> str:
        role = self._role or (Role.NAME if self.picks else Role.ID)
        if role is Role.ID:
            pick = pick_field(choices, role, self.id_field, self.id_hint)
        else:
            pick = pick_field(choices, role, self.name_field, self.name_hint)
        self.picks.append(pick)
        self._role = None
        if pick.auto_selected and self.notify is not None:
            self.notify(f"Auto-selected '{pick.field_name}' as {role.value} field.")
        return pick.field_name
