"""Alert and confirm intents queued for whatever front end renders them."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable


class PromptKind(Enum):
    ALERT = "alert"
    CONFIRM = "confirm"


@dataclass
class Prompt:
    kind: PromptKind
    title: str
    message: str
    on_confirm: Callable[[], Any] | None = None


class PromptQueue:
    """FIFO of prompts. The renderer pops one, shows it, then resolves it."""

    def __init__(self) -> None:
        self._items: deque[Prompt] = deque()

    def __len__(self) -> int:
        return len(self._items)

    def alert(self, title: str, message: str) -> Prompt:
        prompt = Prompt(PromptKind.ALERT, title, message)
        self._items.append(prompt)
        return prompt

    def confirm(self, title: str, message: str, on_confirm: Callable[[], Any]) -> Prompt:
        prompt = Prompt(PromptKind.CONFIRM, title, message, on_confirm)
        self._items.append(prompt)
        return prompt

    def peek(self) -> Prompt | None:
        return self._items[0] if self._items else None

    def pop(self) -> Prompt | None:
        return self._items.popleft() if self._items else None

    def resolve(self, prompt: Prompt, accepted: bool) -> Any:
        """Run the continuation of an accepted confirm. Alerts just dismiss."""
        if prompt in self._items:
            self._items.remove(prompt)
        if accepted and prompt.kind is PromptKind.CONFIRM and prompt.on_confirm is not None:
            return prompt.on_confirm()
        return None
