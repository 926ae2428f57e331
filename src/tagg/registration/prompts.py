"""Decision providers consulted before overwriting existing annotations."""

from __future__ import annotations

from typing import List, Protocol, Sequence, Tuple

import click


class Confirmer(Protocol):
    """Answer yes/no questions raised mid-operation."""

    def confirm(self, question: str, *, default: bool, details: Sequence[str] = ()) -> bool:
        """Return whether the user agreed to ``question``.

        Args:
            question: Yes/no question to answer.
            default: Answer used when the user just presses enter.
            details: Lines describing what the question is about, shown first.
        """
        ...


class ClickConfirmer:
    """Ask on the terminal through `click.confirm`."""

    def confirm(self, question: str, *, default: bool, details: Sequence[str] = ()) -> bool:
        for line in details:
            click.secho(line, fg="yellow", err=True)
        return click.confirm(question, default=default, err=True)


class StaticConfirmer:
    """Return a fixed answer and remember every question asked."""

    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.questions: List[str] = []
        self.details: List[Tuple[str, ...]] = []

    def confirm(self, question: str, *, default: bool, details: Sequence[str] = ()) -> bool:
        self.questions.append(question)
        self.details.append(tuple(details))
        return self.answer


__all__ = ["Confirmer", "ClickConfirmer", "StaticConfirmer"]
