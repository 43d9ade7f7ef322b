"""Per-file result records returned by the conversion and cleanup pipelines."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Literal

OutcomeContext = Literal["convert", "delete"]


@dataclass(frozen=True)
class ConversionOutcome:
    """
    Result of processing one file.

    `classes` always starts with "success" or "error", followed by the
    context tag, the size label and any extra tags, without duplicates.
    """
    success: bool
    message: str
    classes: tuple[str, ...] = ()
    context: OutcomeContext | None = None
    size: str | None = None

    @classmethod
    def create(
        cls,
        success: bool,
        message: str,
        context: OutcomeContext | None = None,
        size: str | None = None,
        extra: Iterable[str] = (),
    ) -> "ConversionOutcome":
        tags = ["success" if success else "error"]
        if context:
            tags.append(context)
        if size:
            tags.append(size)
        tags.extend(extra)

        classes: list[str] = []
        for tag in tags:
            if tag and tag not in classes:
                classes.append(tag)

        return cls(
            success=success,
            message=message,
            classes=tuple(classes),
            context=context,
            size=size or None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "classes": list(self.classes),
            "context": self.context,
            "size": self.size,
        }
