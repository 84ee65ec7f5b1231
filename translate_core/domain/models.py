from __future__ import annotations

from dataclasses import dataclass, field, replace


@dataclass(frozen=True, slots=True)
class Language:
    code: str
    name: str = field(compare=False)
    locale: str | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class HistoryItem:
    id: int | None
    from_language_code: str
    from_text: str
    to_language_code: str
    to_text: str

    @classmethod
    def pending(
        cls,
        from_language: Language,
        from_text: str,
        to_language: Language,
        to_text: str,
    ) -> "HistoryItem":
        return cls(
            id=None,
            from_language_code=from_language.code,
            from_text=from_text,
            to_language_code=to_language.code,
            to_text=to_text,
        )

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    def with_id(self, item_id: int) -> "HistoryItem":
        return replace(self, id=item_id)
