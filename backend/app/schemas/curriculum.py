from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class CurriculumItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    identifier: str = Field(min_length=1, max_length=200)
    required_sessions: int = Field(gt=0, le=1000)

    @field_validator("identifier")
    @classmethod
    def strip_identifier(cls, value: str) -> str:
        identifier = value.strip()
        if not identifier:
            raise ValueError("Curriculum identifier cannot be blank")
        return identifier


class CurriculumCatalogFile(BaseModel):
    entries: list[CurriculumItem] = Field(min_length=1)
    aliases: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_references(self) -> "CurriculumCatalogFile":
        seen: set[str] = set()
        duplicates: set[str] = set()
        for item in self.entries:
            if item.identifier in seen:
                duplicates.add(item.identifier)
            seen.add(item.identifier)
        if duplicates:
            raise ValueError(f"Duplicate catalog identifiers: {', '.join(sorted(duplicates))}")

        dangling = sorted(alias for alias, target in self.aliases.items() if target not in seen)
        if dangling:
            raise ValueError(f"Aliases point to unknown identifiers: {', '.join(dangling)}")
        return self


class CurriculumCatalogOut(BaseModel):
    match_policy: str
    entries: list[CurriculumItem]
    aliases: dict[str, str]
