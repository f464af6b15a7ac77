from typing import Literal

from pydantic import BaseModel, Field

from ferry.core.types import TsType


class Position(BaseModel):
    row: int
    column: int


class PhpNode(BaseModel):
    type: str
    named: bool
    text: str
    start_point: Position
    end_point: Position
    has_error: bool = False
    children: list["PhpNode"] = Field(default_factory=list)


PhpNode.model_rebuild()  # necessary for recursive types


class SourceLocation(BaseModel):
    file: str
    line: int
    column: int = 0


class EnumCase(BaseModel):
    key: str
    value: str | int
    label: str | None = None
    origin: SourceLocation | None = None


class EnumDefinition(BaseModel):
    name: str
    backing: Literal["string", "int"] | None = None
    cases: list[EnumCase] = Field(default_factory=list)
    origin: SourceLocation | None = None

    @property
    def has_labels(self) -> bool:
        return any(case.label is not None for case in self.cases)


class ResourceEntry(BaseModel):
    key: str
    value: PhpNode
    origin: SourceLocation | None = None


class ResourceDeclaration(BaseModel):
    class_name: str
    entries: list[ResourceEntry] = Field(default_factory=list)
    doc_shape: dict[str, str] | None = None
    origin: SourceLocation | None = None


class FieldDescriptor(BaseModel):
    type: TsType
    optional: bool = False
    origin: SourceLocation | None = None


class ResourceSchema(BaseModel):
    class_name: str
    fields: dict[str, FieldDescriptor] = Field(default_factory=dict)
    is_fallback: bool = False
    origin: SourceLocation | None = None


class PositionMapping(BaseModel):
    generated_line: int = Field(ge=1)
    generated_column: int = Field(default=0, ge=0)
    source_line: int = Field(ge=1)
    source_column: int = Field(default=0, ge=0)


class GeneratedFile(BaseModel):
    name: str
    content: str
