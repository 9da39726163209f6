from enum import Enum

from pydantic import BaseModel, ConfigDict


class Position(BaseModel):
    row: int
    column: int


class ReferenceKind(str, Enum):
    ACCESSOR = "accessor"
    PROPERTY = "property"
    UNKNOWN = "unknown"


class NamingConvention(str, Enum):
    NONE = "NONE"
    LOWER_CAMEL = "LOWER_CAMEL_CASE"
    UPPER_CAMEL = "UPPER_CAMEL_CASE"


class Reference(BaseModel):
    symbol_text: str
    kind: ReferenceKind
    source_file: str
    source_position: Position
    surrounding_line: str
    start_column: int = 0
    end_column: int = 0

    model_config = ConfigDict(frozen=True)


class ResolvedLocation(BaseModel):
    file_path: str
    position: Position
    offset: int = 0
    symbol: str | None = None

    model_config = ConfigDict(frozen=True)


class ClassDescriptor(BaseModel):
    short_name: str
    namespace: str
    file_path: str

    @property
    def fully_qualified_name(self) -> str:
        return f"{self.namespace}\\{self.short_name}" if self.namespace else self.short_name


class UseAlias(BaseModel):
    alias_name: str
    fully_qualified_name: str


class ProxyLinkage(BaseModel):
    proxy_file_path: str
    original_fully_qualified_name: str
    field_mapping: dict[str, str] = {}


class CompletionItem(BaseModel):
    label: str
    kind: str = "method"
    detail: str
    documentation: str | None = None
    insert_text: str | None = None


class TextEdit(BaseModel):
    file_path: str
    position: Position
    new_text: str


class CodeAction(BaseModel):
    title: str
    kind: str = "quickfix"
    edits: list[TextEdit]
    is_preferred: bool = False
