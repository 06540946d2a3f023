"""
JSON rule file models and validation.

- Top level: ``version`` (must be 1) and a list of ``rules``
- Each rule: ``search`` regex (required, non-empty), ``replace`` mask,
  optional ``trigger``, ``caseSensitive`` and ``description``
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SUPPORTED_VERSION = 1


class JsonRule(BaseModel):
    """One redaction rule as written in a JSON rule file."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    description: Optional[str] = Field(
        default=None,
        description="Free text, ignored by the engine"
    )
    trigger: str = Field(
        default="",
        description="Plain substring checked before running the regex"
    )
    search: str = Field(
        min_length=1,
        description="Regular expression to search for"
    )
    case_sensitive: bool = Field(
        default=True,
        alias="caseSensitive",
        description="False compiles the regex with IGNORECASE"
    )
    replace: str = Field(
        default="",
        description="Replacement mask, may reference capture groups"
    )


class JsonRuleFile(BaseModel):
    """A complete JSON rule file."""

    version: int = Field(description="Rule file format version")
    rules: List[JsonRule] = Field(default_factory=list)

    @field_validator("version")
    def validate_version(cls, v: int) -> int:
        """Only version 1 of the format is understood."""
        if v != SUPPORTED_VERSION:
            raise ValueError(f"Unsupported rule file version {v}, expected {SUPPORTED_VERSION}")
        return v
