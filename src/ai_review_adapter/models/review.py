"""
Review Data Models

Review engine output. Models are frozen: a ReviewResult is produced once per
run and written verbatim.
"""

from datetime import datetime
from typing import Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


NO_CHANGES_SUMMARY = "No changes found"


class ReviewComment(BaseModel):
    """Single review comment, optionally anchored to a file line"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    file: Optional[str] = None
    line: Optional[int] = None
    body: str = Field(validation_alias=AliasChoices('body', 'message'))

    @field_validator('line')
    @classmethod
    def validate_line(cls, v):
        if v is not None and v <= 0:
            raise ValueError('Line number must be positive')
        return v

    @field_validator('body')
    @classmethod
    def validate_body(cls, v):
        if not v.strip():
            raise ValueError('Comment body cannot be empty')
        return v

    @property
    def is_positioned(self) -> bool:
        """Whether the comment can be anchored to a diff line"""
        return bool(self.file) and self.line is not None


class ReviewMetadata(BaseModel):
    """Hunk count and timing; unknown engine keys are preserved"""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra='allow')

    total_hunks: Optional[int] = Field(default=None, alias='totalHunks')
    started_at: Optional[datetime] = Field(default=None, alias='startedAt')
    completed_at: Optional[datetime] = Field(default=None, alias='completedAt')

    @field_validator('total_hunks')
    @classmethod
    def validate_total_hunks(cls, v):
        if v is not None and v < 0:
            raise ValueError('Hunk count must be non-negative')
        return v


class ReviewResult(BaseModel):
    """Complete review of one diff"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    summary: str = ""
    comments: Tuple[ReviewComment, ...] = ()
    metadata: ReviewMetadata = Field(default_factory=ReviewMetadata)

    @classmethod
    def no_changes(cls, timestamp: Optional[datetime] = None) -> "ReviewResult":
        """Result for an empty diff"""
        return cls(
            summary=NO_CHANGES_SUMMARY,
            metadata=ReviewMetadata(total_hunks=0, started_at=timestamp, completed_at=timestamp),
        )

    @property
    def total_comments(self) -> int:
        return len(self.comments)

    @property
    def has_issues(self) -> bool:
        return self.total_comments > 0

    @property
    def positioned_comments(self) -> Tuple[ReviewComment, ...]:
        """Comments carrying both a file path and a line number"""
        return tuple(c for c in self.comments if c.is_positioned)

    def to_json_dict(self) -> dict:
        """Serializable form with camelCase metadata keys"""
        return self.model_dump(mode='json', by_alias=True)
