"""Sleep record (sanitized request), validation result, LLM call result and analysis response."""

from pydantic import BaseModel, ConfigDict, Field


class Duration(BaseModel):
    """Hours + minutes pair (total sleep or one sleep phase)."""

    model_config = ConfigDict(frozen=True)

    hours: int = Field(0, ge=0, le=24)
    minutes: int = Field(0, ge=0, le=59)


class AwakeDuration(BaseModel):
    model_config = ConfigDict(frozen=True)

    minutes: int = Field(0, ge=0, le=480)


class SleepTimeSpan(BaseModel):
    """Bedtime and wake time, "HH:MM". `from` is a keyword, hence the alias."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: str = Field("00:00", alias="from")
    to: str = "00:00"


class SleepRecord(BaseModel):
    """One night of manually entered sleep data, after sanitization. Wire names are camelCase."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: str = Field(..., description="YYYY-MM-DD")
    total_sleep: Duration = Field(..., alias="totalSleep")
    awake: AwakeDuration
    rem: Duration
    light: Duration  # "Kern"
    deep: Duration  # "Tief"
    sleep_time: SleepTimeSpan = Field(..., alias="sleepTime")

    def to_payload(self) -> dict:
        """Wire-format dict (same shape the form posts)."""
        return self.model_dump(by_alias=True)


class ValidationResult(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ParsedAnalysis(BaseModel):
    """Fields recovered from the LLM text reply; `analysis` is always the full text."""

    score: str
    analysis: str
    trend: str
    recommendation: str


class AnalysisResponse(BaseModel):
    """Successful POST /api/analyze body."""

    success: bool = True
    message: str
    timestamp: str  # ISO 8601, UTC
    score: str
    analysis: str
    trend: str
    recommendation: str


class ErrorDetail(BaseModel):
    code: int
    message: str
    details: str | None = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: ErrorDetail


class ChatCompletionResult(BaseModel):
    """Outcome of one chat-completion call; failures carry a status code instead of raising."""

    model_config = ConfigDict(frozen=True)

    success: bool
    status_code: int
    content: str | None = None
    error: str | None = None
