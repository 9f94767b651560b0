# schemas.py
# Input and observation contracts for every tool in the catalog.
# No business logic lives here: pure schema and validation.
#
# Every observation carries a uniform `success` discriminant. Executors build
# their observations through these models, so an observation that leaves an
# executor has already been proven against its output schema.

from typing import Annotated, Literal, Optional, Union

from pydantic import (
    AllowInfNan,
    BaseModel,
    Field,
    HttpUrl,
    Strict,
    StrictInt,
    model_validator,
)

# Numbers arriving from a model are never coerced: "5" is not 5.
Number = Union[StrictInt, Annotated[float, Strict(), AllowInfNan(False)]]
ErrorMessage = Annotated[str, Field(min_length=5, max_length=100)]

UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# ---------------------------------------------------------------------------
# Gate-level failures
# ---------------------------------------------------------------------------


class ToolFailure(BaseModel):
    """Observation produced by the gate itself, before or around an executor."""

    success: Literal[False] = False
    error_type: Literal["invalid_input", "invalid_schema", "runtime_error"]
    error_message: ErrorMessage


# ---------------------------------------------------------------------------
# calculator
# ---------------------------------------------------------------------------

Operation = Literal["multiply", "add", "subtract", "divide"]


class CalculatorInput(BaseModel):
    a: Number
    b: Number
    operation: Operation


class CalculatorSuccess(BaseModel):
    success: Literal[True] = True
    result: Number = Field(..., description="Always finite.")
    a: Number
    b: Number
    operation: Operation


class CalculatorFailure(BaseModel):
    success: Literal[False] = False
    a: Optional[Number] = None
    b: Optional[Number] = None
    operation: Operation
    error_type: Literal["invalid_input", "invalid_calculation", "runtime_error", "invalid_schema"]
    error_message: ErrorMessage


# ---------------------------------------------------------------------------
# web_fetch
# ---------------------------------------------------------------------------


class WebFetchInput(BaseModel):
    url: HttpUrl = Field(..., description="Url we are fetching, must include https://")
    timeout_ms: int = Field(default=2500, ge=100, le=10000, strict=True)
    max_chars: int = Field(default=1500, ge=200, le=5000, strict=True)
    method: Literal["GET"] = "GET"


class WebFetchSuccess(BaseModel):
    success: Literal[True] = True
    final_url: HttpUrl
    status: int = Field(..., ge=200, le=399)
    timing_ms: int = Field(..., ge=0)
    content_type: Optional[str] = None
    text: str
    truncated: bool


class WebFetchFailure(BaseModel):
    success: Literal[False] = False
    status: Optional[int] = Field(default=None, ge=400, le=599)
    timing_ms: int = Field(..., ge=0)
    error_type: Literal["invalid_input", "http_error", "runtime_error", "invalid_schema", "timeout"]
    error_message: ErrorMessage


# ---------------------------------------------------------------------------
# db_query_candidates / db_query_opportunities
# ---------------------------------------------------------------------------

CandidateColumn = Literal["id", "name", "email", "address"]
OpportunityColumn = Literal["id", "name", "position", "stage"]
Stage = Literal["applied", "screen", "onsite"]

TABLE_COLUMNS: dict[str, tuple[str, ...]] = {
    "candidates": ("id", "name", "email", "address"),
    "opportunities": ("id", "name", "position", "stage"),
}


class _Filter(BaseModel):
    operator: Literal["="]


class CandidateNameFilter(_Filter):
    field: Literal["name"]
    value: str = Field(..., min_length=1)


class CandidateEmailFilter(_Filter):
    field: Literal["email"]
    value: str = Field(..., pattern=EMAIL_PATTERN)


class CandidateIdFilter(_Filter):
    field: Literal["id"]
    value: str = Field(..., pattern=UUID_PATTERN)


class CandidateAddressFilter(_Filter):
    field: Literal["address"]
    value: str = Field(..., min_length=5)


class OpportunityNameFilter(_Filter):
    field: Literal["name"]
    value: str = Field(..., min_length=1)


class OpportunityPositionFilter(_Filter):
    field: Literal["position"]
    value: str


class OpportunityIdFilter(_Filter):
    field: Literal["id"]
    value: str = Field(..., pattern=UUID_PATTERN)


class OpportunityStageFilter(_Filter):
    field: Literal["stage"]
    value: Stage


CandidateFilter = Annotated[
    Union[CandidateNameFilter, CandidateEmailFilter, CandidateIdFilter, CandidateAddressFilter],
    Field(discriminator="field"),
]
OpportunityFilter = Annotated[
    Union[OpportunityNameFilter, OpportunityPositionFilter, OpportunityIdFilter, OpportunityStageFilter],
    Field(discriminator="field"),
]


class CandidatesQuery(BaseModel):
    table: Literal["candidates"]
    columns: list[CandidateColumn] = Field(..., min_length=1)
    where: CandidateFilter
    limit: int = Field(default=10, ge=1, le=25, strict=True)


class OpportunitiesQuery(BaseModel):
    table: Literal["opportunities"]
    columns: list[OpportunityColumn] = Field(..., min_length=1)
    where: OpportunityFilter
    limit: int = Field(default=10, ge=1, le=25, strict=True)


class DbQuerySuccess(BaseModel):
    success: Literal[True] = True
    table: Literal["candidates", "opportunities"]
    columns: list[str] = Field(..., min_length=1)
    rows: list[dict[str, str]]
    rows_returned: int = Field(..., ge=0, le=25)
    has_more: bool

    @model_validator(mode="after")
    def _rows_match_columns(self) -> "DbQuerySuccess":
        unknown = set(self.columns) - set(TABLE_COLUMNS[self.table])
        if unknown:
            raise ValueError(f"unknown columns for {self.table}: {sorted(unknown)}")
        for row in self.rows:
            if set(row) != set(self.columns):
                raise ValueError("row keys must be exactly the requested columns")
        if self.rows_returned != len(self.rows):
            raise ValueError("rows_returned does not match the number of rows")
        return self


class DbQueryFailure(BaseModel):
    success: Literal[False] = False
    table: Literal["candidates", "opportunities"]
    columns: list[str] = Field(..., min_length=1)
    error_type: Literal["invalid_input", "invalid_schema", "runtime_error", "not_found"]
    error_message: ErrorMessage


# ---------------------------------------------------------------------------
# Output unions
# ---------------------------------------------------------------------------

CalculatorObservation = Union[CalculatorSuccess, CalculatorFailure]
WebFetchObservation = Union[WebFetchSuccess, WebFetchFailure]
DbQueryObservation = Union[DbQuerySuccess, DbQueryFailure]
