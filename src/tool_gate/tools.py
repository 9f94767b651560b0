# tools.py
# Tool executors: all callable implementations.
# The gate dispatches through the registry and never calls these directly.
#
# Each executor receives an already-validated input model and returns an
# observation built through its output schema. Expected failures come back
# as failure observations; anything else raises and the gate converts it.

import logging
import math
import time

import httpx

from tool_gate.schemas import (
    CalculatorFailure,
    CalculatorInput,
    CalculatorObservation,
    CalculatorSuccess,
    CandidatesQuery,
    DbQueryFailure,
    DbQueryObservation,
    DbQuerySuccess,
    OpportunitiesQuery,
    WebFetchFailure,
    WebFetchInput,
    WebFetchObservation,
    WebFetchSuccess,
)

logger = logging.getLogger(__name__)

# Tool-authored error messages are capped below the schema's 100-char limit.
MAX_ERROR_CHARS = 50


def _bounded(message: str, limit: int = MAX_ERROR_CHARS) -> str:
    message = message.strip()[:limit]
    return message if len(message) >= 5 else "Unknown error"


# ---------------------------------------------------------------------------
# calculator
# ---------------------------------------------------------------------------


def _tool_calculator(params: CalculatorInput) -> CalculatorObservation:
    a, b, operation = params.a, params.b, params.operation

    if operation == "divide" and b == 0:
        return CalculatorFailure(
            a=a, b=b, operation=operation,
            error_type="invalid_calculation",
            error_message="Division by zero",
        )

    try:
        if operation == "multiply":
            result = a * b
        elif operation == "add":
            result = a + b
        elif operation == "subtract":
            result = a - b
        else:
            result = a / b
    except ArithmeticError as exc:
        return CalculatorFailure(
            a=a, b=b, operation=operation,
            error_type="runtime_error",
            error_message=_bounded(str(exc) or type(exc).__name__),
        )

    if isinstance(result, float) and not math.isfinite(result):
        return CalculatorFailure(
            a=a, b=b, operation=operation,
            error_type="invalid_calculation",
            error_message="Non-finite calculation result",
        )

    return CalculatorSuccess(result=result, a=a, b=b, operation=operation)


# ---------------------------------------------------------------------------
# web_fetch
# ---------------------------------------------------------------------------


def _elapsed_ms(started: float) -> int:
    return max(0, int((time.perf_counter() - started) * 1000))


def _timed_out(params: WebFetchInput, started: float, url: str) -> WebFetchFailure:
    logger.info("web_fetch timed out after %dms: %s", params.timeout_ms, url)
    return WebFetchFailure(
        timing_ms=_elapsed_ms(started),
        error_type="timeout",
        error_message=f"Request timed out after {params.timeout_ms}ms",
    )


def _tool_web_fetch(params: WebFetchInput) -> WebFetchObservation:
    # timeout_ms bounds the whole request. httpx's own timeout only bounds
    # each connect/read, so a slowly trickling body is cut off here.
    started = time.perf_counter()
    deadline = started + params.timeout_ms / 1000
    url = str(params.url)

    try:
        with httpx.stream(
            params.method,
            url,
            timeout=params.timeout_ms / 1000,
            follow_redirects=True,
        ) as response:
            if time.perf_counter() > deadline:
                return _timed_out(params, started, url)

            if response.status_code >= 400:
                return WebFetchFailure(
                    status=response.status_code,
                    timing_ms=_elapsed_ms(started),
                    error_type="http_error",
                    error_message=_bounded(
                        f"HTTP {response.status_code}: {response.reason_phrase}", 100
                    ),
                )

            chunks: list[str] = []
            received = 0
            for chunk in response.iter_text():
                if time.perf_counter() > deadline:
                    return _timed_out(params, started, url)
                chunks.append(chunk)
                received += len(chunk)
                # One char past the limit is enough to know the body was cut.
                if received > params.max_chars:
                    break

            final_url = str(response.url)
            status = response.status_code
            content_type = response.headers.get("content-type")
    except httpx.TimeoutException:
        return _timed_out(params, started, url)
    except httpx.HTTPError as exc:
        logger.info("web_fetch failed for %s: %s", url, exc)
        return WebFetchFailure(
            timing_ms=_elapsed_ms(started),
            error_type="runtime_error",
            error_message=_bounded(str(exc) or type(exc).__name__, 100),
        )

    text = "".join(chunks)
    return WebFetchSuccess(
        final_url=final_url,
        status=status,
        timing_ms=_elapsed_ms(started),
        content_type=content_type,
        text=text[: params.max_chars],
        truncated=len(text) > params.max_chars,
    )


# ---------------------------------------------------------------------------
# db_query_* (in-memory mock tables)
# ---------------------------------------------------------------------------

CANDIDATES: list[dict[str, str]] = [
    {
        "id": "550e8400-e29b-41d4-a716-446655440001",
        "name": "Alice Johnson",
        "email": "alice@example.com",
        "address": "123 Main St, NYC",
    },
    {
        "id": "550e8400-e29b-41d4-a716-446655440002",
        "name": "Bob Smith",
        "email": "bob@example.com",
        "address": "456 Oak Ave, LA",
    },
    {
        "id": "550e8400-e29b-41d4-a716-446655440003",
        "name": "Carol White",
        "email": "carol@example.com",
        "address": "789 Pine Rd, Chicago",
    },
]

OPPORTUNITIES: list[dict[str, str]] = [
    {
        "id": "550e8400-e29b-41d4-a716-446655440010",
        "name": "Mcdonalds",
        "position": "Manager",
        "stage": "onsite",
    },
    {
        "id": "550e8400-e29b-41d4-a716-446655440011",
        "name": "Burger King",
        "position": "Product Manager",
        "stage": "screen",
    },
    {
        "id": "550e8400-e29b-41d4-a716-446655440012",
        "name": "Taco Bell",
        "position": "Designer",
        "stage": "applied",
    },
]


def _query_table(
    rows: list[dict[str, str]],
    params: CandidatesQuery | OpportunitiesQuery,
    label: str,
) -> DbQueryObservation:
    field, value = params.where.field, params.where.value
    matches = [row for row in rows if row[field] == value]

    if not matches:
        return DbQueryFailure(
            table=params.table,
            columns=list(params.columns),
            error_type="not_found",
            error_message=_bounded(f"No {label} found with {field} = {value}"),
        )

    limited = matches[: params.limit]
    selected = [{column: row[column] for column in params.columns} for row in limited]

    return DbQuerySuccess(
        table=params.table,
        columns=list(params.columns),
        rows=selected,
        rows_returned=len(selected),
        has_more=len(matches) > params.limit,
    )


def _tool_db_query_candidates(params: CandidatesQuery) -> DbQueryObservation:
    return _query_table(CANDIDATES, params, "candidate")


def _tool_db_query_opportunities(params: OpportunitiesQuery) -> DbQueryObservation:
    return _query_table(OPPORTUNITIES, params, "opportunity")
