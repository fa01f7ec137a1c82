"""
Translate scoring engine errors into HTTP responses.
"""

from fastapi import HTTPException

from scoring_engine.modules.errors import (
    DuplicateEntityId,
    DuplicateFactorId,
    ScoringError,
    UnknownFactor,
    UnknownPreset,
)

# Anything not listed is a 422: the request was well-formed but unscorable
STATUS_CODES = {
    UnknownFactor: 404,
    UnknownPreset: 404,
    DuplicateFactorId: 409,
    DuplicateEntityId: 409,
}


def status_for(error: ScoringError) -> int:
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(error, error_type):
            return status_code
    return 422


def error_body(error: ScoringError) -> dict:
    return {"error": error.code, "message": error.message}


def to_http(error: ScoringError) -> HTTPException:
    return HTTPException(status_code=status_for(error), detail=error_body(error))
