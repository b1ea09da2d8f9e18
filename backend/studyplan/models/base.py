"""
Shared Pydantic Bases

Every request and response schema derives from one of these two classes so
the API behaves the same everywhere:

    JSON body  -> StrictRequest   unknown keys are a 422, strings are trimmed
    ORM record -> StrictResponse  built with model_validate(record)

Example:
    class SessionStatusUpdate(StrictRequest):
        status: SessionStatus

    SubjectResponse.model_validate(subject_row)
"""

from pydantic import BaseModel, ConfigDict


class StrictRequest(BaseModel):
    """
    Request body base.

    A misspelled field (``"qualty": 4``) must fail loudly instead of being
    dropped and replaced by a default.
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
        from_attributes=True,
    )


class StrictResponse(BaseModel):
    """Response body base; attributes the schema does not declare are skipped."""

    model_config = ConfigDict(
        extra="ignore",
        validate_default=True,
        from_attributes=True,
    )


class SuccessResponse(StrictResponse):
    """Body for deletes and other operations with nothing else to return."""

    success: bool = True
    message: str
