from fastapi import HTTPException, status


class ExamEngineError(HTTPException):
    """HTTPException carrying a stable machine-readable error code."""
    code = "BAD_REQUEST"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request could not be processed."

    def __init__(self, detail: str = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class NotFoundError(ExamEngineError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found."


class EntitlementRequiredError(ExamEngineError):
    code = "ENTITLEMENT_REQUIRED"
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You need to purchase this exam plan to access this test series."


class EmptyTestError(ExamEngineError):
    code = "EMPTY_TEST"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "This test series has no sections or questions."


class AttemptExpiredError(ExamEngineError):
    code = "ATTEMPT_EXPIRED"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Exam time has expired. The exam will be auto-submitted."


class AttemptCompletedError(ExamEngineError):
    code = "ATTEMPT_COMPLETED"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Exam has already been completed."


class AlreadyCompletedError(ExamEngineError):
    code = "ALREADY_COMPLETED"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Exam has already been submitted."


class AttemptNotCompletedError(ExamEngineError):
    code = "ATTEMPT_NOT_COMPLETED"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Exam has not been completed yet."


class ValidationFailedError(ExamEngineError):
    code = "VALIDATION"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Invalid request."
