from fastapi import HTTPException, status


class InvalidSubmission(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class NotFound(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class StorageFailure(HTTPException):
    def __init__(self, detail: str = 'Quiz result could not be saved. Please retry.') -> None:
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


class RankingUnavailable(Exception):
    """Raised when scores cannot be read or written for ranking.

    Never reaches the client: the submission flow records the attempt unranked instead.
    """
