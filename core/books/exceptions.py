"""
GiftBook Custom Exceptions
"""


class BookError(Exception):
    """Base exception for the book pipeline"""
    pass


class BookNotFoundError(BookError):
    """Book (or the principal acting on it) does not exist"""
    def __init__(self, message: str, book_id: int = None):
        self.book_id = book_id
        super().__init__(message)


class AccessDeniedError(BookError):
    """Caller is not allowed to perform the operation"""
    def __init__(self, message: str, book_id: int = None):
        self.book_id = book_id
        super().__init__(message)


class GenerationUnavailableError(BookError):
    """Text provider could not produce a story (timeout, auth, empty reply)"""
    pass


class RenderFailureError(BookError):
    """PDF artifact could not be produced"""
    def __init__(self, book_id: int, message: str):
        self.book_id = book_id
        super().__init__(f"[book {book_id}] {message}")
