# cohort_scheduler/core/exceptions.py

class BaseAppException(Exception):
    """Base exception class for failures internal to the batch jobs"""
    pass

class GraphAPIError(BaseAppException):
    """Raised when a Microsoft Graph call returns a non-success status"""
    def __init__(self, operation: str, status: int, body: str = ""):
        self.operation = operation
        self.status = status
        self.body = body
        self.message = f"{operation} failed with HTTP {status}: {body[:300]}"
        super().__init__(self.message)

class MissingJoinUrlException(BaseAppException):
    """Raised when the provider created a meeting but returned no join URL"""
    def __init__(self, message="Meeting created but no join URL returned"):
        self.message = message
        super().__init__(self.message)

class SchemaNotReadyException(BaseAppException):
    """Raised when a cohort table lacks the meeting-link column"""
    def __init__(self, table: str):
        self.table = table
        self.message = f"{table}: teams_meeting_link column not found"
        super().__init__(self.message)

class InvalidTableNameException(BaseAppException):
    """Raised when a table name does not follow the cohort schedule convention"""
    def __init__(self, table: str):
        self.table = table
        self.message = f"Invalid cohort schedule table name: {table!r}"
        super().__init__(self.message)
