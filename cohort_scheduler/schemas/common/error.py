from typing import Any, Dict, Optional
from pydantic import BaseModel

class ErrorResponse(BaseModel):
    success: bool = False
    error_code: str
    message: str
    status_code: int
    details: Optional[Dict[str, Any]] = None
