from pydantic import BaseModel

class UserContext(BaseModel):
    """Identity of the caller, resolved from the bearer token."""
    user_id: int
