from fastapi import Header
from typing import Optional


# Stand-in for real authentication: the caller identifies the user directly
def get_current_user_id(x_user_id: Optional[int] = Header(None)) -> Optional[int]:
    return x_user_id
