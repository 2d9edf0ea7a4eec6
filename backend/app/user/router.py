from typing import Annotated

from fastapi import APIRouter, Depends

from ..auth.service import get_current_user
from ..models.JWTAuthToken import AccessClaims

router = APIRouter(tags=["user"])

@router.get("/protected")
async def protected(current_user: Annotated[AccessClaims, Depends(get_current_user)]):
    """
    Example route that only answers with a valid access credential.
    """
    return {"message": "This is a protected route", "user": current_user.model_dump()}
