import os

from fastapi import APIRouter

router = APIRouter()


@router.get("")
def health_check():
    """
    Check the health of the API worker that served the request.
    """
    return {"status": "ok", "pid": os.getpid()}
