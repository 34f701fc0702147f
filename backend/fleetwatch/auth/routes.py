from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from fleetwatch.auth.jwt import ROLES, create_access_token

router = APIRouter()


@router.post("/auth/dev-token")
def dev_token(role: str = Query("operator", description="admin | operator | viewer")):
    """Development helper: returns a token for the requested role.

    In production, replace with real auth.
    """
    if role not in ROLES:
        raise HTTPException(status_code=400, detail=f"unknown role '{role}'")
    return {"access_token": create_access_token(f"dev-{role}", role), "token_type": "bearer", "role": role}
