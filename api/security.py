#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Security Module - Bearer identity for the reference service

Authentication itself is external: whoever issued the token has already
validated the user. The reference service only needs a stable identity per
request, so the bearer token is taken as the user id.
"""

from typing import Optional
from fastapi import HTTPException, Header
from pydantic import BaseModel


class Identity(BaseModel):
    """Caller identity"""
    user_id: str


def _parse_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


# Dependency for FastAPI endpoints
async def get_current_user(
    authorization: Optional[str] = Header(None)
) -> Identity:
    """
    FastAPI dependency requiring a bearer token

    Usage:
        @router.post("/documents")
        async def create_document(
            body: DocumentCreate,
            user: Identity = Depends(get_current_user)
        ):
            ...
    """
    token = _parse_bearer(authorization)
    if token is None:
        raise HTTPException(
            status_code=401,
            detail="Authentication required. Please log in."
        )
    return Identity(user_id=token)
