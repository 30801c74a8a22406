from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from salesmaster.core.security import Actor, authenticate, get_actor
from salesmaster.persistence.db import get_session

router = APIRouter(tags=["auth"])


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


@router.post("/auth/login")
def login(request: LoginRequest, session: Session = Depends(get_session)):
    auth = authenticate(session, request.username, request.password)
    if auth is None:
        raise HTTPException(status_code=401, detail="invalid username or password")
    return {"token": auth.token, "username": auth.username}


@router.get("/auth/me")
def whoami(actor: Actor = Depends(get_actor)):
    return actor.model_dump()
