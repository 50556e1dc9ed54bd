import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from jose import jwt as jose_jwt
from sqlalchemy.orm import Session

from .config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, SECRET_KEY
from .database import get_db
from .models import Doctor

logger = logging.getLogger(__name__)

security = HTTPBearer()


def create_access_token(doctor_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Issue a signed token for a doctor.

    Sessions are owned by the identity provider in front of this service;
    this helper exists for service-to-service calls and tests.
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode: dict[str, Any] = {"sub": doctor_id, "exp": expire}
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"⚠️ Rejected token: {e}")
        raise HTTPException(status_code=401, detail="Invalid or expired token") from e


def get_current_doctor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Doctor:
    """Resolve the authenticated doctor from the bearer token"""
    payload = decode_access_token(credentials.credentials)
    doctor_id = payload.get("sub")
    if not doctor_id:
        raise HTTPException(status_code=401, detail="Token has no subject")

    doctor = db.query(Doctor).filter(Doctor.id == doctor_id).first()
    if not doctor:
        logger.warning(f"⚠️ Token subject {doctor_id} does not match any doctor")
        raise HTTPException(status_code=401, detail="Doctor not found")
    return doctor
