from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from fastapi import HTTPException

from aircargo.config import SECRET_KEY, ALGORITHM, TOKEN_ISSUER, ACCESS_TOKEN_EXPIRE_MINUTES


def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "iss": TOKEN_ISSUER})

    # Asegurarse de que el 'sub' sea un string
    if 'sub' in to_encode:
        to_encode['sub'] = str(to_encode['sub'])

    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str):
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM], issuer=TOKEN_ISSUER)
    except JWTError:
        raise HTTPException(status_code=401, detail="Token is invalid or expired")
