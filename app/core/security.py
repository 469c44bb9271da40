"""
Seguridad: emisión y validación de JWT

El login lo resuelve el servicio de autenticación; este backend solo
necesita validar el token Bearer que viene en cada request.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from app.core.config import get_settings

settings = get_settings()


def create_access_token(user_id: str, email: str, role: str = "student") -> str:
    """
    Crea un JWT para que el usuario pueda hacer requests autenticados

    El JWT contiene el user_id y el rol, y expira en 7 días
    """
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)

    payload = {
        "sub": user_id,      # Subject: el usuario
        "email": email,
        "role": role,
        "exp": expire,       # Expiración
        "iat": datetime.now(timezone.utc),  # Issued at (cuándo se creó)
    }

    # Firmo el token con nuestra clave secreta
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[dict]:
    """
    Decodifica y valida un JWT

    Retorna el payload si es válido, None si está expirado o corrupto
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm]
        )
        return payload
    except JWTError:
        # Token inválido, expirado, o corrupto
        return None
