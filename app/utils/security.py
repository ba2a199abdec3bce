# app/utils/security.py

from passlib.context import CryptContext

from app.utils.logger import get_logger

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def verify_password(password: str, hashed_password: str) -> bool:
    """
    Check a plain password against a stored bcrypt hash
    Args:
        password: str
        hashed_password: str
    Returns:
        bool, False when no hash is stored or the hash is malformed
    """
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(password, hashed_password)
    except ValueError as e:
        logger.warning("Stored password hash could not be verified", error_message=str(e))
        return False


def get_password_hash(password: str) -> str:
    """
    Hash a password with bcrypt
    Args:
        password: str
    Returns:
        str
    """
    return pwd_context.hash(password)
