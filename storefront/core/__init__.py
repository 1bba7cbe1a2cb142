from storefront.core.config import settings
from storefront.core.database import get_db, Base, get_db_session
from storefront.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    decode_token,
)
