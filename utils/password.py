import os
import bcrypt

# tests lower this; 12 is the production cost
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))
# bcrypt only looks at the first 72 bytes and newer releases refuse longer input
MAX_PASSWORD_BYTES = 72

def password_too_long(password: str) -> bool:
    return len(password.encode('utf-8')) > MAX_PASSWORD_BYTES

def hash_password(password: str) -> str:
    """ Hash a plaintext password with bcrypt """
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode('utf-8')

def verify_password(input_password: str, hashed_password: str) -> bool:
    """ Check a plaintext password against a stored bcrypt hash """
    if password_too_long(input_password):
        # could never have been registered
        return False
    try:
        return bcrypt.checkpw(input_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        # stored value is not a bcrypt hash
        return False
