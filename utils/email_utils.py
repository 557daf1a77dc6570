from email_validator import validate_email, EmailNotValidError
from fastapi import HTTPException


# Email validation
def normalize_email(email: str) -> str:
    """Validate an address and return its normalized form (lowercased domain)."""
    try:
        # no DNS lookup; registration must work offline
        valid = validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        raise HTTPException(status_code=400, detail="Invalid email address")
    return valid.normalized


def lookup_email(email: str) -> str:
    """Form of an address to search the users table with.

    Valid addresses are normalized the way registration stored them; anything
    else is used as typed, which simply matches no user.
    """
    email = email.strip()
    try:
        return validate_email(email, check_deliverability=False).normalized
    except EmailNotValidError:
        return email
