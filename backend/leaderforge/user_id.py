import random
import string


def _random_block(length: int = 8) -> str:
    """
    Return a random string of uppercase letters and digits.
    """
    alphabet = string.ascii_uppercase + string.digits
    return "".join(random.choices(alphabet, k=length))


def generate_user_id(prefix: str = "USR") -> str:
    """
    Generate a short user ID like 'USR-1F2A9C3D'.

    IMPORTANT:
    - This function is used by SQLAlchemy as a column default.
    - SQLAlchemy will call it with **zero** positional arguments,
      so the function must work when called as `generate_user_id()`.
    - It must also not have more than ONE positional parameter.
    """
    block = _random_block(8)
    if prefix:
        return f"{prefix}-{block}"
    return block


def generate_company_code() -> str:
    """
    Five-digit invite code handed to people joining a company, e.g. '40217'.

    Uniqueness is checked by the caller against existing companies.
    """
    return str(random.randint(10000, 99999))
