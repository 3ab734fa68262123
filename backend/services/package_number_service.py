"""
Package number service for DYHE Delivery backend.
Handles tracking number generation for packages.
"""
from datetime import datetime, timezone
import random
import string

PACKAGE_NUMBER_PREFIX = "DYHE"
MAX_ATTEMPTS = 5


def generate_package_number() -> str:
    """
    Generate a package number in format: DYHE[6 clock digits][6 random chars]

    The clock digits are the last six digits of the current epoch milliseconds,
    the random part is upper-case letters and digits.

    Returns:
        Package number string (e.g., "DYHE482913K7Q2ZD")
    """
    millis = int(datetime.now(timezone.utc).timestamp() * 1000)
    clock_part = str(millis)[-6:]
    random_part = ''.join(random.choices(string.ascii_uppercase + string.digits, k=6))
    return f"{PACKAGE_NUMBER_PREFIX}{clock_part}{random_part}"


async def generate_unique_package_number(db, taken: set = None) -> str:
    """
    Generate a package number not already stored nor in the given in-flight set.

    The unique index on packages.package_number remains the final guard.
    """
    taken = taken or set()
    for _ in range(MAX_ATTEMPTS):
        candidate = generate_package_number()
        if candidate in taken:
            continue
        existing = await db.packages.find_one({"package_number": candidate}, {"_id": 0, "id": 1})
        if not existing:
            return candidate
    raise RuntimeError("Could not generate a unique package number")
