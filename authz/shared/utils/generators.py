"""ID generators (CUID2) and tenant-qualified slug prefixes."""

from cuid2 import cuid_wrapper

cuid_generator = cuid_wrapper()

TENANT_PREFIX_LENGTH = 8


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier (CUID2).

    Returns:
        A new CUID string.
    """
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result


def tenant_prefix(tenant_id: str) -> str:
    """Short tenant qualifier used in cloned group slugs (e.g. 'admin-<prefix>')."""
    return tenant_id[:TENANT_PREFIX_LENGTH].lower()
