"""Cache key layout. Kept stable for interop and debugging:

    mylist:{user_id}:version
    mylist:{user_id}:page:{cursor_signature}:v{version}
    mylist:lock:{user_id}:{cursor_signature}
"""


def version_key(user_id: str) -> str:
    return f"mylist:{user_id}:version"


def page_key(user_id: str, signature: str, version: int) -> str:
    return f"mylist:{user_id}:page:{signature}:v{version}"


def lock_key(user_id: str, signature: str) -> str:
    return f"mylist:lock:{user_id}:{signature}"
