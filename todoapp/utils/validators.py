import re

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email))


def is_valid_task_title(title: str) -> bool:
    return 1 <= len(title) <= 200


def parse_bool_flag(value):
    """'true'/'false' -> bool, всё остальное -> None (фильтр не применяется)"""
    if value == "true":
        return True
    if value == "false":
        return False
    return None
