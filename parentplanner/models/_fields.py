from __future__ import annotations


def text_or_empty(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def id_list(value: object) -> list[str]:
    # Partially written documents may carry null or a non-list here.
    if not isinstance(value, (list, tuple)):
        return []

    out: list[str] = []
    seen: set[str] = set()
    for item in value:
        if not isinstance(item, str) or not item:
            continue
        if item in seen:
            continue
        seen.add(item)
        out.append(item)
    return out
