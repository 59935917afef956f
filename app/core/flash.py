"""One-shot notifications carried across a redirect in the signed session cookie."""
from typing import Dict, List
from fastapi import Request

FLASH_SESSION_KEY = "_flashes"


def flash(request: Request, message: str, category: str = "info") -> None:
    flashes = request.session.get(FLASH_SESSION_KEY, [])
    flashes.append({"category": category, "message": message})
    request.session[FLASH_SESSION_KEY] = flashes


def pop_flashes(request: Request) -> List[Dict[str, str]]:
    return request.session.pop(FLASH_SESSION_KEY, [])
