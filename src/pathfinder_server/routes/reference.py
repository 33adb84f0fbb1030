"""Reference data endpoints — available languages and client chrome strings.

Read-only; the data comes from the content loaded at startup.
"""

from fastapi import APIRouter, Depends

from pathfinder.store import ContentStore

from pathfinder_server.dependencies import get_store

router = APIRouter(prefix="/languages", tags=["reference"])


@router.get("")
def list_languages(
    store: ContentStore = Depends(get_store),
) -> list[dict]:
    """Return every available language with its display name and direction."""
    return [
        {
            "code": lang,
            "name": store.chrome(lang)["language_name"],
            "direction": store.chrome(lang)["direction"],
        }
        for lang in store.languages
    ]


@router.get("/{language}/chrome")
def get_chrome(
    language: str,
    store: ContentStore = Depends(get_store),
) -> dict[str, str]:
    """Header, input placeholder, footer and sources label for one language.

    Raises 404 for an unknown language.
    """
    return store.chrome(language)
