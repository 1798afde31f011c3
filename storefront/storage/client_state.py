"""
Small pieces of per-browser state: search history and preferences.
Key names match the storefront's local storage keys.
"""
from typing import Dict, List, Optional

from storefront.storage.kv_store import KeyValueStore

SEARCH_HISTORY_KEY = "searchHistory"
RECENT_SEARCHES_KEY = "recentSearches"
LANGUAGE_KEY = "language"
COOKIE_PREFERENCES_KEY = "cookiePreferences"
TOKEN_KEY = "token"

MAX_SEARCH_HISTORY = 10
MAX_RECENT_SEARCHES = 5

SUPPORTED_LANGUAGES = ("en", "hi")
DEFAULT_LANGUAGE = "en"

DEFAULT_COOKIE_PREFERENCES = {
    "necessary": True,
    "analytics": False,
    "marketing": False,
    "functional": False
}


def _push_front(items: List[str], term: str, cap: int) -> List[str]:
    return ([term] + [i for i in items if i != term])[:cap]


class SearchHistory:
    """Most-recent-first search terms, de-duplicated and capped."""
    
    def __init__(self, storage: KeyValueStore):
        self.storage = storage
    
    async def _load(self, key: str) -> List[str]:
        value = await self.storage.get(key, [])
        if not isinstance(value, list):
            return []
        return [str(v) for v in value]
    
    async def history(self) -> List[str]:
        return await self._load(SEARCH_HISTORY_KEY)
    
    async def recent(self) -> List[str]:
        return await self._load(RECENT_SEARCHES_KEY)
    
    async def record(self, term: str) -> Optional[str]:
        """Remember a submitted search. Blank terms are ignored."""
        if not term or not term.strip():
            return None
        
        history = _push_front(await self.history(), term, MAX_SEARCH_HISTORY)
        recent = _push_front(await self.recent(), term, MAX_RECENT_SEARCHES)
        await self.storage.set(SEARCH_HISTORY_KEY, history)
        await self.storage.set(RECENT_SEARCHES_KEY, recent)
        return term
    
    async def clear(self):
        await self.storage.delete(SEARCH_HISTORY_KEY)
        await self.storage.delete(RECENT_SEARCHES_KEY)


class Preferences:
    """Language, cookie consent and the auth bearer token."""
    
    def __init__(self, storage: KeyValueStore):
        self.storage = storage
    
    async def get_language(self) -> str:
        language = await self.storage.get(LANGUAGE_KEY)
        return language if language in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE
    
    async def set_language(self, language: str) -> str:
        if language not in SUPPORTED_LANGUAGES:
            language = DEFAULT_LANGUAGE
        await self.storage.set(LANGUAGE_KEY, language)
        return language
    
    async def get_cookie_preferences(self) -> Dict[str, bool]:
        saved = await self.storage.get(COOKIE_PREFERENCES_KEY, {})
        preferences = dict(DEFAULT_COOKIE_PREFERENCES)
        if isinstance(saved, dict):
            preferences.update({k: bool(v) for k, v in saved.items()})
        # Necessary cookies cannot be opted out of
        preferences["necessary"] = True
        return preferences
    
    async def set_cookie_preferences(self, preferences: Dict[str, bool]) -> Dict[str, bool]:
        merged = dict(DEFAULT_COOKIE_PREFERENCES)
        merged.update({k: bool(v) for k, v in preferences.items()})
        merged["necessary"] = True
        await self.storage.set(COOKIE_PREFERENCES_KEY, merged)
        return merged
    
    async def get_token(self) -> Optional[str]:
        token = await self.storage.get(TOKEN_KEY)
        return token or None
    
    async def set_token(self, token: str):
        await self.storage.set(TOKEN_KEY, token)
    
    async def clear_token(self):
        await self.storage.delete(TOKEN_KEY)
