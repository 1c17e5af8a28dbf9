import logging
import re
from typing import List, Optional

from core.models import LinkType, TodoLink

logger = logging.getLogger(__name__)

TODO_LINKS = "todo_links"

_YOUTUBE_ID = re.compile(r"^.*(youtu\.be/|v/|u/\w/|embed/|watch\?v=|&v=)([^#&?]*).*")


def detect_link_type(url: str) -> LinkType:
    if "youtube.com" in url or "youtu.be" in url:
        return LinkType.YOUTUBE
    return LinkType.WEBSITE


def youtube_embed_url(url: str) -> Optional[str]:
    m = _YOUTUBE_ID.match(url)
    if m and len(m.group(2)) == 11:
        return f"https://www.youtube.com/embed/{m.group(2)}"
    return None


class LinksService:
    """Links (web / YouTube) adjuntos a una tarea."""
    def __init__(self, store):
        self.store = store

    def list(self, todo_id: str) -> List[TodoLink]:
        records = self.store.select_many(TODO_LINKS, {"todo_id": todo_id}, sort="created")
        return [TodoLink.from_record(r) for r in records]

    def add(self, todo_id: str, label: str, url: str) -> Optional[TodoLink]:
        label, url = (label or "").strip(), (url or "").strip()
        if not label or not url:
            return None
        user_id = self.store.get_current_user()
        if not user_id:
            logger.warning("Cannot add link without a signed-in user")
            return None
        rec = self.store.insert(TODO_LINKS, {
            "user_id": user_id,
            "todo_id": todo_id,
            "label": label,
            "url": url,
            "type": detect_link_type(url).value,
        })
        return TodoLink.from_record(rec)

    def delete(self, link_id: str) -> None:
        self.store.delete(TODO_LINKS, {"id": link_id})
