import logging
import re
from typing import Callable, Iterator, List, Optional

from .errors import StorageError, ValidationError
from .models import Tag
from .storage import PersistenceGateway
from .utils import log_error, new_id

logger = logging.getLogger(__name__)

HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


class TagRegistry:
    """Flat, insertion-ordered collection of tags shared by every day."""

    def __init__(self, store: PersistenceGateway,
                 on_storage_error: Optional[Callable[[StorageError], None]] = None):
        self.store = store
        self.on_storage_error = on_storage_error
        self._tags: List[Tag] = []
        self.reload()

    def reload(self) -> None:
        try:
            self._tags = self.store.load_tags()
        except StorageError as e:
            self._report(e)

    def attach(self) -> bool:
        """Follow pushed registry changes when the store can push them."""
        if not self.store.supports("subscribe_tags"):
            return False
        self.store.subscribe_tags(self._on_pushed_tags)
        return True

    def _on_pushed_tags(self, tags: List[Tag]) -> None:
        self._tags = list(tags)

    def list_tags(self) -> List[Tag]:
        return list(self._tags)

    def find_tag(self, tag_id: Optional[str]) -> Optional[Tag]:
        for tag in self._tags:
            if tag.id == tag_id:
                return tag
        return None

    def search_tags(self, term: str) -> Iterator[Tag]:
        """Yield tags whose name contains ``term``, ignoring case."""
        needle = (term or "").lower()
        for tag in list(self._tags):
            if needle in tag.name.lower():
                yield tag

    def create_tag(self, name: str, color: str) -> Tag:
        name = (name or "").strip()
        if not name:
            raise ValidationError("tag name is required")
        if not HEX_COLOR_RE.match(color or ""):
            raise ValidationError(f"tag color must look like #RRGGBB, got {color!r}")
        tag = Tag(id=new_id(), name=name, color=color)
        self._tags.append(tag)
        logger.info("created tag %r (%s)", tag.name, tag.color)
        try:
            self.store.save_tags(self._tags)
        except StorageError as e:
            self._report(e)
        return tag

    def _report(self, e: StorageError) -> None:
        log_error(e, "tag storage failed")
        if self.on_storage_error is not None:
            self.on_storage_error(e)
