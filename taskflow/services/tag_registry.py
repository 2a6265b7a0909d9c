"""
Tag registry service
"""

import uuid
from typing import List, Iterable, Optional, Dict
from pydantic import ValidationError as ModelValidationError
from taskflow.config.constants import DEFAULT_TAGS, TAGS_RECORD_NAME
from taskflow.models.task import Tag
from taskflow.services.local_store import LocalStore
from taskflow.utils.error_handler import ValidationError
from taskflow.utils.logger import logger


class TagRegistry:
    """Registry of tags (add-only), persisted in the local store"""

    def __init__(self, store: LocalStore, record_name: str = TAGS_RECORD_NAME):
        """
        Initialize tag registry

        Args:
            store: Local key-value store
            record_name: Record holding the serialized tag list
        """
        self.store = store
        self.record_name = record_name
        self.logger = logger
        self._tags: List[Tag] = []
        self._loaded = False

    def _ensure_loaded(self):
        """Load tags once; seed defaults on first use"""
        if self._loaded:
            return
        self._loaded = True

        raw = self.store.get(self.record_name)
        if raw is None:
            self._tags = [Tag(**tag) for tag in DEFAULT_TAGS]
            self._persist()
            self.logger.info(f"Seeded {len(self._tags)} default tags")
            return

        tags = []
        for item in raw if isinstance(raw, list) else []:
            try:
                tags.append(Tag.model_validate(item))
            except ModelValidationError as e:
                self.logger.warning(f"Skipping malformed stored tag {item!r}: {e}")
        self._tags = tags
        self.logger.debug(f"Loaded {len(tags)} tags")

    def _persist(self):
        self.store.set(self.record_name, [tag.model_dump() for tag in self._tags])

    def _index(self) -> Dict[str, Tag]:
        return {tag.id: tag for tag in self._tags}

    def list(self) -> List[Tag]:
        """All tags in insertion order"""
        self._ensure_loaded()
        return list(self._tags)

    def get(self, tag_id: str) -> Optional[Tag]:
        """Tag by id, or None"""
        self._ensure_loaded()
        return self._index().get(tag_id)

    def resolve(self, tag_ids: Iterable[str]) -> List[Tag]:
        """
        Resolve tag ids to tags

        Unknown (stale) ids are dropped silently.

        Args:
            tag_ids: Tag ids in display order

        Returns:
            Known tags, in the order given
        """
        self._ensure_loaded()
        index = self._index()
        return [index[tag_id] for tag_id in tag_ids if tag_id in index]

    def add(self, name: str, color: str) -> Tag:
        """
        Add a new tag

        Args:
            name: Display name
            color: Display accent (e.g. "#3b82f6")

        Returns:
            Created tag with a fresh id

        Raises:
            ValidationError: If name or color is empty
        """
        self._ensure_loaded()

        name = (name or "").strip()
        color = (color or "").strip()
        if not name:
            raise ValidationError("Tag name is required")
        if not color:
            raise ValidationError("Tag color is required")

        existing = self._index()
        tag_id = uuid.uuid4().hex[:9]
        while tag_id in existing:
            tag_id = uuid.uuid4().hex[:9]

        tag = Tag(id=tag_id, name=name, color=color)
        self._tags.append(tag)
        self._persist()
        self.logger.info(f"Tag added: {name} ({tag_id})")
        return tag
