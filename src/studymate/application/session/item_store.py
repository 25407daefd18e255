"""
Item store: the ordered item set a session works on.

Loading or generating always replaces the held set wholesale.
"""

import logging

from studymate.domain.session.errors import ApiError, GenerationError, LoadError, NotFoundError
from studymate.domain.session.models import Item, ItemKind, ItemSet
from studymate.domain.session.ports import StudyApi

logger = logging.getLogger(__name__)


class ItemStore:
    """Holds the current ItemSet for one note and one item kind."""

    def __init__(self, api: StudyApi, kind: ItemKind):
        self._api = api
        self.kind = kind
        self._item_set: ItemSet | None = None

    @property
    def item_set(self) -> ItemSet | None:
        return self._item_set

    @property
    def items(self) -> tuple[Item, ...]:
        return self._item_set.items if self._item_set else ()

    @property
    def source_id(self) -> str | None:
        return self._item_set.source_id if self._item_set else None

    def __len__(self) -> int:
        return len(self.items)

    async def load(self, note_id: str) -> ItemSet:
        """
        Fetch the existing items for a note.

        For flashcards a missing set is the normal first-time state and loads
        as empty. For quizzes it raises NotFoundError.

        Raises:
            NotFoundError: No quiz exists for the note.
            LoadError: Any other remote failure.
        """
        try:
            item_set = await self._api.fetch_items(self.kind, note_id)
        except NotFoundError:
            if self.kind is not ItemKind.FLASHCARD:
                raise
            logger.info(f"No flashcards yet for note {note_id}")
            item_set = ItemSet(note_id=note_id, kind=self.kind)
        except ApiError as e:
            raise LoadError(f"Failed to load {self.kind.value} items: {e.message}") from e

        self._item_set = item_set
        logger.debug(f"Loaded {len(item_set)} {self.kind.value} items for note {note_id}")
        return item_set

    async def generate(self, note_id: str, count: int) -> ItemSet:
        """
        Generate a fresh item set for a note.

        Raises:
            GenerationError: The remote generation step failed.
        """
        try:
            item_set = await self._api.generate_items(self.kind, note_id, count)
        except ApiError as e:
            raise GenerationError(f"Failed to generate {self.kind.value} items: {e.message}") from e

        self._item_set = item_set
        logger.info(f"Generated {len(item_set)} {self.kind.value} items for note {note_id}")
        return item_set

    def clear(self) -> None:
        self._item_set = None
