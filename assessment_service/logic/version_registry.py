"""Version registry: version summaries and the single active-version pointer.

The registry owns exactly one piece of state, the `registry/active_version`
pointer. Everything else about a version is derived from the questions that
carry its id. Pointer transitions:

    no_active_version --activate(v)--> active(v)
    active(v')        --activate(v)--> rejected (ConflictError) when v != v'
    active(v)         --deactivate(v)--> no_active_version
    anything else     --deactivate(v)--> no-op
    active(v)         --delete_version(v)--> no_active_version (+ cascade)

Pointer writes are compare-and-set against the value just read, so two
concurrent activations cannot both land.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from assessment_service.logic import events
from assessment_service.logic.errors import ConflictError, NotFound, ValidationError
from assessment_service.logic.keys import ACTIVE_VERSION_KEY, VERSION_META_PREFIX, question_key, version_meta_key
from assessment_service.logic.kv_store import KeyValueStore
from assessment_service.logic.question_bank import QuestionBank
from assessment_service.logic.version_index import build_version_index, normalize_version_id
from assessment_service.models.question import Question
from assessment_service.models.version import VersionMetadata, VersionSummary

logger = logging.getLogger(__name__)


def _pointer(version_id: str) -> Dict[str, Any]:
    return {"version_id": version_id}


class VersionRegistry:
    def __init__(self, store: KeyValueStore, question_bank: Optional[QuestionBank] = None) -> None:
        self.store = store
        self.question_bank = question_bank or QuestionBank(store)

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    def active_version_id(self) -> Optional[str]:
        return self.question_bank.active_version_id()

    def _metadata_by_version(self) -> Dict[str, VersionMetadata]:
        out: Dict[str, VersionMetadata] = {}
        for record in self.store.list_prefix(VERSION_META_PREFIX):
            out[record.key[len(VERSION_META_PREFIX):]] = VersionMetadata.model_validate(record.value)
        return out

    @staticmethod
    def _summarize(
        version_id: str,
        questions: List[Question],
        active: Optional[str],
        metadata: Optional[VersionMetadata],
    ) -> VersionSummary:
        stamps = [ts for q in questions for ts in (q.created_at, q.updated_at)]
        return VersionSummary(
            id=version_id,
            is_active=version_id == active,
            question_count=len(questions),
            active_question_count=sum(1 for q in questions if q.in_assessment),
            last_updated=max(stamps) if stamps else None,
            metadata=metadata,
        )

    def list_versions(self) -> List[VersionSummary]:
        active = self.active_version_id()
        metadata = self._metadata_by_version()
        index = build_version_index(self.question_bank.list_questions())
        return [self._summarize(v, qs, active, metadata.get(v)) for v, qs in index.items()]

    def get_version(self, version_id: Any) -> VersionSummary:
        vid = normalize_version_id(version_id)
        questions = self.question_bank.list_questions(version=vid)
        if not questions:
            raise NotFound(f"version {vid} not found", version_id=vid)
        meta_record = self.store.get(version_meta_key(vid))
        metadata = VersionMetadata.model_validate(meta_record.value) if meta_record else None
        return self._summarize(vid, questions, self.active_version_id(), metadata)

    def active_questions(self) -> List[Question]:
        """In-assessment questions of the active version, in creation order."""
        active = self.active_version_id()
        if active is None:
            return []
        return self.question_bank.list_questions(version=active, in_assessment=True)

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    def _require_exists(self, version_id: str) -> List[Question]:
        questions = self.question_bank.list_questions(version=version_id)
        if not questions:
            raise NotFound(f"version {version_id} not found", version_id=version_id)
        return questions

    def activate_version(self, version_id: Any) -> None:
        """Make `version_id` the active version.

        Callers must deactivate the current active version first; this does
        not swap. Activating the already active version is a no-op.
        """
        vid = normalize_version_id(version_id)
        self._require_exists(vid)
        current = self.active_version_id()
        if current == vid:
            logger.info("version.activate.noop version=%s", vid)
            return
        if current is not None:
            raise ConflictError(
                "an active version already exists",
                active_version_id=current,
                version_id=vid,
            )
        if not self.store.compare_and_set(ACTIVE_VERSION_KEY, None, _pointer(vid)):
            winner = self.active_version_id()
            if winner == vid:
                return
            logger.warning("version.activate.cas_lost version=%s winner=%s", vid, winner)
            raise ConflictError(
                "an active version already exists",
                active_version_id=winner,
                version_id=vid,
            )
        logger.info("version.activate.success version=%s", vid)
        events.publish(events.VERSION_ACTIVATED, {"version_id": vid})

    def deactivate_version(self, version_id: Any) -> None:
        vid = normalize_version_id(version_id)
        if self.active_version_id() != vid:
            logger.info("version.deactivate.noop version=%s", vid)
            return
        if self.store.compare_and_set(ACTIVE_VERSION_KEY, _pointer(vid), None):
            logger.info("version.deactivate.success version=%s", vid)
            events.publish(events.VERSION_DEACTIVATED, {"version_id": vid})
        else:
            # Pointer moved between read and write; it no longer equals vid
            logger.info("version.deactivate.noop_after_race version=%s", vid)

    def delete_version(self, version_id: Any) -> int:
        """Delete every question of the version; returns how many were removed.

        Clears the active pointer first when it names this version so no
        reader can see an active version without questions. A pointer left
        naming a version whose questions were all deleted is cleared here
        too; NotFound only when there was neither a pointer nor questions.
        """
        vid = normalize_version_id(version_id)
        cleared = False
        if self.active_version_id() == vid:
            cleared = self.store.compare_and_set(ACTIVE_VERSION_KEY, _pointer(vid), None)
            if cleared:
                logger.info("version.delete.pointer_cleared version=%s", vid)
                events.publish(events.VERSION_DEACTIVATED, {"version_id": vid})
        questions = self.question_bank.list_questions(version=vid)
        if not questions and not cleared:
            raise NotFound(f"version {vid} not found", version_id=vid)
        removed = 0
        for question in questions:
            if self.store.delete(question_key(question.id)):
                removed += 1
        self.store.delete(version_meta_key(vid))
        logger.info("version.delete.success version=%s questions=%s", vid, removed)
        events.publish(events.VERSION_DELETED, {"version_id": vid, "questions_deleted": removed})
        return removed

    # ------------------------------------------------------------------
    # display metadata
    # ------------------------------------------------------------------

    def save_metadata(self, version_id: Any, metadata: VersionMetadata) -> VersionSummary:
        vid = normalize_version_id(version_id)
        self._require_exists(vid)
        if metadata.name is not None and not metadata.name.strip():
            raise ValidationError("name must not be blank", path="$.name")
        self.store.put(version_meta_key(vid), metadata.model_dump(mode="json"))
        logger.info("version.metadata.saved version=%s", vid)
        return self.get_version(vid)


__all__ = ["VersionRegistry"]
